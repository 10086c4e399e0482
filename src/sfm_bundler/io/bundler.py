"""
This module contains functions to export a reconstruction to the Bundler format.

Two files are written:
    - the list file, with one image name per line, optionally followed by
      "0 <focal length>" when a focal length prior is available,
    - the bundle file (v0.3), with the cameras followed by the 3D points and
      their observations.

Only the estimated part of the reconstruction is exported. The exported views
are numbered 0..N-1 in iteration order and the observations refer to the
cameras through this index, so the Bundler reading tools parse the files by
position only.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Union

import numpy as np

from ..constants import (
    BUNDLE_FILE_HEADER,
    MIN_TRACK_VIEWS,
    PLACEHOLDER_COLOR,
    PLACEHOLDER_KEYPOINT_INDEX,
    RECONSTRUCTION_TO_BUNDLER,
)
from ..reconstruction import Reconstruction, ViewId

logger = logging.getLogger("sfm_bundler")


def format_value(value: float) -> str:
    """Format a scalar with 6 significant digits, the default precision of C++ streams (e.g. 800, 1234.57)."""
    # adding 0.0 turns -0.0 into 0.0
    return f"{float(value) + 0.0:g}"


def format_full_precision(values: Iterable[float]) -> str:
    """
    Format values with 17 significant digits, space separated and without column padding.

    17 digits (max_digits10 of a double) is chosen deliberately over 16 so
    that every value is read back exactly, at the cost of e.g. 0.1 being
    written as 0.10000000000000001.
    """
    return " ".join(f"{float(v) + 0.0:.17g}" for v in values)


def create_estimated_subreconstruction(reconstruction: Reconstruction) -> Reconstruction:
    """
    Create a copy of the reconstruction that contains only the estimated views
    and the estimated tracks observed by at least two of them.

    The input reconstruction is never modified.

    Args:
        reconstruction (Reconstruction): The reconstruction to filter. It may contain
            views and tracks that are not estimated yet.

    Returns:
        Reconstruction: The filtered copy. It can be empty if nothing is estimated.
    """
    subreconstruction = reconstruction.copy()

    for view_id in subreconstruction.view_ids():
        view = subreconstruction.view(view_id)
        if view is None:
            continue
        if not view.is_estimated:
            subreconstruction.remove_view(view_id)

    for track_id in subreconstruction.track_ids():
        track = subreconstruction.track(track_id)
        if track is None:
            continue
        if not track.is_estimated or track.num_views() < MIN_TRACK_VIEWS:
            subreconstruction.remove_track(track_id)

    logger.debug(
        f"Estimated subreconstruction: {subreconstruction.num_views()}/{reconstruction.num_views()} views, "
        f"{subreconstruction.num_tracks()}/{reconstruction.num_tracks()} tracks."
    )
    return subreconstruction


def write_lists_file(reconstruction: Reconstruction, lists_file: Union[str, Path]) -> bool:
    """
    Write the list file with the image names and, when available, the focal length prior.

    Each line is "<name>" or "<name> 0 <focal>". The 0 is the number of SIFT
    keypoints of the legacy format, always 0 since keypoints are not kept.

    Args:
        reconstruction (Reconstruction): The reconstruction to export.
        lists_file (Union[str, Path]): Output path. An existing file is overwritten.

    Returns:
        bool: True if the file was written, False if it could not be opened.
    """
    try:
        file = open(lists_file, "w", newline="\n")
    except OSError as e:
        logger.error(f"Cannot open the file: {lists_file} for writing. {e}")
        return False

    with file:
        for view_id in reconstruction.view_ids():
            view = reconstruction.view(view_id)
            file.write(view.name)
            prior = view.camera_intrinsics_prior
            if prior.has_focal_length:
                file.write(f" 0 {format_value(prior.focal_length)}")
            file.write("\n")

    return True


def write_bundle_file(reconstruction: Reconstruction, bundle_file: Union[str, Path]) -> bool:
    """
    Write the bundle file (v0.3) with all the views and tracks of the reconstruction.

    Cameras are converted to the Bundler convention (y up, camera looking
    along -z) by flipping the y and z axes of the camera frame. Each camera
    takes 5 lines: "f k1 k2", three rows of the rotation and the translation.
    Each point takes 3 lines: position, color and the list of observations
    "<n> <camera> 0 <x> <y> ...", with image coordinates relative to the
    principal point and y pointing up.

    All the observing views of every track must be part of the reconstruction.
    Pass the output of `create_estimated_subreconstruction` to guarantee it.

    Args:
        reconstruction (Reconstruction): The reconstruction to export.
        bundle_file (Union[str, Path]): Output path. An existing file is overwritten.

    Returns:
        bool: True if the file was written, False if it could not be opened.

    Raises:
        KeyError: If a track is observed by a view that is not in the reconstruction,
            or by a view that has no feature for the track.
    """
    try:
        file = open(bundle_file, "w", newline="\n")
    except OSError as e:
        logger.error(f"Cannot open the file: {bundle_file} for writing. {e}")
        return False

    with file:
        file.write(f"{BUNDLE_FILE_HEADER}\n")
        file.write(f"{reconstruction.num_views()} {reconstruction.num_tracks()}\n")

        # Cameras
        view_id_to_index: Dict[ViewId, int] = {}
        for index, view_id in enumerate(reconstruction.view_ids()):
            view_id_to_index[view_id] = index
            camera = reconstruction.view(view_id).camera
            file.write(
                f"{format_value(camera.focal_length)} "
                f"{format_value(camera.radial_distortion_1)} "
                f"{format_value(camera.radial_distortion_2)}\n"
            )

            R = camera.get_orientation_as_rotation_matrix()
            rotation = RECONSTRUCTION_TO_BUNDLER @ R
            for row in rotation:
                file.write(f"{format_full_precision(row)}\n")

            translation = RECONSTRUCTION_TO_BUNDLER @ camera.translation
            file.write(f"{format_full_precision(translation)}\n")

        # Points
        for track_id in reconstruction.track_ids():
            track = reconstruction.track(track_id)
            file.write(f"{format_full_precision(track.dehomogenized_point())}\n")
            file.write(f"{PLACEHOLDER_COLOR}\n")

            view_ids = track.view_ids()
            file.write(f"{len(view_ids)}")
            for view_id in view_ids:
                if view_id not in view_id_to_index:
                    raise KeyError(
                        f"Track {track_id} is observed by view {view_id}, which is not exported. "
                        "Filter the reconstruction with create_estimated_subreconstruction first."
                    )
                index = view_id_to_index[view_id]
                view = reconstruction.view(view_id)
                feature = view.get_feature(track_id)
                if feature is None:
                    raise KeyError(f"Track {track_id} is observed by view {view_id}, which has no feature for it.")
                camera = view.camera
                # Bundler image coordinates have the origin at the principal
                # point, x to the right and y up
                adjusted_feature = np.array(
                    [
                        feature.x - camera.principal_point_x,
                        -(feature.y - camera.principal_point_y),
                    ]
                )
                file.write(f" {index} {PLACEHOLDER_KEYPOINT_INDEX} {format_full_precision(adjusted_feature)}")
            file.write("\n")

    return True


def write_bundler_files(
    reconstruction: Reconstruction,
    lists_file: Union[str, Path],
    bundle_file: Union[str, Path],
) -> bool:
    """
    Export the estimated part of a reconstruction in Bundler format.

    Args:
        reconstruction (Reconstruction): The reconstruction to export. It is not modified.
        lists_file (Union[str, Path]): Path of the list file with the image names.
        bundle_file (Union[str, Path]): Path of the bundle file.

    Returns:
        bool: True if both files were written, False otherwise. The bundle file
            is not written if the list file cannot be opened.

    Example:
        write_bundler_files(
            reconstruction,
            lists_file="/path/to/list.txt",
            bundle_file="/path/to/bundle.out",
        )
    """
    logger.info("Exporting reconstruction in Bundler format...")

    estimated_reconstruction = create_estimated_subreconstruction(reconstruction)

    if not write_lists_file(estimated_reconstruction, lists_file):
        return False

    if not write_bundle_file(estimated_reconstruction, bundle_file):
        return False

    logger.info(
        f"Exported {estimated_reconstruction.num_views()} cameras and "
        f"{estimated_reconstruction.num_tracks()} points to {bundle_file}"
    )
    return True
