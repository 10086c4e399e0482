"""
This module contains functions to read a COLMAP model with pycolmap and
convert it to a Reconstruction.

Both the binary (cameras.bin, images.bin, points3D.bin) and the text
(cameras.txt, images.txt, points3D.txt) formats are supported.
"""

import logging
from pathlib import Path
from typing import Tuple, Union

import pycolmap

from ..camera import Camera
from ..reconstruction import Feature, Reconstruction

logger = logging.getLogger("sfm_bundler")

COLMAP_MODEL_FILES = ["cameras", "images", "points3D"]

# Indices of k1 and k2 in the parameters of the camera models with radial distortion
RADIAL_DISTORTION_PARAMS = {
    "SIMPLE_RADIAL": (3,),
    "RADIAL": (3, 4),
    "OPENCV": (4, 5),
    "FULL_OPENCV": (4, 5),
}
UNDISTORTED_CAMERA_MODELS = ["SIMPLE_PINHOLE", "PINHOLE"]


def check_model_files(model_dir: Path) -> str:
    """Return the extension of the model files found in `model_dir` (".bin" or ".txt")."""
    for ext in [".bin", ".txt"]:
        if all((model_dir / f"{name}{ext}").exists() for name in COLMAP_MODEL_FILES):
            return ext
    raise FileNotFoundError(
        f"COLMAP model not found in {model_dir}. "
        f"Expected {', '.join(COLMAP_MODEL_FILES)} files in binary (.bin) or text (.txt) format."
    )


def parse_camera_params(camera: pycolmap.Camera) -> Tuple[float, Tuple[float, float], Tuple[float, float]]:
    """
    Get focal length, principal point and the first two radial distortion
    coefficients of a COLMAP camera.

    Models with two focal lengths are reduced to their mean. Bundler only
    models radial distortion (k1, k2), the other distortion terms are dropped.
    """
    focal = (camera.focal_length_x + camera.focal_length_y) / 2
    principal_point = (camera.principal_point_x, camera.principal_point_y)

    model = camera.model.name
    if model not in RADIAL_DISTORTION_PARAMS and model not in UNDISTORTED_CAMERA_MODELS:
        logger.warning(f"Distortion of camera {camera.camera_id} ({model}) cannot be exported to Bundler, ignoring it.")
    distortion = [0.0, 0.0]
    for i, idx in enumerate(RADIAL_DISTORTION_PARAMS.get(model, ())):
        distortion[i] = float(camera.params[idx])

    return focal, principal_point, tuple(distortion)


def read_colmap_model(model_dir: Union[str, Path]) -> Reconstruction:
    """
    Read a COLMAP model and convert it to a Reconstruction.

    Registered images become estimated views, the other images are added as
    views that are not estimated. Every 3D point becomes an estimated track.
    Points observed by fewer than two distinct images are skipped, and if an
    image observes the same point more than once only the first observation
    is kept.

    Args:
        model_dir (Union[str, Path]): Directory of the COLMAP model (binary or text format).

    Returns:
        Reconstruction: The reconstruction, with views ordered by image id and
            tracks ordered by point id.

    Raises:
        FileNotFoundError: If the model files are missing.
    """
    model_dir = Path(model_dir)
    ext = check_model_files(model_dir)

    rec = pycolmap.Reconstruction(str(model_dir))
    logger.info(
        f"Read COLMAP model ({ext}) from {model_dir}: {len(rec.cameras)} cameras, "
        f"{len(rec.images)} images, {len(rec.points3D)} points."
    )

    reg_image_ids = set(rec.reg_image_ids())
    reconstruction = Reconstruction()
    image_id_to_view_id = {}
    for image_id in sorted(rec.images.keys()):
        image = rec.images[image_id]
        colmap_camera = rec.cameras[image.camera_id]
        focal, principal_point, distortion = parse_camera_params(colmap_camera)

        view_id = reconstruction.add_view(image.name)
        view = reconstruction.view(view_id)
        view.camera = Camera(
            focal_length=focal,
            principal_point=principal_point,
            radial_distortion=distortion,
            image_size=(colmap_camera.width, colmap_camera.height),
        )
        view.camera_intrinsics_prior.image_width = colmap_camera.width
        view.camera_intrinsics_prior.image_height = colmap_camera.height
        if image_id in reg_image_ids:
            # 3x4 [R|t] world to camera transformation
            cam_from_world = image.cam_from_world().matrix()
            view.camera.set_from_extrinsics(cam_from_world[:, :3], cam_from_world[:, 3])
            view.is_estimated = True
        image_id_to_view_id[image_id] = view_id

    num_skipped = 0
    for point3D_id in sorted(rec.points3D.keys()):
        point3D = rec.points3D[point3D_id]
        observations = {}
        for element in point3D.track.elements:
            if element.image_id in observations:
                continue
            x, y = rec.images[element.image_id].points2D[element.point2D_idx].xy
            observations[element.image_id] = Feature(x, y)

        if len(observations) < 2:
            num_skipped += 1
            continue

        track_id = reconstruction.add_track(
            [(image_id_to_view_id[image_id], feature) for image_id, feature in observations.items()]
        )
        track = reconstruction.track(track_id)
        track.set_point(point3D.xyz)
        track.is_estimated = True

    if num_skipped > 0:
        logger.debug(f"Skipped {num_skipped} points observed by fewer than two images.")
    logger.info(f"Reconstruction: {reconstruction.summary()}")

    return reconstruction
