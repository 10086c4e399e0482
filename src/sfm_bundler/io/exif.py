"""
Focal length priors for the views of a reconstruction, written to the Bundler list file.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import ExifTags, Image, UnidentifiedImageError
from tqdm import tqdm

from ..constants import FocalPriorSource
from ..reconstruction import Reconstruction

logger = logging.getLogger("sfm_bundler")


def get_focal(image_path: Union[str, Path]) -> Optional[float]:
    """
    Get the focal length of an image in pixels from its EXIF data.

    The focal length is computed from the 35mm equivalent focal length and the
    largest image dimension, as COLMAP does.

    Parameters:
        image_path (Union[str, Path]): The path to the image file.

    Returns:
        Optional[float]: The focal length in pixels, or None if the EXIF data
            does not contain the 35mm equivalent focal length.
    """
    with Image.open(image_path) as image:
        max_size = max(image.size)
        exif = image.getexif()

    if exif is None:
        return None

    # FocalLengthIn35mmFilm lives in the Exif sub-IFD, older files may have it in IFD0
    tags = dict(exif.items())
    tags.update(exif.get_ifd(ExifTags.IFD.Exif))
    for tag, value in tags.items():
        if ExifTags.TAGS.get(tag, None) == "FocalLengthIn35mmFilm":
            focal_35mm = float(value)
            if focal_35mm > 0:
                return focal_35mm / 35.0 * max_size
            return None

    return None


def set_focal_priors(
    reconstruction: Reconstruction,
    image_dir: Union[str, Path, None] = None,
    source: FocalPriorSource = FocalPriorSource.EXIF,
) -> int:
    """
    Set the focal length prior of the views of a reconstruction.

    Args:
        reconstruction (Reconstruction): The reconstruction to update in place.
        image_dir (Union[str, Path, None]): Directory containing the images, required
            when source is FocalPriorSource.EXIF.
        source (FocalPriorSource): Where the focal length is taken from:
            NONE leaves the priors untouched, EXIF reads the image EXIF data,
            CAMERA copies the calibrated focal length of each view.

    Returns:
        int: The number of views with a focal length prior set by this call.

    Raises:
        ValueError: If source is EXIF and image_dir is not a valid directory.
    """
    if source == FocalPriorSource.NONE:
        return 0

    if source == FocalPriorSource.CAMERA:
        for view_id in reconstruction.view_ids():
            view = reconstruction.view(view_id)
            view.camera_intrinsics_prior.focal_length = view.camera.focal_length
        return reconstruction.num_views()

    if image_dir is None or not Path(image_dir).is_dir():
        raise ValueError(f"Invalid image directory {image_dir}. It is required to read focal lengths from EXIF.")
    image_dir = Path(image_dir)

    num_set = 0
    for view_id in tqdm(reconstruction.view_ids(), desc="Reading EXIF"):
        view = reconstruction.view(view_id)
        image_path = image_dir / view.name
        if not image_path.exists():
            logger.debug(f"Image {image_path} not found, no focal length prior for {view.name}.")
            continue
        try:
            focal = get_focal(image_path)
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Unable to read EXIF data for image {view.name}. {e}")
            continue
        if focal is None:
            logger.debug(f"No focal length in the EXIF data of {view.name}.")
            continue
        view.camera_intrinsics_prior.focal_length = focal
        num_set += 1

    logger.info(f"Focal length prior set from EXIF for {num_set}/{reconstruction.num_views()} views.")
    return num_set
