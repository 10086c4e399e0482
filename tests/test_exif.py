import numpy as np
import pytest
from conftest import add_view
from PIL import ExifTags, Image

from sfm_bundler import FocalPriorSource, Reconstruction, set_focal_priors
from sfm_bundler.io.exif import get_focal


def save_image(path, focal_35mm=None, size=(64, 48)):
    image = Image.fromarray(np.zeros((size[1], size[0], 3), dtype=np.uint8))
    if focal_35mm is None:
        image.save(path)
    else:
        exif = Image.Exif()
        exif[ExifTags.Base.FocalLengthIn35mmFilm] = focal_35mm
        image.save(path, exif=exif.tobytes())
    return path


@pytest.fixture
def image_dir(tmp_path):
    image_dir = tmp_path / "images"
    image_dir.mkdir()
    save_image(image_dir / "with_exif.jpg", focal_35mm=70)
    save_image(image_dir / "without_exif.jpg")
    return image_dir


@pytest.fixture
def reconstruction():
    reconstruction = Reconstruction()
    add_view(reconstruction, "with_exif.jpg", focal_length=512.0)
    add_view(reconstruction, "without_exif.jpg", focal_length=256.0)
    add_view(reconstruction, "missing.jpg", focal_length=128.0)
    return reconstruction


def test_get_focal(image_dir):
    # 70mm equivalent on a 64 px wide image
    assert get_focal(image_dir / "with_exif.jpg") == pytest.approx(128.0)
    assert get_focal(image_dir / "without_exif.jpg") is None


def test_set_focal_priors_from_exif(reconstruction, image_dir):
    num_set = set_focal_priors(reconstruction, image_dir, FocalPriorSource.EXIF)
    assert num_set == 1
    priors = [reconstruction.view(i).camera_intrinsics_prior.focal_length for i in reconstruction.view_ids()]
    assert priors[0] == pytest.approx(128.0)
    assert priors[1:] == [None, None]


def test_set_focal_priors_from_camera(reconstruction):
    assert set_focal_priors(reconstruction, source=FocalPriorSource.CAMERA) == 3
    priors = [reconstruction.view(i).camera_intrinsics_prior.focal_length for i in reconstruction.view_ids()]
    assert priors == [512.0, 256.0, 128.0]


def test_set_focal_priors_none(reconstruction):
    assert set_focal_priors(reconstruction, source=FocalPriorSource.NONE) == 0
    for view_id in reconstruction.view_ids():
        assert not reconstruction.view(view_id).camera_intrinsics_prior.has_focal_length


def test_set_focal_priors_from_exif_requires_image_dir(reconstruction, tmp_path):
    with pytest.raises(ValueError):
        set_focal_priors(reconstruction, None, FocalPriorSource.EXIF)
    with pytest.raises(ValueError):
        set_focal_priors(reconstruction, tmp_path / "does_not_exist", FocalPriorSource.EXIF)
