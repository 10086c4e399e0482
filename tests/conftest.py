from pathlib import Path

import numpy as np
import pytest

from sfm_bundler import Camera, Feature, Reconstruction


def add_view(
    reconstruction: Reconstruction,
    name: str,
    estimated: bool = True,
    focal_length: float = 800.0,
    principal_point=(320.0, 240.0),
    rotation=None,
    position=None,
    focal_prior: float = None,
) -> int:
    view_id = reconstruction.add_view(name)
    view = reconstruction.view(view_id)
    view.camera = Camera(
        focal_length=focal_length,
        principal_point=principal_point,
        rotation=np.eye(3) if rotation is None else rotation,
        position=np.zeros(3) if position is None else position,
        image_size=(640, 480),
    )
    view.camera_intrinsics_prior.focal_length = focal_prior
    view.is_estimated = estimated
    return view_id


def add_track(reconstruction: Reconstruction, observations, point=(0.0, 0.0, 1.0, 1.0), estimated: bool = True) -> int:
    track_id = reconstruction.add_track([(view_id, Feature(x, y)) for view_id, (x, y) in observations])
    track = reconstruction.track(track_id)
    track.set_point(point)
    track.is_estimated = estimated
    return track_id


@pytest.fixture
def two_view_reconstruction():
    """Two estimated views with focal 800 and principal point (320, 240) observing one track."""
    reconstruction = Reconstruction()
    v0 = add_view(reconstruction, "img0.jpg", focal_prior=800.0)
    v1 = add_view(reconstruction, "img1.jpg", position=np.array([1.0, 0.0, 0.0]))
    add_track(reconstruction, [(v0, (330.0, 200.0)), (v1, (400.0, 260.0))], point=(2.0, 4.0, 20.0, 2.0))
    return reconstruction


@pytest.fixture
def mixed_reconstruction():
    """
    Views a, b are estimated, c is not. Tracks:
        0: a, b, estimated -> exported
        1: a, c, estimated -> only one estimated view left, dropped
        2: a, b, not estimated -> dropped
        3: a, b, c, estimated -> exported with views a, b
    """
    reconstruction = Reconstruction()
    a = add_view(reconstruction, "a.jpg")
    b = add_view(reconstruction, "b.jpg", position=np.array([1.0, 0.0, 0.0]))
    c = add_view(reconstruction, "c.jpg", estimated=False)
    add_track(reconstruction, [(a, (10.0, 20.0)), (b, (30.0, 40.0))])
    add_track(reconstruction, [(a, (11.0, 21.0)), (c, (31.0, 41.0))])
    add_track(reconstruction, [(a, (12.0, 22.0)), (b, (32.0, 42.0))], estimated=False)
    add_track(reconstruction, [(a, (13.0, 23.0)), (b, (33.0, 43.0)), (c, (53.0, 63.0))])
    return reconstruction


COLMAP_CAMERAS = """# Camera list with one line of data per camera:
#   CAMERA_ID, MODEL, WIDTH, HEIGHT, PARAMS[]
# Number of cameras: 1
1 PINHOLE 640 480 800 800 320 240
"""

COLMAP_IMAGES = """# Image list with two lines of data per image:
#   IMAGE_ID, QW, QX, QY, QZ, TX, TY, TZ, CAMERA_ID, NAME
#   POINTS2D[] as (X, Y, POINT3D_ID)
# Number of images: 3, mean observations per image: 1.33
1 1 0 0 0 0 0 0 1 img0.jpg
330 200 1 10 10 -1
2 1 0 0 0 -1 0 0 1 img1.jpg
400 260 1 50 50 2
3 1 0 0 0 0 0 -2 1 img2.jpg

"""

COLMAP_POINTS3D = """# 3D point list with one line of data per point:
#   POINT3D_ID, X, Y, Z, R, G, B, ERROR, TRACK[] as (IMAGE_ID, POINT2D_IDX)
# Number of points: 2, mean track length: 1.5
1 1 2 10 255 0 0 0.5 1 0 2 0
2 0 0 5 10 10 10 0.1 2 1
"""


@pytest.fixture
def colmap_model_dir(tmp_path) -> Path:
    model_dir = tmp_path / "sparse"
    model_dir.mkdir()
    (model_dir / "cameras.txt").write_text(COLMAP_CAMERAS)
    (model_dir / "images.txt").write_text(COLMAP_IMAGES)
    (model_dir / "points3D.txt").write_text(COLMAP_POINTS3D)
    return model_dir
