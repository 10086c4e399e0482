"""
Camera model used by the reconstruction.

Cameras follow a right-handed convention with x to the right, y down and z
pointing forward along the optical axis. The pose is stored as the
world-to-camera rotation R and the camera center c in world coordinates, so a
world point X maps to R @ (X - c) in the camera frame.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class CameraIntrinsicsPrior:
    """Intrinsics known before the reconstruction (e.g. from EXIF). A field is set when not None."""

    focal_length: Optional[float] = None
    image_width: Optional[int] = None
    image_height: Optional[int] = None

    @property
    def has_focal_length(self) -> bool:
        return self.focal_length is not None


class Camera:
    """
    Pinhole camera with two radial distortion coefficients.

    Attributes:
        focal_length (float): Focal length in pixels.
        radial_distortion_1 (float): First radial distortion coefficient (k1).
        radial_distortion_2 (float): Second radial distortion coefficient (k2).
        principal_point_x (float): Principal point x coordinate in pixels.
        principal_point_y (float): Principal point y coordinate in pixels.
        image_width (int): Image width in pixels.
        image_height (int): Image height in pixels.
    """

    def __init__(
        self,
        focal_length: float = 1.0,
        principal_point: Tuple[float, float] = (0.0, 0.0),
        radial_distortion: Tuple[float, float] = (0.0, 0.0),
        rotation: np.ndarray = None,
        position: np.ndarray = None,
        image_size: Tuple[int, int] = (0, 0),
    ):
        self.focal_length = float(focal_length)
        self.principal_point_x = float(principal_point[0])
        self.principal_point_y = float(principal_point[1])
        self.radial_distortion_1 = float(radial_distortion[0])
        self.radial_distortion_2 = float(radial_distortion[1])
        self.image_width = int(image_size[0])
        self.image_height = int(image_size[1])

        self._rotation = np.eye(3)
        self._position = np.zeros(3)
        if rotation is not None:
            self.set_orientation_from_rotation_matrix(rotation)
        if position is not None:
            self.set_position(position)

    def __repr__(self) -> str:
        return (
            f"Camera(f={self.focal_length}, pp=({self.principal_point_x}, {self.principal_point_y}), "
            f"k=({self.radial_distortion_1}, {self.radial_distortion_2}))"
        )

    def get_orientation_as_rotation_matrix(self) -> np.ndarray:
        return self._rotation.copy()

    def set_orientation_from_rotation_matrix(self, rotation: np.ndarray) -> None:
        rotation = np.asarray(rotation, dtype=np.float64)
        if rotation.shape != (3, 3):
            raise ValueError(f"Invalid rotation matrix shape {rotation.shape}, expected (3, 3)")
        self._rotation = rotation.copy()

    def get_position(self) -> np.ndarray:
        return self._position.copy()

    def set_position(self, position: np.ndarray) -> None:
        position = np.asarray(position, dtype=np.float64).reshape(-1)
        if position.shape != (3,):
            raise ValueError(f"Invalid camera position shape {position.shape}, expected (3,)")
        self._position = position.copy()

    @property
    def translation(self) -> np.ndarray:
        """World-to-camera translation t = -R @ c."""
        return -self._rotation @ self._position

    def set_from_extrinsics(self, rotation: np.ndarray, translation: np.ndarray) -> None:
        """Set the pose from a world-to-camera rotation and translation (x_cam = R @ X + t)."""
        self.set_orientation_from_rotation_matrix(rotation)
        translation = np.asarray(translation, dtype=np.float64).reshape(-1)
        if translation.shape != (3,):
            raise ValueError(f"Invalid translation shape {translation.shape}, expected (3,)")
        self._position = -self._rotation.T @ translation
