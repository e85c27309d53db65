from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from warpcal.config import CameraPose
from warpcal.core.geometry import NEAR_CLIP, FAR_CLIP, look_at_matrix, normalize, perspective_matrix
from warpcal.errors import GeometryError

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)


@dataclass(frozen=True)
class CameraCalibration:
    """
    Intrinsic calibration of the physical camera (OpenCV conventions).

    `image_width` / `image_height` are the photo dimensions the intrinsics were
    estimated for.
    """

    camera_matrix: np.ndarray  # (3,3)
    distortion_coefficients: np.ndarray  # (N,)
    image_width: int
    image_height: int

    @property
    def fx(self) -> float:
        return float(self.camera_matrix[0, 0])

    @property
    def fy(self) -> float:
        return float(self.camera_matrix[1, 1])

    @property
    def cx(self) -> float:
        return float(self.camera_matrix[0, 2])

    @property
    def cy(self) -> float:
        return float(self.camera_matrix[1, 2])


@dataclass(frozen=True)
class PhysicalCamera:
    pose: CameraPose
    calibration: CameraCalibration

    @property
    def position(self) -> np.ndarray:
        return np.asarray(self.pose.position, dtype=np.float64).reshape(3)

    def basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        World-space (right, down, forward) axes matching the image convention
        (x right, y down, z forward).
        """
        forward = normalize(self.pose.direction)
        right = normalize(np.cross(forward, np.asarray(self.pose.up, dtype=np.float64)))
        down = np.cross(forward, right)
        return right, down, forward

    def pixel_ray(self, uv_px: np.ndarray) -> np.ndarray:
        """Unit world-space ray directions (N,3) through undistorted pixels (N,2)."""
        uv_px = np.asarray(uv_px, dtype=np.float64).reshape(-1, 2)
        cal = self.calibration
        x = (uv_px[:, 0] - cal.cx) / cal.fx
        y = (uv_px[:, 1] - cal.cy) / cal.fy
        right, down, forward = self.basis()
        dirs = x[:, None] * right + y[:, None] * down + forward
        return dirs / np.linalg.norm(dirs, axis=-1, keepdims=True)

    def world_to_pixel(self, xyz: np.ndarray) -> np.ndarray:
        """Inverse of `pixel_ray` for points in front of the camera; (N,3) -> (N,2)."""
        xyz = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
        right, down, forward = self.basis()
        rel = xyz - self.position
        z = rel @ forward
        if np.any(z <= 0.0):
            raise GeometryError("point is behind the physical camera")
        cal = self.calibration
        u = cal.fx * (rel @ right) / z + cal.cx
        v = cal.fy * (rel @ down) / z + cal.cy
        return np.stack([u, v], axis=1)


@dataclass(frozen=True)
class VirtualCamera:
    """Virtual camera positioned at the viewer's eye, not yet aimed."""

    eye: np.ndarray
    up: np.ndarray = field(default_factory=lambda: WORLD_UP.copy())

    def aim(self, look_at: np.ndarray) -> "AimedVirtualCamera":
        eye = np.asarray(self.eye, dtype=np.float64).reshape(3)
        look_at = np.asarray(look_at, dtype=np.float64).reshape(3)
        if float(np.linalg.norm(look_at - eye)) < 1e-12:
            raise GeometryError("look-at target coincides with the eye position")
        return AimedVirtualCamera(eye=eye, up=np.asarray(self.up, dtype=np.float64).reshape(3), look_at=look_at)


@dataclass(frozen=True)
class AimedVirtualCamera:
    eye: np.ndarray
    up: np.ndarray
    look_at: np.ndarray

    @property
    def direction(self) -> np.ndarray:
        return normalize(np.asarray(self.look_at) - np.asarray(self.eye))

    def view_matrix(self) -> np.ndarray:
        return look_at_matrix(self.eye, self.look_at, self.up)

    def with_fov(self, fov_deg: float) -> "FittedVirtualCamera":
        fov_deg = float(fov_deg)
        if not (0.0 < fov_deg < 180.0):
            raise GeometryError(f"vertical field of view must be in (0, 180) degrees (got {fov_deg})")
        return FittedVirtualCamera(eye=self.eye, up=self.up, look_at=self.look_at, fov_deg=fov_deg)


@dataclass(frozen=True)
class FittedVirtualCamera:
    """Fully fitted virtual camera; the only state the warp projector accepts."""

    eye: np.ndarray
    up: np.ndarray
    look_at: np.ndarray
    fov_deg: float

    @property
    def direction(self) -> np.ndarray:
        return normalize(np.asarray(self.look_at) - np.asarray(self.eye))

    def view_matrix(self) -> np.ndarray:
        return look_at_matrix(self.eye, self.look_at, self.up)

    def projection_matrix(self, aspect: float) -> np.ndarray:
        return perspective_matrix(np.radians(self.fov_deg), aspect, NEAR_CLIP, FAR_CLIP)
