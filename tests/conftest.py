from __future__ import annotations

import numpy as np
import pytest

from warpcal.config import CameraPose
from warpcal.core.camera import CameraCalibration, PhysicalCamera
from warpcal.core.surfaces import Plane


def make_calibration(width: int = 640, height: int = 480, f_px: float = 800.0) -> CameraCalibration:
    K = np.array([[f_px, 0.0, width / 2.0], [0.0, f_px, height / 2.0], [0.0, 0.0, 1.0]], dtype=np.float64)
    return CameraCalibration(
        camera_matrix=K,
        distortion_coefficients=np.zeros((5,), dtype=np.float64),
        image_width=width,
        image_height=height,
    )


@pytest.fixture
def calibration() -> CameraCalibration:
    return make_calibration()


@pytest.fixture
def physical_camera(calibration: CameraCalibration) -> PhysicalCamera:
    """Camera at the origin looking at a wall 5 units down -Z, world +Y up."""
    pose = CameraPose(
        position=np.array([0.0, 0.0, 0.0]),
        direction=np.array([0.0, 0.0, -1.0]),
        up=np.array([0.0, 1.0, 0.0]),
    )
    return PhysicalCamera(pose=pose, calibration=calibration)


@pytest.fixture
def wall() -> Plane:
    return Plane(point=np.array([0.0, 0.0, -5.0]), normal=np.array([0.0, 0.0, 1.0]))
