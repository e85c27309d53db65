from warpcal.api import (
    CalibrationResult,
    calibrate_from_image_points,
    calibration_document,
    load_camera_calibration,
    produce_calibration,
)
from warpcal.config import CameraPose, Resolution, parse_resolution
from warpcal.core.surfaces import Cylinder, Plane, Sphere, camera_to_scene
from warpcal.errors import CalibrationError

__all__ = [
    "CalibrationError",
    "CalibrationResult",
    "CameraPose",
    "Cylinder",
    "Plane",
    "Resolution",
    "Sphere",
    "calibrate_from_image_points",
    "calibration_document",
    "camera_to_scene",
    "load_camera_calibration",
    "parse_resolution",
    "produce_calibration",
]
