from warpcal.api.calibration_io import load_camera_calibration, save_camera_calibration
from warpcal.api.pipeline import CalibrationResult, calibrate_from_image_points, calibration_document, produce_calibration
from warpcal.api.remote import post_image, send_command

__all__ = [
    "CalibrationResult",
    "calibrate_from_image_points",
    "calibration_document",
    "load_camera_calibration",
    "save_camera_calibration",
    "produce_calibration",
    "post_image",
    "send_command",
]
