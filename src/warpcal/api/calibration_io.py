from __future__ import annotations

from pathlib import Path

import numpy as np

from warpcal.core.camera import CameraCalibration
from warpcal.errors import ConfigurationError


def load_camera_calibration(path: Path) -> CameraCalibration:
    """
    Load an OpenCV FileStorage calibration (XML or YAML) with the keys written by
    OpenCV's calibration sample: camera_matrix, distortion_coefficients,
    image_width, image_height.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Missing calibration file {path}")

    import cv2  # type: ignore

    # A malformed file surfaces as cv2.error, or as SystemError from the FileStorage constructor.
    try:
        fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_READ)
    except (cv2.error, SystemError) as e:
        raise ConfigurationError(f"{path} is not a readable OpenCV calibration file") from e
    try:
        if not fs.isOpened():
            raise ConfigurationError(f"{path} is not a readable OpenCV calibration file")
        K = fs.getNode("camera_matrix").mat()
        dist = fs.getNode("distortion_coefficients").mat()
        width_node = fs.getNode("image_width")
        height_node = fs.getNode("image_height")
        if K is None or width_node.empty() or height_node.empty():
            raise ConfigurationError(f"{path} missing camera_matrix, image_width or image_height")
        width = int(width_node.real())
        height = int(height_node.real())
    except (cv2.error, SystemError) as e:
        raise ConfigurationError(f"{path} has malformed calibration entries") from e
    finally:
        fs.release()

    K = np.asarray(K, dtype=np.float64)
    if K.shape != (3, 3) or not np.all(np.isfinite(K)):
        raise ConfigurationError(f"{path} camera_matrix must be a finite 3x3 matrix")
    if K[0, 0] <= 0.0 or K[1, 1] <= 0.0:
        raise ConfigurationError(f"{path} focal lengths must be > 0")
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"{path} image_width and image_height must be > 0")
    dist = np.zeros((5,), dtype=np.float64) if dist is None else np.asarray(dist, dtype=np.float64).reshape(-1)

    return CameraCalibration(camera_matrix=K, distortion_coefficients=dist, image_width=width, image_height=height)


def save_camera_calibration(path: Path, calibration: CameraCalibration) -> Path:
    import cv2  # type: ignore

    path = Path(path)
    fs = cv2.FileStorage(str(path), cv2.FILE_STORAGE_WRITE)
    try:
        fs.write("image_width", int(calibration.image_width))
        fs.write("image_height", int(calibration.image_height))
        fs.write("camera_matrix", np.asarray(calibration.camera_matrix, dtype=np.float64))
        fs.write("distortion_coefficients", np.asarray(calibration.distortion_coefficients, dtype=np.float64).reshape(-1, 1))
    finally:
        fs.release()
    return path
