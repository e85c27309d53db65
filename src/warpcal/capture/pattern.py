from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from warpcal.config import Resolution
from warpcal.core.camera import CameraCalibration
from warpcal.core.image_io import write_image
from warpcal.errors import CaptureError

logger = logging.getLogger(__name__)


def chessboard_image(corners: Resolution, size: Resolution) -> np.ndarray:
    """
    Full-frame chessboard (H,W) uint8 with `corners.width` x `corners.height`
    inner corners, i.e. (w+1) x (h+1) squares stretched over `size`.

    The top-left square is white.
    """
    squares_x = corners.width + 1
    squares_y = corners.height + 1
    col = (np.arange(size.width) * squares_x) // size.width
    row = (np.arange(size.height) * squares_y) // size.height
    parity = (row[:, None] + col[None, :]) % 2
    return np.where(parity == 0, 255, 0).astype(np.uint8)


def prepare_photo(
    photo_bgr: np.ndarray,
    calibration: CameraCalibration,
    debug_dir: Path | None = None,
) -> np.ndarray:
    """
    Undistort a photo of the projected pattern and turn it into the inverted
    grayscale image the corner search expects.
    """
    h, w = photo_bgr.shape[:2]
    if (w, h) != (calibration.image_width, calibration.image_height):
        raise CaptureError(
            f"photo dimensions ({w}x{h}) don't match width and height in calibration file "
            f"({calibration.image_width}x{calibration.image_height})"
        )

    import cv2  # type: ignore

    undistorted = cv2.undistort(
        photo_bgr,
        calibration.camera_matrix,
        calibration.distortion_coefficients,
        None,
        calibration.camera_matrix,
    )
    gray = cv2.cvtColor(undistorted, cv2.COLOR_BGR2GRAY) if undistorted.ndim == 3 else undistorted
    # The projected board is surrounded by dark wall; inverting gives the light border the detector needs.
    inverted = cv2.bitwise_not(gray)

    if debug_dir is not None:
        debug_dir = Path(debug_dir)
        debug_dir.mkdir(parents=True, exist_ok=True)
        write_image(debug_dir / "alignment-undistorted.jpg", undistorted)
        write_image(debug_dir / "alignment-inverted.jpg", inverted)
    return inverted


def locate_chessboard_corners(
    gray: np.ndarray,
    corners: Resolution,
    debug_dir: Path | None = None,
) -> np.ndarray:
    """
    Sub-pixel chessboard corner positions (N,2) in OpenCV's row-major order.

    Raises CaptureError unless all `corners.width * corners.height` corners are found.
    """
    import cv2  # type: ignore

    board_size = (corners.width, corners.height)
    logger.debug("Finding chessboard corners (%s)...", corners)
    found, points = cv2.findChessboardCorners(gray, board_size, flags=cv2.CALIB_CB_ADAPTIVE_THRESH)

    if debug_dir is not None and points is not None:
        color = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
        cv2.drawChessboardCorners(color, board_size, points, found)
        write_image(Path(debug_dir) / "alignment-corners.jpg", color)

    if not found or points is None:
        raise CaptureError("Complete set of chessboard corners not detected")

    criteria = (cv2.TERM_CRITERIA_COUNT + cv2.TERM_CRITERIA_EPS, 30, 0.1)
    points = cv2.cornerSubPix(gray, points, (corners.width, corners.height), (-1, -1), criteria)
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)
