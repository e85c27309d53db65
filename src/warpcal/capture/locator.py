from __future__ import annotations

import logging

import numpy as np
from scipy.spatial.transform import Rotation

from warpcal.config import CameraPose
from warpcal.core.camera import CameraCalibration
from warpcal.errors import CaptureError

logger = logging.getLogger(__name__)


def marker_object_points(marker_size: float) -> np.ndarray:
    """
    Corners (4,3) of a square marker centred at the origin in the XY plane,
    in ArUco detection order (top-left, top-right, bottom-right, bottom-left).
    """
    s = 0.5 * float(marker_size)
    return np.array([[-s, s, 0.0], [s, s, 0.0], [s, -s, 0.0], [-s, -s, 0.0]], dtype=np.float64)


def camera_pose_from_marker(rvec: np.ndarray, tvec: np.ndarray) -> CameraPose:
    """
    Convert a marker-to-camera transform (X_cam = R X_marker + t) into the
    camera pose expressed in the marker frame.
    """
    R = Rotation.from_rotvec(np.asarray(rvec, dtype=np.float64).reshape(3)).as_matrix()
    t = np.asarray(tvec, dtype=np.float64).reshape(3)
    return CameraPose(
        position=-R.T @ t,
        direction=R.T @ np.array([0.0, 0.0, 1.0]),
        up=R.T @ np.array([0.0, -1.0, 0.0]),
    )


def locate_aruco_marker(
    calibration: CameraCalibration,
    image_bgr: np.ndarray,
    marker_size: float,
    dictionary: str = "DICT_6X6_250",
) -> CameraPose:
    """
    Camera pose relative to a single ArUco marker lying at the origin and
    facing +Z. `marker_size` is the marker side length in world units.
    """
    import cv2  # type: ignore
    import cv2.aruco as aruco  # type: ignore

    dict_id = getattr(aruco, dictionary, None)
    if dict_id is None:
        raise ValueError(f"Unknown aruco dictionary: {dictionary}")
    detector = aruco.ArucoDetector(aruco.getPredefinedDictionary(dict_id), aruco.DetectorParameters())

    gray = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2GRAY) if image_bgr.ndim == 3 else image_bgr
    marker_corners, marker_ids, _rej = detector.detectMarkers(gray)
    if marker_ids is None or len(marker_ids) == 0:
        raise CaptureError("no ArUco marker detected")
    if len(marker_ids) > 1:
        logger.warning("%d markers detected, using id %d", len(marker_ids), int(marker_ids[0][0]))

    img_pts = np.asarray(marker_corners[0], dtype=np.float64).reshape(4, 2)
    ok, rvec, tvec = cv2.solvePnP(
        marker_object_points(marker_size),
        img_pts,
        calibration.camera_matrix,
        calibration.distortion_coefficients,
        flags=cv2.SOLVEPNP_IPPE_SQUARE,
    )
    if not ok:
        raise CaptureError("marker pose estimation failed")

    pose = camera_pose_from_marker(rvec, tvec)
    logger.info("Camera located at %s looking along %s", pose.position.tolist(), pose.direction.tolist())
    return pose
