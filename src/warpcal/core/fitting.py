from __future__ import annotations

import logging

import numpy as np

from warpcal.core.camera import AimedVirtualCamera, FittedVirtualCamera, PhysicalCamera, VirtualCamera
from warpcal.core.geometry import transform_points
from warpcal.core.surfaces import SurfaceType, camera_to_scene
from warpcal.errors import GeometryError

logger = logging.getLogger(__name__)

# Slightly over 2x the half-angle so the outermost points do not sit exactly on the frustum edge.
FOV_MARGIN = 2.001


def fit_look_at(
    surface: SurfaceType,
    physical_camera: PhysicalCamera,
    image_points: np.ndarray,
) -> np.ndarray:
    """
    Look-at target (3,) for the virtual camera: the centroid of the image
    points, cast onto the surface.
    """
    image_points = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
    if image_points.shape[0] == 0:
        raise GeometryError("cannot fit a viewing direction without image points")

    center = image_points.mean(axis=0)
    logger.debug("Projection area center point is %s", center.tolist())

    cal = physical_camera.calibration
    return camera_to_scene(surface, physical_camera, center, cal.image_width, cal.image_height)


def fit_direction(
    camera: VirtualCamera,
    surface: SurfaceType,
    physical_camera: PhysicalCamera,
    image_points: np.ndarray,
) -> AimedVirtualCamera:
    return camera.aim(fit_look_at(surface, physical_camera, image_points))


def max_view_angle(camera: AimedVirtualCamera, scene_coords: np.ndarray) -> float:
    """
    Largest vertical angle (radians) between the view axis and any scene point,
    measured in the virtual camera's view space.
    """
    scene_coords = np.asarray(scene_coords, dtype=np.float64).reshape(-1, 3)
    if scene_coords.shape[0] == 0:
        raise GeometryError("cannot fit a field of view without scene coordinates")
    eye_relative = transform_points(camera.view_matrix(), scene_coords)
    rad = np.arctan2(np.abs(eye_relative[:, 1]), np.abs(eye_relative[:, 2]))
    return float(np.max(rad))


def fit_fov(camera: AimedVirtualCamera, scene_coords: np.ndarray) -> FittedVirtualCamera:
    """Vertical field of view enclosing every scene point, widened by FOV_MARGIN."""
    fov_deg = float(np.degrees(max_view_angle(camera, scene_coords))) * FOV_MARGIN
    fitted = camera.with_fov(fov_deg)
    logger.info(
        "eyePoint = %s lookAt = %s fovY = %.4f",
        fitted.eye.tolist(),
        fitted.look_at.tolist(),
        fitted.fov_deg,
    )
    return fitted
