from __future__ import annotations

import logging

import numpy as np

from warpcal.core.camera import FittedVirtualCamera
from warpcal.core.geometry import project_to_unit

logger = logging.getLogger(__name__)


def project_scene_points(
    scene_coords: np.ndarray,
    camera: FittedVirtualCamera,
    projector_aspect_ratio: float,
) -> np.ndarray:
    """
    Normalized projector coordinates (N,2) of scene points (N,3), index-aligned.

    Points landing outside [0,1]^2 are kept; each one is reported as a warning.
    A point in the plane of the eye raises GeometryError.
    """
    scene_coords = np.asarray(scene_coords, dtype=np.float64).reshape(-1, 3)
    uv = project_to_unit(
        scene_coords,
        camera.view_matrix(),
        camera.projection_matrix(projector_aspect_ratio),
    )
    off = ~np.all((uv >= 0.0) & (uv <= 1.0), axis=1)
    for i in np.flatnonzero(off).tolist():
        logger.warning(
            "scene point %d %s projects off screen at %s",
            i,
            scene_coords[i].tolist(),
            uv[i].tolist(),
        )
    return uv


def project_scene_point(
    scene_point: np.ndarray,
    camera: FittedVirtualCamera,
    projector_aspect_ratio: float,
) -> np.ndarray:
    """Single-point form of `project_scene_points`; returns (2,)."""
    return project_scene_points(np.asarray(scene_point).reshape(1, 3), camera, projector_aspect_ratio)[0]
