from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import numpy as np

from warpcal.api.remote import post_image, send_command
from warpcal.capture.pattern import chessboard_image, locate_chessboard_corners, prepare_photo
from warpcal.capture.photo import PhotoSource, capture_photo
from warpcal.config import CameraPose, Resolution
from warpcal.core.camera import CameraCalibration, FittedVirtualCamera, PhysicalCamera, VirtualCamera
from warpcal.core.fitting import fit_direction, fit_fov
from warpcal.core.image_io import decode_photo, encode_image
from warpcal.core.surfaces import SurfaceType, locate_scene_coords
from warpcal.core.warp import project_scene_points

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    camera: FittedVirtualCamera
    scene: np.ndarray  # (N,3)
    warp: np.ndarray  # (N,2), index-aligned with scene
    warp_res: Resolution

    def to_document(self) -> dict[str, Any]:
        return calibration_document(self)


def calibration_document(result: CalibrationResult) -> dict[str, Any]:
    """Final calibration JSON object sent to the renderer."""
    logger.debug("scene has %d coordinates", result.scene.shape[0])
    logger.debug("warp has %d coordinates", result.warp.shape[0])
    cam = result.camera
    return {
        "fov": float(cam.fov_deg),
        "eye": [float(v) for v in cam.eye],
        "lookAt": [float(v) for v in cam.look_at],
        "up": [float(v) for v in cam.up],
        "warpResX": int(result.warp_res.width),
        "warpResY": int(result.warp_res.height),
        "warp": [[float(u), float(v)] for u, v in result.warp.tolist()],
        "scene": [[float(x), float(y), float(z)] for x, y, z in result.scene.tolist()],
    }


def calibrate_from_image_points(
    *,
    surface: SurfaceType,
    physical_camera: PhysicalCamera,
    image_points: np.ndarray,
    eye: np.ndarray,
    warp_res: Resolution,
    projector_res: Resolution,
) -> CalibrationResult:
    """
    Geometric part of the calibration: image points -> scene coordinates ->
    fitted virtual camera -> warp coordinates.
    """
    image_points = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
    scene = locate_scene_coords(surface, physical_camera, image_points)

    virtual = VirtualCamera(eye=np.asarray(eye, dtype=np.float64).reshape(3))
    aimed = fit_direction(virtual, surface, physical_camera, image_points)
    fitted = fit_fov(aimed, scene)

    warp = project_scene_points(scene, fitted, projector_res.aspect_ratio)
    return CalibrationResult(camera=fitted, scene=scene, warp=warp, warp_res=warp_res)


def _wait_for_enter() -> None:
    input()


def detect_image_points(
    *,
    calibration: CameraCalibration,
    photo_source: PhotoSource,
    warp_res: Resolution,
    projector_res: Resolution,
    control_url: str | None = None,
    debug_dir: Path | None = None,
    wait_for_operator: Callable[[], None] = _wait_for_enter,
) -> np.ndarray:
    """Show the chessboard, photograph it and return its corners (N,2) in photo pixels."""
    board = chessboard_image(warp_res, projector_res)
    if control_url is not None:
        post_image(control_url, encode_image(board, ".png"), "png")
    else:
        logger.info("Please display the full-screen chessboard pattern on the projector and press Enter")
        wait_for_operator()
        logger.info("Continuing...")

    photo = decode_photo(capture_photo(photo_source))
    gray = prepare_photo(photo, calibration, debug_dir=debug_dir)
    return locate_chessboard_corners(gray, warp_res, debug_dir=debug_dir)


def emit_calibration(document: dict[str, Any], post_to: str | None = None) -> None:
    if post_to is not None:
        send_command(post_to, "set_calibration", document)
    else:
        print(json.dumps(document, indent=2))


def produce_calibration(
    *,
    surface: SurfaceType,
    calibration: CameraCalibration,
    eye: np.ndarray,
    warp_res: Resolution,
    projector_res: Resolution,
    photo_source: PhotoSource,
    camera_pose: CameraPose | None = None,
    control_url: str | None = None,
    post_to: str | None = None,
    debug_dir: Path | None = None,
    wait_for_operator: Callable[[], None] = _wait_for_enter,
) -> dict[str, Any]:
    """
    Run a full calibration and emit the resulting document (stdout, or the
    `set_calibration` command when `post_to` is given). Any failure aborts the
    run with a CalibrationError.
    """
    physical_camera = PhysicalCamera(pose=camera_pose or CameraPose(), calibration=calibration)
    logger.info("projector resolution is %s", projector_res)

    image_points = detect_image_points(
        calibration=calibration,
        photo_source=photo_source,
        warp_res=warp_res,
        projector_res=projector_res,
        control_url=control_url,
        debug_dir=debug_dir,
        wait_for_operator=wait_for_operator,
    )
    result = calibrate_from_image_points(
        surface=surface,
        physical_camera=physical_camera,
        image_points=image_points,
        eye=eye,
        warp_res=warp_res,
        projector_res=projector_res,
    )
    document = result.to_document()
    emit_calibration(document, post_to)
    return document
