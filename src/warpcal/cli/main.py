from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from warpcal.api.calibration_io import load_camera_calibration
from warpcal.api.pipeline import produce_calibration
from warpcal.capture.locator import locate_aruco_marker
from warpcal.capture.pattern import chessboard_image
from warpcal.capture.photo import capture_photo, photo_source_from_arg
from warpcal.config import camera_pose_to_dict, load_camera_pose, parse_resolution, parse_vec3, save_camera_pose
from warpcal.core.image_io import decode_photo, write_image
from warpcal.core.surfaces import load_surface
from warpcal.errors import CalibrationError

logger = logging.getLogger("warpcal")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="warpcal")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (logs go to stderr).",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    cal = sub.add_parser("calibrate", help="Photograph the projected chessboard and print the warp calibration JSON.")
    cal.add_argument("--surface", type=Path, required=True, help="Surface description (JSON).")
    cal.add_argument("--camera-calibration", type=Path, required=True, help="OpenCV camera calibration (XML/YAML).")
    cal.add_argument("--eye", type=str, required=True, help="Viewer eye position x,y,z.")
    cal.add_argument("--warp-res", type=str, default="8x6", help="Chessboard inner corners, e.g. 8x6.")
    cal.add_argument("--projector-res", type=str, default="1920x1080", help="Projector output resolution.")
    cal.add_argument("--control-url", type=str, default=None, help="Display controller used to show the pattern.")
    cal.add_argument(
        "--camera",
        type=str,
        default=None,
        help="Image file path or http camera URL (default: tethered camera via gphoto2).",
    )
    cal.add_argument("--camera-location", type=Path, default=None, help="Camera pose JSON (see locate-camera).")
    cal.add_argument("--post-to", type=str, default=None, help="Send set_calibration to this controller instead of printing.")
    cal.add_argument("--debug-dir", type=Path, default=None, help="Write intermediate images here.")

    loc = sub.add_parser("locate-camera", help="Locate the camera relative to a 6x6 ArUco marker at the origin.")
    loc.add_argument("--camera-calibration", type=Path, required=True)
    loc.add_argument("--marker-size", type=float, required=True, help="Marker side length in world units.")
    loc.add_argument("--camera", type=str, default=None)
    loc.add_argument("--out", type=Path, default=None, help="Write the camera pose JSON here.")

    board = sub.add_parser("chessboard", help="Render the calibration chessboard to an image file.")
    board.add_argument("--warp-res", type=str, default="8x6")
    board.add_argument("--projector-res", type=str, default="1920x1080")
    board.add_argument("--out", type=Path, required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return _run(args)
    except CalibrationError as e:
        logger.error("%s", e)
        return 1


def _run(args: argparse.Namespace) -> int:
    if args.cmd == "calibrate":
        produce_calibration(
            surface=load_surface(args.surface),
            calibration=load_camera_calibration(args.camera_calibration),
            eye=parse_vec3(args.eye, "eye"),
            warp_res=parse_resolution(args.warp_res),
            projector_res=parse_resolution(args.projector_res),
            photo_source=photo_source_from_arg(args.camera),
            camera_pose=load_camera_pose(args.camera_location) if args.camera_location else None,
            control_url=args.control_url,
            post_to=args.post_to,
            debug_dir=args.debug_dir,
        )
        return 0

    if args.cmd == "locate-camera":
        calibration = load_camera_calibration(args.camera_calibration)
        photo = decode_photo(capture_photo(photo_source_from_arg(args.camera)))
        pose = locate_aruco_marker(calibration, photo, args.marker_size)
        if args.out:
            save_camera_pose(args.out, pose)
            print(f"Wrote {args.out}")
        else:
            print(json.dumps(camera_pose_to_dict(pose), indent=2))
        return 0

    if args.cmd == "chessboard":
        img = chessboard_image(parse_resolution(args.warp_res), parse_resolution(args.projector_res))
        write_image(args.out, img)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
