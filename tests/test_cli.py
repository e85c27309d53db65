from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

import warpcal.cli.main as cli
from warpcal.cli.main import main
from warpcal.config import CameraPose, load_camera_pose


def test_calibrate_with_missing_surface_exits_nonzero(tmp_path: Path):
    code = main(
        [
            "calibrate",
            "--surface",
            str(tmp_path / "missing.json"),
            "--camera-calibration",
            str(tmp_path / "camera.xml"),
            "--eye",
            "0,0,1",
        ]
    )
    assert code == 1


def test_calibrate_with_bad_resolution_exits_nonzero(tmp_path: Path, monkeypatch):
    surface = tmp_path / "surface.json"
    surface.write_text(
        json.dumps({"schema_version": "warpcal.surface.v0", "type": "plane", "point": [0, 0, -5], "normal": [0, 0, 1]}),
        encoding="utf-8",
    )
    monkeypatch.setattr(cli, "load_camera_calibration", lambda path: object())
    code = main(
        [
            "calibrate",
            "--surface",
            str(surface),
            "--camera-calibration",
            "camera.xml",
            "--eye",
            "0,0,1",
            "--warp-res",
            "eight-by-six",
        ]
    )
    assert code == 1


def test_calibrate_wires_arguments(tmp_path: Path, monkeypatch, calibration):
    surface = tmp_path / "surface.json"
    surface.write_text(
        json.dumps({"schema_version": "warpcal.surface.v0", "type": "plane", "point": [0, 0, -5], "normal": [0, 0, 1]}),
        encoding="utf-8",
    )
    photo = tmp_path / "shot.jpg"
    photo.write_bytes(b"jpeg")
    seen = {}
    monkeypatch.setattr(cli, "load_camera_calibration", lambda path: calibration)
    monkeypatch.setattr(cli, "produce_calibration", lambda **kw: seen.update(kw) or {})

    code = main(
        [
            "calibrate",
            "--surface",
            str(surface),
            "--camera-calibration",
            "camera.xml",
            "--eye",
            "0,1.5,2",
            "--warp-res",
            "9x7",
            "--projector-res",
            "1280x800",
            "--camera",
            str(photo),
            "--post-to",
            "http://display:8080",
        ]
    )
    assert code == 0
    assert np.allclose(seen["eye"], [0.0, 1.5, 2.0])
    assert (seen["warp_res"].width, seen["warp_res"].height) == (9, 7)
    assert seen["projector_res"].aspect_ratio == pytest.approx(1.6)
    assert seen["post_to"] == "http://display:8080"
    assert seen["camera_pose"] is None
    assert seen["calibration"] is calibration


def test_chessboard_command_writes_png(tmp_path: Path):
    pytest.importorskip("cv2")
    out = tmp_path / "board.png"
    assert main(["chessboard", "--warp-res", "4x3", "--projector-res", "320x240", "--out", str(out)]) == 0
    assert out.exists()


def test_calibrate_with_garbage_calibration_exits_nonzero(tmp_path: Path):
    pytest.importorskip("cv2")
    surface = tmp_path / "surface.json"
    surface.write_text(
        json.dumps({"schema_version": "warpcal.surface.v0", "type": "plane", "point": [0, 0, -5], "normal": [0, 0, 1]}),
        encoding="utf-8",
    )
    cal = tmp_path / "camera.xml"
    cal.write_text("this is not a calibration file\n", encoding="utf-8")
    code = main(["calibrate", "--surface", str(surface), "--camera-calibration", str(cal), "--eye", "0,0,1"])
    assert code == 1


def _patch_locator(monkeypatch, calibration, pose: CameraPose) -> dict:
    seen = {}

    def fake_locate(cal, photo, marker_size):
        seen.update(cal=cal, shape=photo.shape, marker_size=marker_size)
        return pose

    monkeypatch.setattr(cli, "load_camera_calibration", lambda path: calibration)
    monkeypatch.setattr(cli, "decode_photo", lambda data: np.zeros((480, 640, 3), dtype=np.uint8))
    monkeypatch.setattr(cli, "locate_aruco_marker", fake_locate)
    return seen


def test_locate_camera_prints_pose(tmp_path: Path, monkeypatch, capsys, calibration):
    photo = tmp_path / "marker.jpg"
    photo.write_bytes(b"jpeg")
    pose = CameraPose(position=np.array([0.0, 0.0, 4.0]), direction=np.array([0.0, 0.0, -1.0]), up=np.array([0.0, 1.0, 0.0]))
    seen = _patch_locator(monkeypatch, calibration, pose)

    code = main(["locate-camera", "--camera-calibration", "camera.xml", "--marker-size", "0.2", "--camera", str(photo)])
    assert code == 0
    assert seen["marker_size"] == pytest.approx(0.2)
    assert seen["cal"] is calibration
    doc = json.loads(capsys.readouterr().out)
    assert doc["schema_version"] == "warpcal.camera_pose.v0"
    assert doc["position"] == [0.0, 0.0, 4.0]
    assert doc["direction"] == [0.0, 0.0, -1.0]


def test_locate_camera_writes_pose_file(tmp_path: Path, monkeypatch, calibration):
    photo = tmp_path / "marker.jpg"
    photo.write_bytes(b"jpeg")
    pose = CameraPose(position=np.array([1.0, 2.0, 3.0]), direction=np.array([0.0, 0.0, -1.0]), up=np.array([0.0, 1.0, 0.0]))
    _patch_locator(monkeypatch, calibration, pose)
    out = tmp_path / "camera_pose.json"

    code = main(
        ["locate-camera", "--camera-calibration", "camera.xml", "--marker-size", "1", "--camera", str(photo), "--out", str(out)]
    )
    assert code == 0
    loaded = load_camera_pose(out)
    assert np.allclose(loaded.position, [1.0, 2.0, 3.0])
    assert np.allclose(loaded.up, [0.0, 1.0, 0.0])
