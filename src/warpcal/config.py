from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from warpcal.errors import ConfigurationError

CAMERA_POSE_SCHEMA = "warpcal.camera_pose.v0"

_RESOLUTION_RE = re.compile(r"(?P<width>\d+)x(?P<height>\d+)")


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigurationError(msg)


@dataclass(frozen=True)
class Resolution:
    width: int
    height: int

    @property
    def aspect_ratio(self) -> float:
        """Width over height."""
        return float(self.width) / float(self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def parse_resolution(text: str) -> Resolution:
    """Parse `"<width>x<height>"`, e.g. `"1920x1080"`."""
    m = _RESOLUTION_RE.fullmatch(text.strip())
    _require(m is not None, f"resolution must look like 1920x1080 (got {text!r})")
    width = int(m["width"])
    height = int(m["height"])
    _require(width > 0 and height > 0, f"resolution must be non-zero (got {text!r})")
    return Resolution(width=width, height=height)


def parse_vec3(value: Any, name: str = "vector") -> np.ndarray:
    """
    Accept `[x, y, z]` or the command-line form `"x,y,z"` and return a float64 (3,) array.
    """
    if isinstance(value, str):
        parts = [p for p in value.split(",") if p.strip()]
        try:
            value = [float(p) for p in parts]
        except ValueError as e:
            raise ConfigurationError(f"{name} must be three comma-separated numbers (got {value!r})") from e
    _require(isinstance(value, (list, tuple, np.ndarray)) and len(value) == 3, f"{name} must have 3 components")
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(3)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must hold numbers (got {value!r})") from e
    _require(bool(np.all(np.isfinite(arr))), f"{name} must be finite")
    return arr


def parse_float(value: Any, name: str) -> float:
    _require(not isinstance(value, bool), f"{name} must be a number (got {value!r})")
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number (got {value!r})") from e
    _require(bool(np.isfinite(out)), f"{name} must be finite")
    return out


@dataclass(frozen=True)
class CameraPose:
    """Physical camera placement in world space."""

    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0]))
    direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))


def parse_camera_pose(data: dict[str, Any]) -> CameraPose:
    _require(data.get("schema_version") == CAMERA_POSE_SCHEMA, f"schema_version must be {CAMERA_POSE_SCHEMA}")
    for key in ("position", "direction", "up"):
        _require(key in data, f"{key} is required")
    pose = CameraPose(
        position=parse_vec3(data["position"], "position"),
        direction=parse_vec3(data["direction"], "direction"),
        up=parse_vec3(data["up"], "up"),
    )
    _require(float(np.linalg.norm(pose.direction)) > 0.0, "direction must be non-zero")
    _require(float(np.linalg.norm(np.cross(pose.direction, pose.up))) > 1e-12, "up must not be parallel to direction")
    return pose


def camera_pose_to_dict(pose: CameraPose) -> dict[str, Any]:
    return {
        "schema_version": CAMERA_POSE_SCHEMA,
        "position": [float(v) for v in pose.position],
        "direction": [float(v) for v in pose.direction],
        "up": [float(v) for v in pose.up],
    }


def load_json_document(path: Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Missing {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path} is not valid JSON: {e}") from e
    _require(isinstance(data, dict), f"{path} must contain a JSON object")
    return data


def load_camera_pose(path: Path) -> CameraPose:
    return parse_camera_pose(load_json_document(path))


def save_camera_pose(path: Path, pose: CameraPose) -> Path:
    path = Path(path)
    path.write_text(json.dumps(camera_pose_to_dict(pose), indent=2), encoding="utf-8")
    return path
