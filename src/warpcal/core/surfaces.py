from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import numpy as np

from warpcal.config import _require, load_json_document, parse_float, parse_vec3
from warpcal.core.camera import PhysicalCamera
from warpcal.core.geometry import normalize
from warpcal.errors import ConfigurationError, GeometryError, NoIntersectionError

SURFACE_SCHEMA = "warpcal.surface.v0"

_EPS = 1e-9


@dataclass(frozen=True)
class Plane:
    point: np.ndarray  # any point on the plane
    normal: np.ndarray


@dataclass(frozen=True)
class Sphere:
    center: np.ndarray
    radius: float


@dataclass(frozen=True)
class Cylinder:
    """
    Right circular cylinder around `axis` through `center`.

    `height` bounds the surface along the axis, measured from `center`; None
    means infinitely long.
    """

    center: np.ndarray
    radius: float
    axis: np.ndarray
    height: tuple[float, float] | None = None


SurfaceType = Union[Plane, Sphere, Cylinder]


def camera_to_scene(
    surface: SurfaceType,
    camera: PhysicalCamera,
    uv_px: np.ndarray,
    image_width: int,
    image_height: int,
) -> np.ndarray:
    """
    Cast a ray from the physical camera through pixel `uv_px` (in an undistorted
    photo of `image_width` x `image_height`) and return its (3,) intersection
    with `surface`.

    Raises NoIntersectionError if the ray misses the surface.
    """
    uv = np.asarray(uv_px, dtype=np.float64).reshape(2)
    u, v = float(uv[0]), float(uv[1])
    if not (0.0 <= u <= image_width and 0.0 <= v <= image_height):
        raise GeometryError(f"pixel ({u:.2f}, {v:.2f}) lies outside the {image_width}x{image_height} image")

    origin = camera.position
    direction = camera.pixel_ray(uv)[0]

    if isinstance(surface, Plane):
        t = _intersect_plane(surface, origin, direction)
    elif isinstance(surface, Sphere):
        t = _intersect_sphere(surface, origin, direction)
    elif isinstance(surface, Cylinder):
        t = _intersect_cylinder(surface, origin, direction)
    else:
        raise TypeError(f"unsupported surface type: {type(surface).__name__}")
    return origin + t * direction


def locate_scene_coords(
    surface: SurfaceType,
    camera: PhysicalCamera,
    image_points: np.ndarray,
) -> np.ndarray:
    """
    Map image points (N,2) to scene coordinates (N,3), index-aligned.

    A single miss aborts the whole resolution.
    """
    image_points = np.asarray(image_points, dtype=np.float64).reshape(-1, 2)
    cal = camera.calibration
    scene = np.empty((image_points.shape[0], 3), dtype=np.float64)
    for i, point in enumerate(image_points):
        try:
            scene[i] = camera_to_scene(surface, camera, point, cal.image_width, cal.image_height)
        except NoIntersectionError as e:
            raise NoIntersectionError(f"image point {i} at {point.tolist()}: {e}") from e
    return scene


def _intersect_plane(plane: Plane, origin: np.ndarray, direction: np.ndarray) -> float:
    n = normalize(plane.normal)
    denom = float(np.dot(n, direction))
    if abs(denom) < _EPS:
        raise NoIntersectionError("ray is parallel to the plane")
    t = float(np.dot(n, np.asarray(plane.point, dtype=np.float64) - origin)) / denom
    if t <= 0.0:
        raise NoIntersectionError("plane is behind the camera")
    return t


def _intersect_sphere(sphere: Sphere, origin: np.ndarray, direction: np.ndarray) -> float:
    oc = origin - np.asarray(sphere.center, dtype=np.float64)
    b = float(np.dot(direction, oc))
    c = float(np.dot(oc, oc)) - float(sphere.radius) ** 2
    disc = b * b - c
    if disc < 0.0:
        raise NoIntersectionError("ray misses the sphere")
    root = float(np.sqrt(disc))
    for t in (-b - root, -b + root):
        if t > _EPS:
            return t
    raise NoIntersectionError("sphere is behind the camera")


def _intersect_cylinder(cyl: Cylinder, origin: np.ndarray, direction: np.ndarray) -> float:
    axis = normalize(cyl.axis)
    oc = origin - np.asarray(cyl.center, dtype=np.float64)
    # Work in the plane perpendicular to the axis.
    o_perp = oc - float(np.dot(oc, axis)) * axis
    d_perp = direction - float(np.dot(direction, axis)) * axis
    a = float(np.dot(d_perp, d_perp))
    if a < _EPS:
        raise NoIntersectionError("ray is parallel to the cylinder axis")
    b = float(np.dot(o_perp, d_perp))
    c = float(np.dot(o_perp, o_perp)) - float(cyl.radius) ** 2
    disc = b * b - a * c
    if disc < 0.0:
        raise NoIntersectionError("ray misses the cylinder")
    root = float(np.sqrt(disc))
    for t in ((-b - root) / a, (-b + root) / a):
        if t <= _EPS:
            continue
        if cyl.height is not None:
            h = float(np.dot(oc + t * direction, axis))
            if not (cyl.height[0] <= h <= cyl.height[1]):
                continue
        return t
    raise NoIntersectionError("ray hits the cylinder outside its bounds or behind the camera")


def parse_surface(data: dict[str, Any]) -> SurfaceType:
    _require(data.get("schema_version") == SURFACE_SCHEMA, f"schema_version must be {SURFACE_SCHEMA}")
    kind = data.get("type")

    if kind == "plane":
        _require("point" in data and "normal" in data, "plane needs point and normal")
        normal = parse_vec3(data["normal"], "normal")
        _require(float(np.linalg.norm(normal)) > 0.0, "plane normal must be non-zero")
        return Plane(point=parse_vec3(data["point"], "point"), normal=normal)

    if kind in ("sphere", "cylinder"):
        _require("center" in data and "radius" in data, f"{kind} needs center and radius")
        radius = parse_float(data["radius"], f"{kind} radius")
        _require(radius > 0.0, f"{kind} radius must be > 0")
        center = parse_vec3(data["center"], "center")
        if kind == "sphere":
            return Sphere(center=center, radius=radius)

        axis = parse_vec3(data.get("axis", [0.0, 1.0, 0.0]), "axis")
        _require(float(np.linalg.norm(axis)) > 0.0, "cylinder axis must be non-zero")
        height = data.get("height")
        if height is not None:
            _require(isinstance(height, (list, tuple)) and len(height) == 2, "cylinder height must be [min, max]")
            lo, hi = parse_float(height[0], "cylinder height"), parse_float(height[1], "cylinder height")
            _require(lo < hi, "cylinder height must satisfy min < max")
            height = (lo, hi)
        return Cylinder(center=center, radius=radius, axis=axis, height=height)

    raise ConfigurationError(f"type must be plane|sphere|cylinder (got {kind!r})")


def load_surface(path: Path) -> SurfaceType:
    return parse_surface(load_json_document(path))
