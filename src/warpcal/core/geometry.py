from __future__ import annotations

import numpy as np

from warpcal.errors import GeometryError

NEAR_CLIP = 0.1
FAR_CLIP = 100.0


def normalize(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    n = float(np.linalg.norm(v))
    if not np.isfinite(n) or n < 1e-12:
        raise GeometryError("cannot normalize a zero-length vector")
    return v / n


def look_at_matrix(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """
    Right-handed view matrix (4,4): the camera sits at `eye`, looks at `target`
    and looks down its own -Z axis.
    """
    eye = np.asarray(eye, dtype=np.float64).reshape(3)
    f = normalize(np.asarray(target, dtype=np.float64).reshape(3) - eye)
    s = normalize(np.cross(f, np.asarray(up, dtype=np.float64).reshape(3)))
    u = np.cross(s, f)

    m = np.eye(4, dtype=np.float64)
    m[0, :3] = s
    m[1, :3] = u
    m[2, :3] = -f
    m[0, 3] = -float(np.dot(s, eye))
    m[1, 3] = -float(np.dot(u, eye))
    m[2, 3] = float(np.dot(f, eye))
    return m


def perspective_matrix(fovy_rad: float, aspect: float, near: float = NEAR_CLIP, far: float = FAR_CLIP) -> np.ndarray:
    """Right-handed perspective projection with clip-space depth in [-1, 1]."""
    t = float(np.tan(0.5 * float(fovy_rad)))
    m = np.zeros((4, 4), dtype=np.float64)
    m[0, 0] = 1.0 / (float(aspect) * t)
    m[1, 1] = 1.0 / t
    m[2, 2] = -(far + near) / (far - near)
    m[2, 3] = -(2.0 * far * near) / (far - near)
    m[3, 2] = -1.0
    return m


def transform_points(m: np.ndarray, xyz: np.ndarray) -> np.ndarray:
    """Apply a (4,4) matrix to (N,3) points, returning homogeneous (N,4) results."""
    xyz = np.asarray(xyz, dtype=np.float64).reshape(-1, 3)
    hom = np.concatenate([xyz, np.ones((xyz.shape[0], 1), dtype=np.float64)], axis=1)
    return (m @ hom.T).T


def project_to_unit(xyz: np.ndarray, view: np.ndarray, proj: np.ndarray) -> np.ndarray:
    """
    Project world points (N,3) through `view` and `proj` into normalized output
    coordinates (N,2) with the origin at the top-left and +Y pointing down.
    """
    clip = transform_points(proj @ view, xyz)
    w = clip[:, 3]
    degenerate = np.flatnonzero(np.abs(w) < 1e-12)
    if degenerate.size:
        raise GeometryError(f"points {degenerate.tolist()} lie in the eye plane and cannot be projected")
    ndc = clip[:, :3] / w[:, None]
    u = 0.5 * ndc[:, 0] + 0.5
    v = 0.5 - 0.5 * ndc[:, 1]
    return np.stack([u, v], axis=1)
