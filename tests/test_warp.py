from __future__ import annotations

import logging

import numpy as np
import pytest

from warpcal.core.camera import VirtualCamera
from warpcal.core.fitting import fit_fov
from warpcal.core.warp import project_scene_point, project_scene_points
from warpcal.errors import GeometryError


def _fitted(scene: np.ndarray):
    aimed = VirtualCamera(eye=np.zeros(3)).aim(np.array([0.0, 0.0, -5.0]))
    return fit_fov(aimed, scene)


def test_on_axis_point_projects_to_center():
    camera = _fitted(np.array([[0.0, 1.0, -5.0]]))
    uv = project_scene_point(np.array([0.0, 0.0, -3.0]), camera, 16.0 / 9.0)
    assert np.allclose(uv, [0.5, 0.5])


def test_point_at_max_angle_lands_on_border():
    scene = np.array([[0.0, 1.0, -5.0], [0.0, -0.5, -5.0]])
    camera = _fitted(scene)
    uv = project_scene_points(scene, camera, 1.0)
    assert uv[0, 0] == pytest.approx(0.5)
    # margin keeps the outermost point just inside the top edge
    assert 0.0 <= uv[0, 1] < 1e-3
    assert 0.5 < uv[1, 1] < 1.0


def test_output_is_index_aligned():
    rng = np.random.default_rng(1)
    scene = np.stack([rng.uniform(-1, 1, 25), rng.uniform(-1, 1, 25), np.full(25, -5.0)], axis=1)
    camera = _fitted(scene)
    uv = project_scene_points(scene, camera, 4.0 / 3.0)
    assert uv.shape == (25, 2)
    for i in (0, 7, 24):
        assert np.allclose(uv[i], project_scene_point(scene[i], camera, 4.0 / 3.0))


def test_off_screen_point_is_warned_and_kept(caplog):
    camera = _fitted(np.array([[0.0, 0.2, -5.0]]))
    scene = np.array([[0.0, 0.0, -5.0], [4.0, 0.0, -5.0]])
    with caplog.at_level(logging.WARNING, logger="warpcal.core.warp"):
        uv = project_scene_points(scene, camera, 1.0)
    assert uv.shape == (2, 2)
    assert uv[1, 0] > 1.0
    assert "off screen" in caplog.text
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1


def test_aimed_camera_cannot_skip_fov_fit():
    aimed = VirtualCamera(eye=np.zeros(3)).aim(np.array([0.0, 0.0, -5.0]))
    assert not hasattr(aimed, "projection_matrix")
    with pytest.raises(GeometryError):
        aimed.with_fov(0.0)


def test_aim_rejects_target_at_eye():
    with pytest.raises(GeometryError):
        VirtualCamera(eye=np.ones(3)).aim(np.ones(3))


def test_point_in_eye_plane_is_rejected():
    camera = VirtualCamera(eye=np.zeros(3)).aim(np.array([0.0, 0.0, -5.0])).with_fov(60.0)
    scene = np.array([[0.0, 0.5, -5.0], [3.0, 0.0, 0.0]])
    with pytest.raises(GeometryError, match=r"\[1\]"):
        project_scene_points(scene, camera, 1.0)
