"""Tests for sdfmarch/scene.py — descriptions, catalogue, camera and Scene."""

import dataclasses
import json

import numpy as np
import numpy.testing as npt
import pytest

from sdfmarch import (
    MandelbulbIterations, Scene, SceneDescription, SceneKind, Sphere,
    build_scene, camera_basis, load_description, simple_lighting, simple_lighting_2,
)


def _p3(*xyz) -> np.ndarray:
    return np.array([list(xyz)], dtype=np.float32)


# ===========================================================================
# SceneDescription
# ===========================================================================

class TestSceneDescription:
    def test_defaults(self):
        d = SceneDescription()
        assert d.sdf_name == "default"
        assert (d.width, d.height) == (640, 480)
        assert d.camera_pos == (0.5, 0.5, -2.0)
        assert d.look_at == (0.0, 0.0, 0.0)
        assert d.lighting_name == "default"

    def test_from_dict_aliases(self):
        d = SceneDescription.from_dict({"sdf": "torus", "lighting": "lighting2"})
        assert d.sdf_name == "torus"
        assert d.lighting_name == "lighting2"

    def test_scene_alias(self):
        assert SceneDescription.from_dict({"scene": "gyroid"}).sdf_name == "gyroid"

    def test_field_name_wins_over_alias(self):
        d = SceneDescription.from_dict({"sdf": "torus", "sdf_name": "fbm"})
        assert d.sdf_name == "fbm"
        d = SceneDescription.from_dict({"sdf_name": "fbm", "sdf": "torus"})
        assert d.sdf_name == "fbm"

    def test_unknown_keys_ignored(self):
        d = SceneDescription.from_dict({"fov": 90, "width": 32})
        assert d.width == 32

    def test_vectors_become_float_tuples(self):
        d = SceneDescription.from_dict({"camera_pos": [1, 2, 3], "look_at": [0, 1, 0]})
        assert d.camera_pos == (1.0, 2.0, 3.0)
        assert all(isinstance(c, float) for c in d.camera_pos)
        assert d.look_at == (0.0, 1.0, 0.0)

    def test_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SceneDescription().width = 10


class TestLoadDescription:
    def test_reads_json(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text(json.dumps({"sdf": "mandelbulb", "width": 64, "height": 48}))
        d = load_description(path)
        assert d.sdf_name == "mandelbulb"
        assert (d.width, d.height) == (64, 48)

    def test_accepts_str_path(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text("{}")
        assert load_description(str(path)) == SceneDescription()

    def test_non_object_rejected(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            load_description(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "scene.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_description(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_description(tmp_path / "missing.json")


# ===========================================================================
# Catalogue
# ===========================================================================

class TestSceneKind:
    @pytest.mark.parametrize(
        "name, kind",
        [
            ("default", SceneKind.EXAMPLE),
            ("example", SceneKind.EXAMPLE),
            ("torus", SceneKind.TORUS),
            ("mandelbulb", SceneKind.MANDELBULB),
            ("mandlebulb", SceneKind.MANDELBULB),
            ("gyroid", SceneKind.GYROID),
            ("sphere_grid", SceneKind.SPHERE_GRID),
            ("fbm", SceneKind.FBM),
        ],
    )
    def test_names(self, name, kind):
        assert SceneKind.from_name(name) is kind

    @pytest.mark.parametrize("name", ["", "cube", "Torus"])
    def test_unknown_falls_back_to_example(self, name):
        assert SceneKind.from_name(name) is SceneKind.EXAMPLE


class TestCatalogue:
    def test_example_sphere_centre(self):
        npt.assert_allclose(SceneKind.EXAMPLE.geometry().sdf(_p3(0, 0, 3)), [-2.0], atol=1e-6)

    def test_example_floor(self):
        npt.assert_allclose(SceneKind.EXAMPLE.geometry().sdf(_p3(0, 1, -5)), [1.0], atol=1e-6)

    def test_torus_tube_centre(self):
        npt.assert_allclose(SceneKind.TORUS.geometry().sdf(_p3(1.5, 2.5, 0)), [-0.4], atol=1e-6)

    def test_mandelbulb_far_point_positive(self):
        assert SceneKind.MANDELBULB.geometry().sdf(_p3(20, 0, 0))[0] > 0

    def test_gyroid_clipped_by_plane(self):
        npt.assert_allclose(SceneKind.GYROID.geometry().sdf(_p3(0, 0, 0)), [4.0], atol=1e-6)

    def test_sphere_grid_clipped_by_floor(self):
        npt.assert_allclose(
            SceneKind.SPHERE_GRID.geometry().sdf(_p3(0.2, 3.0, 0.4)), [3.0], atol=1e-6
        )

    def test_fbm_near_floor_distance(self):
        d = SceneKind.FBM.geometry().sdf(_p3(0, 5, 0))[0]
        assert 4.5 < d <= 5.0


# ===========================================================================
# Camera
# ===========================================================================

class TestCameraBasis:
    @pytest.mark.parametrize(
        "camera_pos, look_at",
        [
            ((0.5, 0.5, -2.0), (0.0, 0.0, 0.0)),
            ((0.0, 5.0, 0.0), (0.0, 0.0, 0.0)),
            ((0.0, -5.0, 0.0), (0.0, 0.0, 0.0)),
            ((0.0, 0.0, -5.0), (0.0, 0.0, 0.0)),
            ((3.0, 0.1, 0.0), (0.0, 0.0, 0.0)),
            ((1.0, 2.0, 3.0), (-1.0, 0.0, 2.0)),
            ((0.01, 4.0, 0.02), (0.0, 0.0, 0.0)),
        ],
    )
    def test_orthonormal(self, camera_pos, look_at):
        basis = camera_basis(camera_pos, look_at)
        for v in basis:
            assert np.isfinite(v).all()
            npt.assert_allclose(np.linalg.norm(v), 1.0, atol=1e-5)
        d, r, u = basis
        assert abs(np.dot(d, r)) < 1e-5
        assert abs(np.dot(d, u)) < 1e-5
        assert abs(np.dot(r, u)) < 1e-5

    def test_direction_points_at_target(self):
        d, _, _ = camera_basis((0.0, 0.0, -5.0), (0.0, 0.0, 0.0))
        npt.assert_allclose(d, [0.0, 0.0, 1.0], atol=1e-6)

    def test_straight_down(self):
        d, r, u = camera_basis((0.0, 5.0, 0.0), (0.0, 0.0, 0.0))
        npt.assert_allclose(d, [0.0, -1.0, 0.0], atol=1e-6)
        npt.assert_allclose(u, [0.0, 0.0, -1.0], atol=1e-6)
        npt.assert_allclose(r, [1.0, 0.0, 0.0], atol=1e-6)


# ===========================================================================
# Scene construction
# ===========================================================================

def _scene(**overrides) -> Scene:
    fields = dict(
        geometry=Sphere(1.0),
        lighting=simple_lighting,
        origin=(0.0, 0.0, -5.0),
        direction=(0.0, 0.0, 1.0),
        screen_x=(1.0, 0.0, 0.0),
        screen_y=(0.0, 1.0, 0.0),
        width=8,
        height=6,
    )
    fields.update(overrides)
    return Scene(**fields)


class TestScene:
    def test_vectors_stored_as_float32(self):
        s = _scene()
        assert s.origin.dtype == np.float32
        assert s.direction.shape == (3,)

    def test_vectors_read_only(self):
        s = _scene()
        with pytest.raises(ValueError):
            s.origin[0] = 1.0

    def test_caller_array_untouched(self):
        origin = np.array([0.0, 0.0, -5.0], dtype=np.float32)
        _scene(origin=origin)
        assert origin.flags.writeable

    def test_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            _scene().width = 10

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_steps": 0},
            {"max_distance": 0.0},
            {"epsilon": 0.0},
            {"epsilon": -1e-3},
            {"width": 0},
            {"height": -1},
        ],
    )
    def test_invalid_parameters(self, overrides):
        with pytest.raises(ValueError):
            _scene(**overrides)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"screen_x": (1.0, 0.0, 0.5)},
            {"screen_y": (0.0, 2.0, 0.0)},
            {"screen_x": (0.0, 1.0, 0.0)},
            {"direction": (0.0, 0.6, 0.8)},
        ],
    )
    def test_skewed_basis_rejected(self, overrides):
        with pytest.raises(ValueError, match="orthonormal"):
            _scene(**overrides)

    def test_camera_basis_accepted(self):
        d, r, u = camera_basis((0.5, 0.5, -2.0), (0.0, 0.0, 0.0))
        s = _scene(direction=d, screen_x=r, screen_y=u)
        npt.assert_allclose(s.direction, d)


class TestBuildScene:
    def test_defaults(self):
        s = build_scene(SceneDescription())
        assert (s.width, s.height) == (640, 480)
        assert s.lighting is simple_lighting
        assert (s.max_steps, s.max_distance, s.epsilon) == (100, 255.0, 0.001)
        npt.assert_allclose(s.origin, [0.5, 0.5, -2.0])

    def test_auxiliary_is_mandelbulb_iterations(self):
        s = build_scene(SceneDescription(sdf_name="torus"))
        assert isinstance(s.auxiliary, MandelbulbIterations)

    def test_lighting2_selected(self):
        s = build_scene(SceneDescription(lighting_name="lighting2"))
        assert s.lighting is simple_lighting_2

    def test_unknown_names_fall_back(self):
        s = build_scene(SceneDescription(sdf_name="nope", lighting_name="nope"))
        p = np.stack(np.meshgrid(*[np.linspace(-3, 3, 5, dtype=np.float32)] * 3), axis=-1)
        npt.assert_array_equal(s.geometry.sdf(p), SceneKind.EXAMPLE.geometry().sdf(p))
        assert s.lighting is simple_lighting

    def test_camera_basis_used(self):
        desc = SceneDescription(camera_pos=(0.0, 5.0, 0.0), look_at=(0.0, 0.0, 0.0))
        s = build_scene(desc)
        npt.assert_allclose(s.direction, [0.0, -1.0, 0.0], atol=1e-6)
