"""Tests for the SceneManager builder and JSON scene files."""

import json

import numpy as np
import pytest


class TestMaterialRegistry:
    """Test unified material IDs."""

    def test_ids_are_sequential(self):
        from src.pathtracer.scene.manager import MaterialType, SceneManager

        manager = SceneManager()
        a = manager.add_lambertian_material((0.5, 0.5, 0.5))
        b = manager.add_emitter_material((2.0, 2.0, 2.0), focus=1.0)
        c = manager.add_gloss_wrap_material((1, 1, 1), (0.5, 0.1, 0.1))
        assert (a, b, c) == (0, 1, 2)
        assert manager.get_material_count() == 3
        assert manager.get_material_type(b) == MaterialType.EMITTER
        assert manager.get_material_info(5) is None

    def test_checkerboard_references_registered_children(self):
        from src.pathtracer.materials.checkerboard import Checkerboard
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager()
        white = manager.add_lambertian_material((0.9, 0.9, 0.9))
        black = manager.add_lambertian_material((0.1, 0.1, 0.1))
        checker = manager.add_checkerboard_material(0.5, white, black)
        material = manager.get_material_info(checker).material
        assert isinstance(material, Checkerboard)
        assert material.material_a is manager.get_material_info(white).material

    def test_checkerboard_with_unknown_child_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager()
        white = manager.add_lambertian_material((0.9, 0.9, 0.9))
        with pytest.raises(ValueError, match="Invalid material_id"):
            manager.add_checkerboard_material(0.5, white, 7)

    def test_invalid_material_parameters_raise(self):
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager()
        with pytest.raises(ValueError):
            manager.add_lambertian_material((1.2, 0.5, 0.5))
        assert manager.get_material_count() == 0


class TestShapes:
    """Test shape registration and scene building."""

    def test_shape_with_unknown_material_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager().add_sphere((0, 0, 0), 1.0, material_id=0)

    def test_build_preserves_order(self):
        from src.pathtracer.geometry.cuboid import Cuboid
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager()
        shape_index, grey = manager.add_lambertian_sphere((0, 0, 1), 1.0, (0.5, 0.5, 0.5))
        manager.add_plane((0, 0, 1), (1, 0, 0), (0, 0, 0), grey)
        manager.add_cuboid((2, 0, 0), (-0.5, -0.5, 0), (0.5, 0.5, 1), grey)
        scene = manager.build()

        assert shape_index == 0
        assert manager.get_shape_count() == 3
        assert [type(s) for s in scene.shapes] == [Sphere, Plane, Cuboid]

    def test_background_selection(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager(background="black")
        scene = manager.build()
        assert np.array_equal(scene.background(Ray(vec3(0, 0, 0), vec3(0, 0, 1))), np.zeros(3))

    def test_unknown_background_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError):
            SceneManager(background="starfield")

    def test_clear(self):
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager()
        manager.add_lambertian_sphere((0, 0, 1), 1.0, (0.5, 0.5, 0.5))
        manager.clear()
        assert manager.get_shape_count() == 0
        assert manager.get_material_count() == 0


class TestSerialization:
    """Test dict and JSON round trips."""

    @pytest.fixture
    def populated(self):
        from src.pathtracer.core.ray import axis_angle_matrix
        from src.pathtracer.scene.manager import SceneManager

        manager = SceneManager(background="black")
        white = manager.add_lambertian_material((0.9, 0.9, 0.9))
        dark = manager.add_lambertian_material((0.1, 0.1, 0.1))
        checker = manager.add_checkerboard_material(0.5, white, dark)
        metal = manager.add_brushed_metal_material(0.5, 0.3, 0.02, (0.9, 0.85, 0.7))
        lamp = manager.add_emitter_material((4.0, 4.0, 4.0), focus=2.0)
        manager.add_plane((0, 0, 1), (1, 0, 0), (0, 0, 0), checker)
        manager.add_cuboid(
            (0, 0, 0), (-1, -1, 0), (1, 1, 1), metal,
            orientation=axis_angle_matrix((0, 0, 1), 0.4),
        )
        manager.add_sphere((0, 0, 3), 0.5, lamp)
        return manager

    def test_to_dict_is_json_serializable(self, populated):
        data = populated.to_dict()
        text = json.dumps(data)
        assert json.loads(text)["background"] == "black"
        assert [m["type"] for m in data["materials"]] == [
            "lambertian", "lambertian", "checkerboard", "brushed_metal", "emitter",
        ]
        assert [s["type"] for s in data["shapes"]] == ["plane", "cuboid", "sphere"]

    def test_dict_round_trip(self, populated):
        from src.pathtracer.scene.manager import SceneManager

        data = populated.to_dict()
        restored = SceneManager()
        restored.from_dict(json.loads(json.dumps(data)))
        assert restored.to_dict() == data
        assert restored.background == "black"

    def test_round_trip_preserves_geometry(self, populated):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.manager import SceneManager

        restored = SceneManager()
        restored.from_dict(populated.to_dict())
        ray = Ray(vec3(5, 0.1, 0.5), vec3(-1, 0, 0))
        a = populated.build().nearest_hit(ray)
        b = restored.build().nearest_hit(ray)
        assert a.distance == pytest.approx(b.distance)
        assert np.allclose(a.world_normal, b.world_normal)

    def test_failed_load_keeps_previous_contents(self, populated):
        """A bad entry halfway through leaves the manager as it was."""
        before = populated.to_dict()
        data = {
            "background": "sky",
            "materials": [{"type": "lambertian", "albedo": [0.1, 0.1, 0.1]}],
            "shapes": [
                {"type": "sphere", "center": [0, 0, 0], "radius": 1.0, "material_id": 0},
                {"type": "sphere", "center": [0, 0, 3], "radius": 1.0, "material_id": 7},
            ],
        }
        with pytest.raises(ValueError, match="Invalid material_id"):
            populated.from_dict(data)
        assert populated.to_dict() == before
        assert populated.background == "black"
        assert populated.materials[0].params["albedo"] == [0.9, 0.9, 0.9]

    def test_camera_round_trip(self, populated):
        from src.pathtracer.camera.pinhole import PinholeCamera
        from src.pathtracer.scene.manager import SceneManager

        populated.set_camera(PinholeCamera(eye=(5, 1, 2), target=(0, 0, 0.5), vfov=30.0))
        data = json.loads(json.dumps(populated.to_dict()))
        assert data["camera"] == {
            "eye": [5.0, 1.0, 2.0],
            "target": [0.0, 0.0, 0.5],
            "up": [0.0, 0.0, 1.0],
            "vfov": 30.0,
        }
        restored = SceneManager()
        restored.from_dict(data)
        assert restored.camera is not None
        assert restored.camera.vfov == 30.0
        assert np.allclose(restored.camera.basis, populated.camera.basis)

    def test_scene_without_camera_has_no_camera_key(self, populated):
        from src.pathtracer.scene.manager import SceneManager

        assert "camera" not in populated.to_dict()
        restored = SceneManager()
        restored.from_dict(populated.to_dict())
        assert restored.camera is None

    def test_camera_missing_eye_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError, match="eye"):
            SceneManager().from_dict({"camera": {"target": [0, 0, 0]}})

    def test_unknown_material_type_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        with pytest.raises(ValueError, match="Unknown material type"):
            SceneManager().from_dict({"materials": [{"type": "velvet"}]})

    def test_unknown_shape_type_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        data = {
            "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
            "shapes": [{"type": "torus", "material_id": 0}],
        }
        with pytest.raises(ValueError, match="Unknown shape type"):
            SceneManager().from_dict(data)

    def test_missing_field_raises(self):
        from src.pathtracer.scene.manager import SceneManager

        data = {
            "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}],
            "shapes": [{"type": "sphere", "center": [0, 0, 0], "material_id": 0}],
        }
        with pytest.raises(ValueError, match="radius"):
            SceneManager().from_dict(data)

    def test_file_round_trip(self, populated, tmp_path):
        from src.pathtracer.scene.manager import load_scene_file, save_scene_file

        path = tmp_path / "scenes" / "demo.json"
        save_scene_file(populated, path)
        assert path.exists()
        loaded = load_scene_file(path)
        assert loaded.to_dict() == populated.to_dict()

    def test_invalid_json_raises_value_error(self, tmp_path):
        from src.pathtracer.scene.manager import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError):
            load_scene_file(path)
