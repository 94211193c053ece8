"""Unit tests for the SceneManager.

Tests cover:
- Material registration (Lambertian, Metal, Dielectric)
- Material type tracking and lookup, Python and kernel side
- Sphere addition and material sharing
- Scene serialization (to_config, from_config, to_dict, from_dict)
- Scene clearing
"""

import json

import pytest
import taichi as ti


@pytest.fixture
def fresh_scene():
    """Create a fresh SceneManager for each test."""
    from src.spheretracer.scene.manager import SceneManager

    scene = SceneManager()
    yield scene
    scene.clear()


class TestMaterialRegistration:
    """Tests for material registration."""

    def test_add_multiple_materials(self, fresh_scene):
        """Test material IDs are handed out in registration order across types."""
        id0 = fresh_scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
        id1 = fresh_scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)
        id2 = fresh_scene.add_dielectric_material(ior=1.5)
        id3 = fresh_scene.add_lambertian_material(albedo=(0.1, 0.8, 0.1))

        assert (id0, id1, id2, id3) == (0, 1, 2, 3)
        assert fresh_scene.get_material_count() == 4
        # Type-local indices
        assert fresh_scene.get_material_info(3).type_index == 1
        assert fresh_scene.get_material_info(2).type_index == 0

    def test_metal_fuzz_stored_clamped(self, fresh_scene):
        mat_id = fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5), fuzz=3.0)
        assert fresh_scene.get_material_info(mat_id).params["fuzz"] == 1.0

    def test_add_material_by_name(self, fresh_scene):
        from src.spheretracer.scene.manager import MaterialType

        metal = fresh_scene.add_material("Metal", albedo=[0.7, 0.6, 0.5], fuzz=0.2)
        glass = fresh_scene.add_material(MaterialType.DIELECTRIC)
        diffuse = fresh_scene.add_material("lambertian")

        assert fresh_scene.get_material_info(metal).params == {
            "albedo": (0.7, 0.6, 0.5),
            "fuzz": 0.2,
        }
        assert fresh_scene.get_material_info(glass).params == {"ior": 1.5}
        assert fresh_scene.get_material_info(diffuse).params == {"albedo": (0.5, 0.5, 0.5)}

        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.add_material("phong")

    def test_material_validation(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_lambertian_material(albedo=(1.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_metal_material(albedo=(0.5, -0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_dielectric_material(ior=0.5)
        assert fresh_scene.get_material_count() == 0


class TestMaterialTypeTracking:
    """Tests for material type lookup."""

    def test_get_material_type_python(self, fresh_scene):
        from src.spheretracer.scene.manager import MaterialType

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_metal_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_dielectric_material()

        assert fresh_scene.get_material_type_python(0) == MaterialType.LAMBERTIAN
        assert fresh_scene.get_material_type_python(1) == MaterialType.METAL
        assert fresh_scene.get_material_type_python(2) == MaterialType.DIELECTRIC
        assert fresh_scene.get_material_type_python(3) is None
        assert fresh_scene.get_material_info(-1) is None

    def test_get_material_type_in_kernel(self, fresh_scene):
        from src.spheretracer.scene.manager import (
            MaterialType,
            get_material_type,
            get_material_type_index,
        )

        fresh_scene.add_dielectric_material()
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        fresh_scene.add_lambertian_material(albedo=(0.2, 0.5, 0.5))

        types = ti.field(dtype=ti.i32, shape=4)
        indices = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            for k in range(4):
                types[k] = get_material_type(k)
                indices[k] = get_material_type_index(k)

        test_kernel()
        assert types[0] == int(MaterialType.DIELECTRIC)
        assert types[1] == int(MaterialType.LAMBERTIAN)
        assert types[2] == int(MaterialType.LAMBERTIAN)
        assert indices[2] == 1
        # Out of range
        assert types[3] == -1
        assert indices[3] == -1


class TestSphereAddition:
    """Tests for adding spheres."""

    def test_shared_material(self, fresh_scene):
        """Test several spheres can reference one material."""
        glass = fresh_scene.add_dielectric_material(ior=1.5)
        fresh_scene.add_sphere((0.0, 0.0, -1.0), 0.5, glass)
        fresh_scene.add_sphere((1.0, 0.0, -1.0), 0.5, glass)

        assert fresh_scene.get_sphere_count() == 2
        assert fresh_scene.get_material_count() == 1
        assert all(s.material_id == glass for s in fresh_scene.spheres)

    def test_invalid_material_id(self, fresh_scene):
        with pytest.raises(ValueError):
            fresh_scene.add_sphere((0.0, 0.0, 0.0), 1.0, material_id=0)
        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_sphere((0.0, 0.0, 0.0), 1.0, material_id=1)

    def test_invalid_radius(self, fresh_scene):
        mat = fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            fresh_scene.add_sphere((0.0, 0.0, 0.0), 0.0, mat)
        assert fresh_scene.get_sphere_count() == 0

    def test_convenience_methods(self, fresh_scene):
        from src.spheretracer.scene.manager import MaterialType

        s0, m0 = fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.3, 0.3))
        s1, m1 = fresh_scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), 0.3)
        s2, m2 = fresh_scene.add_dielectric_sphere((-1.0, 0.0, -1.0), 0.5, 1.33)

        assert (s0, s1, s2) == (0, 1, 2)
        assert (m0, m1, m2) == (0, 1, 2)
        assert fresh_scene.get_material_type_python(m1) == MaterialType.METAL

    def test_clear(self, fresh_scene):
        from src.spheretracer.materials.lambertian import get_lambertian_material_count

        fresh_scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.8, 0.3, 0.3))
        fresh_scene.clear()

        assert fresh_scene.get_sphere_count() == 0
        assert fresh_scene.get_material_count() == 0
        assert get_lambertian_material_count() == 0
        assert fresh_scene.spheres == []
        assert fresh_scene.materials == []


class TestSceneSerialization:
    """Tests for scene configuration round trips."""

    def _build(self, scene):
        glass = scene.add_dielectric_material(ior=1.5)
        scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.8, 0.8, 0.0))
        scene.add_metal_sphere((1.0, 0.0, -1.0), 0.5, (0.8, 0.6, 0.2), 0.3)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.45, glass)

    def test_to_config(self, fresh_scene):
        self._build(fresh_scene)
        config = fresh_scene.to_config()

        assert [m["type"] for m in config.materials] == ["dielectric", "lambertian", "metal"]
        assert config.materials[2]["fuzz"] == pytest.approx(0.3)
        assert config.materials[1]["albedo"] == [0.8, 0.8, 0.0]
        assert len(config.spheres) == 4
        assert config.spheres[3] == {
            "center": [-1.0, 0.0, -1.0],
            "radius": 0.45,
            "material_id": 0,
        }

    def test_dict_is_json_serializable_and_round_trips(self, fresh_scene):
        from src.spheretracer.scene.manager import SceneManager

        self._build(fresh_scene)
        data = json.loads(json.dumps(fresh_scene.to_dict()))

        restored = SceneManager()
        restored.from_dict(data)

        assert restored.get_sphere_count() == 4
        assert restored.get_material_count() == 3
        assert restored.to_dict() == data

    def test_from_config_unknown_material(self, fresh_scene):
        from src.spheretracer.scene.manager import SceneConfig

        config = SceneConfig(materials=[{"type": "phong"}])
        with pytest.raises(ValueError, match="Unknown material type"):
            fresh_scene.from_config(config)

    def test_from_config_bad_vector(self, fresh_scene):
        from src.spheretracer.scene.manager import SceneConfig

        config = SceneConfig(materials=[{"type": "lambertian", "albedo": [0.5, 0.5]}])
        with pytest.raises(ValueError):
            fresh_scene.from_config(config)

    def test_capacity_info(self):
        from src.spheretracer.scene.intersection import MAX_SPHERES
        from src.spheretracer.scene.manager import MAX_MATERIALS, SceneManager

        assert SceneManager.get_max_spheres() == MAX_SPHERES
        assert SceneManager.get_max_materials() == MAX_MATERIALS


class TestIntegrationWithIntersection:
    """Tests that intersection reports the manager's material IDs."""

    def test_intersection_returns_material_id(self, fresh_scene):
        from src.spheretracer.scene.intersection import intersect_scene, vec3

        fresh_scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        metal = fresh_scene.add_metal_material(albedo=(0.9, 0.9, 0.9))
        fresh_scene.add_sphere((0.0, 0.0, -5.0), 1.0, metal)

        material_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.001, 1e9)
            material_id[None] = rec.material_id

        test_kernel()
        assert material_id[None] == metal
