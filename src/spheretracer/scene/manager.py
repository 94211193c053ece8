"""Scene manager: the material table and the sphere list.

A material is a tagged variant. Registering one stores its parameters in the
registry for its type (Lambertian, metal or dielectric) and hands back a
material_id that is unique across all three. Two Taichi fields resolve a
material_id to its (MaterialType, slot) pair, so kernels can switch on the
tag and then read the parameters at that slot. Spheres keep only the
material_id, which lets any number of spheres share one material.

The manager also mirrors everything it registers in plain Python
dataclasses, which is what scene serialization reads.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> glass = scene.add_dielectric_material(ior=1.5)
    >>> scene.add_sphere(center=(0, 1, 0), radius=1.0, material_id=glass)
    >>> scene.add_material("metal", albedo=(0.7, 0.6, 0.5), fuzz=0.0)
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from src.spheretracer.materials.dielectric import (
    MAX_DIELECTRIC_MATERIALS,
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.spheretracer.materials.lambertian import (
    MAX_LAMBERTIAN_MATERIALS,
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.spheretracer.materials.metal import (
    MAX_METAL_MATERIALS,
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
)
from src.spheretracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Tag stored per material_id and switched on by the integrator."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = MAX_LAMBERTIAN_MATERIALS + MAX_METAL_MATERIALS + MAX_DIELECTRIC_MATERIALS

# material_id -> MaterialType value
material_tags = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_id -> slot in the registry of that type
material_slots = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_count = ti.field(dtype=ti.i32, shape=())


def reset_material_table() -> None:
    material_count[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Tag of a material as a MaterialType value, or -1 for an unknown id."""
    tag = -1
    if 0 <= material_id < material_count[None]:
        tag = material_tags[material_id]
    return tag


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Slot of a material in its type's registry, or -1 for an unknown id."""
    slot = -1
    if 0 <= material_id < material_count[None]:
        slot = material_slots[material_id]
    return slot


@dataclass
class MaterialInfo:
    """Python-side record of a registered material.

    Attributes:
        material_id: Id shared by all material types.
        material_type: Variant tag.
        type_index: Slot in the registry of ``material_type``.
        params: Parameters as stored, so metal fuzz is already clamped.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data scene description, as written to and read from JSON.

    Material entries are dicts with a ``type`` key ("lambertian", "metal"
    or "dielectric") plus that type's parameters, listed in material_id
    order. Sphere entries hold ``center``, ``radius`` and ``material_id``.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


def _as_triple(values: Any, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _parse_material_type(material_type: MaterialType | str) -> MaterialType:
    if isinstance(material_type, MaterialType):
        return material_type
    try:
        return MaterialType[str(material_type).upper()]
    except KeyError:
        raise ValueError(f"Unknown material type: {material_type}") from None


class SceneManager:
    """Owns the scene storage: the material table and the sphere list.

    The storage is module-level Taichi fields, so only one scene is live at
    a time and constructing a manager clears whatever was there.

    Attributes:
        materials: MaterialInfo per material, indexed by material_id.
        spheres: SphereInfo per sphere, in traversal order.
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_table()
        self.materials.clear()
        self.spheres.clear()

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _record_material(
        self,
        material_type: MaterialType,
        slot: int,
        params: dict[str, Any],
    ) -> int:
        material_id = len(self.materials)
        material_tags[material_id] = int(material_type)
        material_slots[material_id] = slot
        material_count[None] = material_id + 1
        self.materials.append(MaterialInfo(material_id, material_type, slot, params))
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its material_id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the Lambertian registry is full.
        """
        slot = add_lambertian_material(albedo)
        return self._record_material(MaterialType.LAMBERTIAN, slot, {"albedo": tuple(albedo)})

    def add_metal_material(self, albedo: tuple[float, float, float], fuzz: float = 0.0) -> int:
        """Register a metal material; fuzz is clamped to [0, 1].

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If the metal registry is full.
        """
        slot = add_metal_material(albedo, fuzz)
        params = {"albedo": tuple(albedo), "fuzz": clamp_fuzz(fuzz)}
        return self._record_material(MaterialType.METAL, slot, params)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear refractive material (1.5 is typical glass).

        Raises:
            ValueError: If ior is below 1.0.
            RuntimeError: If the dielectric registry is full.
        """
        slot = add_dielectric_material(ior)
        return self._record_material(MaterialType.DIELECTRIC, slot, {"ior": ior})

    def add_material(self, material_type: MaterialType | str, **params: Any) -> int:
        """Register a material from its tag (or tag name) and keyword parameters.

        Missing parameters take the defaults used by scene files: albedo
        0.5 grey for Lambertian, 0.8 grey with fuzz 0 for metal and ior 1.5
        for dielectric. Unrecognized keys are ignored.

        Raises:
            ValueError: If the type is unknown or a parameter is invalid.
        """
        material_type = _parse_material_type(material_type)
        if material_type == MaterialType.LAMBERTIAN:
            albedo = _as_triple(params.get("albedo", (0.5, 0.5, 0.5)), "albedo")
            return self.add_lambertian_material(albedo)
        if material_type == MaterialType.METAL:
            albedo = _as_triple(params.get("albedo", (0.8, 0.8, 0.8)), "albedo")
            return self.add_metal_material(albedo, float(params.get("fuzz", 0.0)))
        return self.add_dielectric_material(float(params.get("ior", 1.5)))

    def get_material_count(self) -> int:
        return int(material_count[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Python-side tag lookup; kernels use get_material_type()."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # -------------------------------------------------------------------------
    # Spheres
    # -------------------------------------------------------------------------

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Append a sphere that uses an already registered material.

        Returns:
            The sphere's index in traversal order.

        Raises:
            ValueError: If material_id is not registered or radius <= 0.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < self.get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with its own new diffuse material.

        Returns:
            (sphere_index, material_id)
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with its own new metal material; returns (sphere_index, material_id)."""
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_config(self) -> SceneConfig:
        """Describe the scene with lists and dicts only (tuples become lists)."""
        materials = []
        for info in self.materials:
            entry: dict[str, Any] = {"type": info.material_type.name.lower()}
            for key, value in info.params.items():
                entry[key] = list(value) if isinstance(value, tuple) else value
            materials.append(entry)

        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Materials are registered in list order, so the material ids in the
        sphere entries keep their meaning.

        Raises:
            ValueError: On an unknown material type or a malformed entry.
        """
        self.clear()

        for entry in config.materials:
            params = dict(entry)
            self.add_material(params.pop("type", ""), **params)

        for entry in config.spheres:
            self.add_sphere(
                _as_triple(entry.get("center", (0.0, 0.0, 0.0)), "center"),
                float(entry.get("radius", 1.0)),
                int(entry.get("material_id", 0)),
            )

        logger.info(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible form of to_config()."""
        return dataclasses.asdict(self.to_config())

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dict with "materials" and "spheres" lists.

        Other keys (such as a saved camera) are ignored.
        """
        self.from_config(
            SceneConfig(materials=data.get("materials", []), spheres=data.get("spheres", []))
        )

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
