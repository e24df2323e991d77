"""Material registry and scene builder.

Scenes are assembled here from plain parameters rather than from shape and
material objects. Materials are registered first and each receives an
integer material ID; shapes then reference materials by that ID. Once the
scene is complete, ``build()`` produces the immutable ``Scene`` consumed by
the integrator.

The SceneManager maintains:
- One material_id sequence shared by every material type
- The constructor parameters of every material and shape
- Scene serialization to dicts and JSON files

A checkerboard references two other materials by ID, and only IDs that are
already registered are accepted, so the material graph is always acyclic.

Example:
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> manager = SceneManager()
    >>> grey = manager.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> manager.add_sphere(center=(0, 0, 1.5), radius=1.5, material_id=grey)
    >>> scene = manager.build()
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import numpy as np

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.geometry.cuboid import Cuboid
from src.pathtracer.geometry.hit import Shape
from src.pathtracer.geometry.plane import Plane
from src.pathtracer.geometry.sphere import Sphere
from src.pathtracer.materials.brushed_metal import BrushedMetal
from src.pathtracer.materials.checkerboard import Checkerboard
from src.pathtracer.materials.emitter import Emitter
from src.pathtracer.materials.gloss_wrap import GlossWrap
from src.pathtracer.materials.lambertian import Lambertian
from src.pathtracer.materials.material import Material
from src.pathtracer.scene.intersection import Scene, black_background, sky_background

logger = logging.getLogger(__name__)

BACKGROUNDS = {
    "sky": sky_background,
    "black": black_background,
}


class MaterialType(IntEnum):
    """Enumeration of supported material types."""

    LAMBERTIAN = 0
    GLOSS_WRAP = 1
    CHECKERBOARD = 2
    BRUSHED_METAL = 3
    EMITTER = 4


class ShapeType(IntEnum):
    """Enumeration of supported shape types."""

    SPHERE = 0
    PLANE = 1
    CUBOID = 2


@dataclass
class MaterialInfo:
    """Registry entry for one material.

    Attributes:
        material_id: Position in the material registry.
        material_type: The type of material.
        params: The material parameters as provided during creation.
        material: The constructed material instance.
    """

    material_id: int
    material_type: MaterialType
    params: dict[str, Any]
    material: Material


@dataclass
class ShapeInfo:
    """Registry entry for one shape.

    Attributes:
        shape_index: Position of the shape in the scene.
        shape_type: The type of shape.
        params: The geometric parameters as provided during creation.
        material_id: The material ID assigned to the shape.
        shape: The constructed shape instance.
    """

    shape_index: int
    shape_type: ShapeType
    params: dict[str, Any]
    material_id: int
    shape: Shape


@dataclass
class SceneConfig:
    """Plain-data form of a scene, as written to JSON.

    Attributes:
        materials: List of material configurations, in ID order.
        shapes: List of shape configurations.
        background: Name of the background function ("sky" or "black").
        camera: Optional viewpoint (eye, target, up, vfov).
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    shapes: list[dict[str, Any]] = field(default_factory=list)
    background: str = "sky"
    camera: dict[str, Any] | None = None


def _to_plain(value: Any) -> Any:
    """Convert numpy arrays and tuples to JSON-friendly lists."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (tuple, list)):
        return [_to_plain(v) for v in value]
    return value


def _require(config: dict[str, Any], key: str, kind: str) -> Any:
    try:
        return config[key]
    except KeyError:
        raise ValueError(f"{kind} configuration is missing '{key}'") from None


def _camera_to_config(camera: PinholeCamera) -> dict[str, Any]:
    return {
        "eye": [float(v) for v in camera.eye],
        "target": [float(v) for v in camera.target],
        "up": [float(v) for v in camera.up],
        "vfov": float(camera.vfov),
    }


def _camera_from_config(config: dict[str, Any]) -> PinholeCamera:
    return PinholeCamera(
        eye=tuple(float(v) for v in _require(config, "eye", "camera")),
        target=tuple(float(v) for v in _require(config, "target", "camera")),
        up=tuple(float(v) for v in config.get("up", (0.0, 0.0, 1.0))),
        vfov=float(config.get("vfov", 45.0)),
    )


class SceneManager:
    """Builds a ``Scene`` from registered materials and shapes.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        shapes: List of ShapeInfo for all shapes in the scene.
        background: Name of the background used by ``build()``.
        camera: Viewpoint stored with the scene, or None to let the caller
            choose one.

    Example:
        >>> manager = SceneManager()
        >>> white = manager.add_lambertian_material(albedo=(0.9, 0.9, 0.9))
        >>> black = manager.add_lambertian_material(albedo=(0.1, 0.1, 0.1))
        >>> checker = manager.add_checkerboard_material(0.5, white, black)
        >>> manager.add_plane((0, 0, 1), (1, 0, 0), (0, 0, 0), checker)
        >>> scene = manager.build()
    """

    def __init__(self, background: str = "sky") -> None:
        """Start with no materials and no shapes."""
        self.materials: list[MaterialInfo] = []
        self.shapes: list[ShapeInfo] = []
        self.background = "sky"
        self.camera: PinholeCamera | None = None
        self.set_background(background)

    def clear(self) -> None:
        """Remove all materials, shapes and the stored camera."""
        self.materials.clear()
        self.shapes.clear()
        self.camera = None

    def set_camera(self, camera: PinholeCamera | None) -> None:
        """Store the viewpoint written with the scene (None removes it)."""
        self.camera = camera

    def set_background(self, name: str) -> None:
        """Select the background function by name.

        Raises:
            ValueError: If the name is not one of ``BACKGROUNDS``.
        """
        if name not in BACKGROUNDS:
            raise ValueError(f"Unknown background '{name}', expected one of {sorted(BACKGROUNDS)}")
        self.background = name

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        material: Material,
        params: dict[str, Any],
    ) -> int:
        material_id = len(self.materials)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                params=params,
                material=material,
            )
        )
        logger.debug("Registered %s material %d", material_type.name.lower(), material_id)
        return material_id

    def _material(self, material_id: int) -> Material:
        if not 0 <= material_id < len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        return self.materials[material_id].material

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            albedo: Diffuse reflectance as (R, G, B), each in [0, 1].

        Returns:
            Id to reference from shapes or checkerboard materials.

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return self._register_material(
            MaterialType.LAMBERTIAN,
            Lambertian(albedo),
            {"albedo": _to_plain(albedo)},
        )

    def add_gloss_wrap_material(
        self,
        gloss_color: tuple[float, float, float],
        diffuse_color: tuple[float, float, float],
        gloss_size: float = 0.05,
        max_gloss: float = 1.0,
        min_gloss: float = 0.1,
        fresnel_power: float = 5.0,
    ) -> int:
        """Add a glossy coating over a diffuse base.

        Args:
            gloss_color: Tint of the specular layer.
            diffuse_color: Albedo of the diffuse base.
            gloss_size: Blur of the specular lobe.
            max_gloss: Specular probability at grazing angles.
            min_gloss: Specular probability at normal incidence.
            fresnel_power: Exponent of the Fresnel falloff.

        Returns:
            Id to reference from shapes or checkerboard materials.
        """
        params = {
            "gloss_color": _to_plain(gloss_color),
            "diffuse_color": _to_plain(diffuse_color),
            "gloss_size": gloss_size,
            "max_gloss": max_gloss,
            "min_gloss": min_gloss,
            "fresnel_power": fresnel_power,
        }
        material = GlossWrap(
            gloss_color,
            diffuse_color,
            gloss_size=gloss_size,
            max_gloss=max_gloss,
            min_gloss=min_gloss,
            fresnel_power=fresnel_power,
        )
        return self._register_material(MaterialType.GLOSS_WRAP, material, params)

    def add_checkerboard_material(self, size: float, material_a: int, material_b: int) -> int:
        """Add a checkerboard alternating between two registered materials.

        Args:
            size: Cell edge length in the shape's local units.
            material_a: ID of the material used in even cells.
            material_b: ID of the material used in odd cells.

        Returns:
            Id to reference from shapes or checkerboard materials.

        Raises:
            ValueError: If either child ID is not registered yet.
        """
        material = Checkerboard(size, self._material(material_a), self._material(material_b))
        params = {"size": size, "material_a": material_a, "material_b": material_b}
        return self._register_material(MaterialType.CHECKERBOARD, material, params)

    def add_brushed_metal_material(
        self,
        size: float,
        radial_roughness: float,
        circumference_roughness: float,
        color: tuple[float, float, float],
    ) -> int:
        """Add an anisotropic brushed metal.

        Returns:
            Id to reference from shapes or checkerboard materials.
        """
        material = BrushedMetal(size, radial_roughness, circumference_roughness, color)
        params = {
            "size": size,
            "radial_roughness": radial_roughness,
            "circumference_roughness": circumference_roughness,
            "color": _to_plain(color),
        }
        return self._register_material(MaterialType.BRUSHED_METAL, material, params)

    def add_emitter_material(self, color: tuple[float, float, float], focus: float = 0.0) -> int:
        """Add a light-emitting material.

        Args:
            color: Emitted radiance (may exceed 1).
            focus: Exponent of the cosine falloff (0 for uniform emission).

        Returns:
            Id to reference from shapes or checkerboard materials.
        """
        return self._register_material(
            MaterialType.EMITTER,
            Emitter(color, focus),
            {"color": _to_plain(color), "focus": focus},
        )

    def get_material_count(self) -> int:
        """Number of registered materials."""
        return len(self.materials)

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID, or None."""
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Shape Management
    # =========================================================================

    def _register_shape(
        self,
        shape_type: ShapeType,
        shape: Shape,
        params: dict[str, Any],
        material_id: int,
    ) -> int:
        shape_index = len(self.shapes)
        self.shapes.append(
            ShapeInfo(
                shape_index=shape_index,
                shape_type=shape_type,
                params=params,
                material_id=material_id,
                shape=shape,
            )
        )
        logger.debug("Added %s %d with material %d", shape_type.name.lower(), shape_index, material_id)
        return shape_index

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: Registered material shading the sphere.

        Returns:
            The index of the added shape.

        Raises:
            ValueError: If material_id is invalid or the radius is not positive.
        """
        shape = Sphere(center, radius, self._material(material_id))
        params = {"center": _to_plain(center), "radius": radius}
        return self._register_shape(ShapeType.SPHERE, shape, params, material_id)

    def add_plane(
        self,
        normal: tuple[float, float, float],
        right: tuple[float, float, float],
        center: tuple[float, float, float],
        material_id: int,
    ) -> int:
        """Add an infinite plane to the scene.

        Args:
            normal: Plane normal (need not be unit length).
            right: Direction of the local +X axis, projected into the plane.
            center: A point on the plane, origin of the local frame.
            material_id: Registered material shading the plane.

        Returns:
            The index of the added shape.
        """
        shape = Plane(normal, right, center, self._material(material_id))
        params = {
            "normal": _to_plain(normal),
            "right": _to_plain(right),
            "center": _to_plain(center),
        }
        return self._register_shape(ShapeType.PLANE, shape, params, material_id)

    def add_cuboid(
        self,
        origin: tuple[float, float, float],
        mins: tuple[float, float, float],
        maxs: tuple[float, float, float],
        material_id: int,
        orientation: Any = None,
    ) -> int:
        """Add an oriented box to the scene.

        Args:
            origin: World position of the box's local origin.
            mins: Local-space minimum corner.
            maxs: Local-space maximum corner.
            material_id: Registered material shading the box.
            orientation: None, a (w, x, y, z) quaternion or a 3x3 rotation.

        Returns:
            The index of the added shape.
        """
        shape = Cuboid(origin, orientation, mins, maxs, self._material(material_id))
        params = {
            "origin": _to_plain(origin),
            "mins": _to_plain(mins),
            "maxs": _to_plain(maxs),
            "orientation": _to_plain(orientation),
        }
        return self._register_shape(ShapeType.CUBOID, shape, params, material_id)

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (shape_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def get_shape_count(self) -> int:
        """Get the number of shapes in the scene."""
        return len(self.shapes)

    # =========================================================================
    # Scene Construction
    # =========================================================================

    def build(self) -> Scene:
        """Produce the immutable scene from the registered shapes.

        Returns:
            A Scene sharing the registered shape and material instances.
        """
        scene = Scene([info.shape for info in self.shapes], background=BACKGROUNDS[self.background])
        logger.info(
            "Built scene with %d shapes and %d materials (%s background)",
            len(self.shapes),
            len(self.materials),
            self.background,
        )
        return scene

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(background=self.background)
        if self.camera is not None:
            config.camera = _camera_to_config(self.camera)
        for mat in self.materials:
            config.materials.append({"type": mat.material_type.name.lower(), **mat.params})
        for shape in self.shapes:
            config.shapes.append(
                {
                    "type": shape.shape_type.name.lower(),
                    **shape.params,
                    "material_id": shape.material_id,
                }
            )
        return config

    def _load_material(self, mat_config: dict[str, Any]) -> None:
        mat_type = str(mat_config.get("type", "")).lower()
        if mat_type == "lambertian":
            self.add_lambertian_material(_require(mat_config, "albedo", "lambertian"))
        elif mat_type == "gloss_wrap":
            self.add_gloss_wrap_material(
                _require(mat_config, "gloss_color", "gloss_wrap"),
                _require(mat_config, "diffuse_color", "gloss_wrap"),
                gloss_size=mat_config.get("gloss_size", 0.05),
                max_gloss=mat_config.get("max_gloss", 1.0),
                min_gloss=mat_config.get("min_gloss", 0.1),
                fresnel_power=mat_config.get("fresnel_power", 5.0),
            )
        elif mat_type == "checkerboard":
            self.add_checkerboard_material(
                _require(mat_config, "size", "checkerboard"),
                _require(mat_config, "material_a", "checkerboard"),
                _require(mat_config, "material_b", "checkerboard"),
            )
        elif mat_type == "brushed_metal":
            self.add_brushed_metal_material(
                _require(mat_config, "size", "brushed_metal"),
                mat_config.get("radial_roughness", 0.0),
                mat_config.get("circumference_roughness", 0.0),
                _require(mat_config, "color", "brushed_metal"),
            )
        elif mat_type == "emitter":
            self.add_emitter_material(
                _require(mat_config, "color", "emitter"),
                mat_config.get("focus", 0.0),
            )
        else:
            raise ValueError(f"Unknown material type: {mat_type}")

    def _load_shape(self, shape_config: dict[str, Any]) -> None:
        shape_type = str(shape_config.get("type", "")).lower()
        material_id = _require(shape_config, "material_id", shape_type or "shape")
        if shape_type == "sphere":
            self.add_sphere(
                _require(shape_config, "center", "sphere"),
                _require(shape_config, "radius", "sphere"),
                material_id,
            )
        elif shape_type == "plane":
            self.add_plane(
                _require(shape_config, "normal", "plane"),
                shape_config.get("right", [1.0, 0.0, 0.0]),
                shape_config.get("center", [0.0, 0.0, 0.0]),
                material_id,
            )
        elif shape_type == "cuboid":
            self.add_cuboid(
                shape_config.get("origin", [0.0, 0.0, 0.0]),
                _require(shape_config, "mins", "cuboid"),
                _require(shape_config, "maxs", "cuboid"),
                material_id,
                orientation=shape_config.get("orientation"),
            )
        else:
            raise ValueError(f"Unknown shape type: {shape_type}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current contents with those of ``config``.

        Materials are loaded first, in order, so their IDs match their list
        positions. Everything is loaded into a separate manager and swapped
        in at the end, so on error this manager keeps its previous contents.

        Raises:
            ValueError: On unknown types, bad references or invalid parameters.
        """
        staged = SceneManager(background=config.background)
        for mat_config in config.materials:
            staged._load_material(mat_config)
        for shape_config in config.shapes:
            staged._load_shape(shape_config)
        if config.camera is not None:
            staged.set_camera(_camera_from_config(config.camera))

        self.materials = staged.materials
        self.shapes = staged.shapes
        self.background = staged.background
        self.camera = staged.camera

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        data: dict[str, Any] = {
            "background": config.background,
            "materials": config.materials,
            "shapes": config.shapes,
        }
        if config.camera is not None:
            data["camera"] = config.camera
        return data

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the current contents with a ``to_dict`` payload.

        Args:
            data: Dictionary with 'materials', 'shapes' and optional
                'background' and 'camera' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            shapes=data.get("shapes", []),
            background=data.get("background", "sky"),
            camera=data.get("camera"),
        )
        self.from_config(config)

    def __repr__(self) -> str:
        return (
            f"SceneManager(materials={len(self.materials)}, shapes={len(self.shapes)}, "
            f"background={self.background!r})"
        )


def load_scene_file(path: str | Path) -> SceneManager:
    """Read a JSON scene description into a new SceneManager.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not valid JSON or describes an invalid scene.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    manager = SceneManager()
    manager.from_dict(data)
    logger.info("Loaded scene from %s", path)
    return manager


def save_scene_file(manager: SceneManager, path: str | Path) -> None:
    """Write a SceneManager's description to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(manager.to_dict(), f, indent=2)
    logger.info("Saved scene to %s", path)
