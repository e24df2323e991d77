"""Scene module for scene aggregation and construction.

Components:
    intersection: Immutable Scene with nearest-hit queries and backgrounds
    manager: SceneManager with a unified material ID space and JSON support
    showcase: Factory functions for the demo scenes
"""

from .intersection import (
    SELF_INTERSECTION_EPSILON,
    Scene,
    black_background,
    sky_background,
)
from .manager import (
    BACKGROUNDS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    ShapeInfo,
    ShapeType,
    load_scene_file,
    save_scene_file,
)
from .showcase import (
    SCENES,
    ShowcaseParams,
    create_material_showcase_scene,
    create_sphere_on_plane_scene,
    default_camera,
)

__all__ = [
    # Intersection module
    "Scene",
    "sky_background",
    "black_background",
    "SELF_INTERSECTION_EPSILON",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "ShapeType",
    "ShapeInfo",
    "SceneConfig",
    "BACKGROUNDS",
    "load_scene_file",
    "save_scene_file",
    # Showcase module
    "SCENES",
    "ShowcaseParams",
    "create_sphere_on_plane_scene",
    "create_material_showcase_scene",
    "default_camera",
]
