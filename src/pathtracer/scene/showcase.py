"""Demo scene configurations.

This module provides factory functions for the bundled demo scenes:

- ``create_sphere_on_plane_scene``: a grey diffuse sphere resting on a
  yellow ground plane under the sky, the classic smoke test for the tracer.
- ``create_material_showcase_scene``: every primitive and material at once,
  on a checkerboard floor with a brushed-metal box, a glossy sphere and an
  emissive sphere.

Both scenes use a Z-up world and share the same camera placement, which is
also stored on the manager so saved scene files keep their viewpoint.

Example:
    >>> from src.pathtracer.scene.showcase import create_sphere_on_plane_scene
    >>> manager, camera = create_sphere_on_plane_scene()
    >>> scene = manager.build()
"""

from collections.abc import Callable
from dataclasses import dataclass

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.core.ray import axis_angle_matrix
from src.pathtracer.scene.manager import SceneManager

# =============================================================================
# Shared Camera Parameters
# =============================================================================

CAMERA_EYE = (3.0, 4.5, 1.75)
CAMERA_TARGET = (0.0, 0.0, 1.0)
CAMERA_UP = (0.0, 0.0, 1.0)
CAMERA_VFOV = 45.0

# =============================================================================
# Sphere-on-plane Constants
# =============================================================================

SPHERE_CENTER = (0.0, 0.0, 1.5)
SPHERE_RADIUS = 1.5
SPHERE_ALBEDO = (0.5, 0.5, 0.5)
GROUND_ALBEDO = (0.3, 0.3, 0.0)


@dataclass
class ShowcaseParams:
    """Parameters for the material showcase scene.

    Attributes:
        checker_size: Edge length of the floor checker cells.
        light_color: Radiance of the emissive sphere.
        light_focus: Cosine falloff exponent of the emissive sphere.
        box_angle: Rotation of the metal box about +Z, in radians.
    """

    checker_size: float = 1.0
    light_color: tuple[float, float, float] = (4.0, 3.6, 3.0)
    light_focus: float = 1.0
    box_angle: float = 0.6


def default_camera() -> PinholeCamera:
    """Camera used by the demo scenes."""
    return PinholeCamera(eye=CAMERA_EYE, target=CAMERA_TARGET, up=CAMERA_UP, vfov=CAMERA_VFOV)


def create_sphere_on_plane_scene() -> tuple[SceneManager, PinholeCamera]:
    """Create the grey-sphere-on-yellow-ground scene.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    manager = SceneManager(background="sky")
    sphere_mat = manager.add_lambertian_material(albedo=SPHERE_ALBEDO)
    ground_mat = manager.add_lambertian_material(albedo=GROUND_ALBEDO)

    manager.add_sphere(center=SPHERE_CENTER, radius=SPHERE_RADIUS, material_id=sphere_mat)
    manager.add_plane(
        normal=(0.0, 0.0, 1.0),
        right=(1.0, 0.0, 0.0),
        center=(0.0, 0.0, 0.0),
        material_id=ground_mat,
    )
    camera = default_camera()
    manager.set_camera(camera)
    return manager, camera


def create_material_showcase_scene(
    params: ShowcaseParams | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Create a scene exercising every shape and material.

    Args:
        params: Optional ShowcaseParams. If None, uses defaults.

    Returns:
        A tuple of (SceneManager, PinholeCamera).
    """
    if params is None:
        params = ShowcaseParams()

    manager = SceneManager(background="sky")

    # Materials
    light = manager.add_lambertian_material(albedo=(0.8, 0.8, 0.75))
    dark = manager.add_lambertian_material(albedo=(0.1, 0.1, 0.12))
    floor = manager.add_checkerboard_material(params.checker_size, light, dark)
    gloss = manager.add_gloss_wrap_material(
        gloss_color=(1.0, 1.0, 1.0),
        diffuse_color=(0.6, 0.1, 0.1),
        gloss_size=0.05,
        max_gloss=1.0,
        min_gloss=0.05,
        fresnel_power=5.0,
    )
    metal = manager.add_brushed_metal_material(
        size=0.5,
        radial_roughness=0.3,
        circumference_roughness=0.02,
        color=(0.9, 0.85, 0.7),
    )
    lamp = manager.add_emitter_material(color=params.light_color, focus=params.light_focus)

    # Shapes
    manager.add_plane(
        normal=(0.0, 0.0, 1.0),
        right=(1.0, 0.0, 0.0),
        center=(0.0, 0.0, 0.0),
        material_id=floor,
    )
    manager.add_sphere(center=(0.0, 0.0, 1.0), radius=1.0, material_id=gloss)
    manager.add_cuboid(
        origin=(-1.2, -2.2, 0.0),
        mins=(-0.6, -0.6, 0.0),
        maxs=(0.6, 0.6, 1.2),
        material_id=metal,
        orientation=axis_angle_matrix((0.0, 0.0, 1.0), params.box_angle),
    )
    manager.add_sphere(center=(-1.5, 1.5, 2.5), radius=0.4, material_id=lamp)

    camera = default_camera()
    manager.set_camera(camera)
    return manager, camera


SCENES: dict[str, Callable[[], tuple[SceneManager, PinholeCamera]]] = {
    "sphere": create_sphere_on_plane_scene,
    "showcase": create_material_showcase_scene,
}
