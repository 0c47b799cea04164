"""Preset scene configurations.

This module provides factory functions for ready-made scenes, used by the
example scripts, the interactive preview and the integration tests.

The mirror-spheres scene consists of:
- A very large ground sphere acting as a floor
- A ring of colored spheres with varying reflectivity
- A central near-perfect mirror sphere
- Two point lights above the spheres

The scene uses a Y-up coordinate system with the camera looking toward -Z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.presets import create_mirror_spheres_scene
    >>> from spheretrace.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

from spheretrace.camera.pinhole import PinholeCamera
from spheretrace.scene.builder import SceneBuilder
from spheretrace.scene.scene import Scene

# =============================================================================
# Mirror Spheres Parameters
# =============================================================================


@dataclass
class MirrorSpheresParams:
    """Parameters for configuring the mirror-spheres scene.

    Attributes:
        ring_count: Number of colored spheres arranged around the mirror.
        ring_radius: Distance of the ring spheres from the scene center.
        sphere_radius: Radius of the ring spheres.
        mirror_radius: Radius of the central mirror sphere.
        mirror_reflectance: Specular coefficient of the mirror (gray).
        ring_reflectance: Specular coefficient of the ring spheres (gray).
        ground_color: Diffuse color of the ground.
        ground_reflectance: Specular coefficient of the ground (gray).
        light_intensity: Intensity of each light (gray).
        shininess: Specular exponent shared by all spheres.
        aspect_ratio: Aspect ratio of the returned camera.

    Example:
        >>> params = MirrorSpheresParams(ring_count=8, mirror_reflectance=0.95)
    """

    ring_count: int = 6
    ring_radius: float = 2.5
    sphere_radius: float = 0.6
    mirror_radius: float = 1.0
    mirror_reflectance: float = 0.9
    ring_reflectance: float = 0.3
    ground_color: tuple[float, float, float] = (0.45, 0.45, 0.45)
    ground_reflectance: float = 0.1
    light_intensity: float = 0.8
    shininess: float = 80.0
    aspect_ratio: float = 4.0 / 3.0


# Diffuse colors cycled around the ring
RING_COLORS = (
    (0.8, 0.15, 0.15),
    (0.15, 0.7, 0.2),
    (0.15, 0.3, 0.85),
    (0.85, 0.75, 0.15),
    (0.7, 0.2, 0.75),
    (0.15, 0.75, 0.75),
)

# Radius of the sphere used as the floor
GROUND_RADIUS = 1000.0

# Center of the scene (the mirror sphere rests here)
SCENE_CENTER = (0.0, 0.0, -6.0)


# =============================================================================
# Mirror Spheres Factory
# =============================================================================


def build_mirror_spheres(params: MirrorSpheresParams | None = None) -> SceneBuilder:
    """Describe the mirror-spheres scene without freezing it.

    Args:
        params: Optional parameters. If None, uses MirrorSpheresParams().

    Returns:
        A SceneBuilder holding the scene description.

    Raises:
        ValueError: If ring_count is negative.
    """
    if params is None:
        params = MirrorSpheresParams()
    if params.ring_count < 0:
        raise ValueError(f"ring_count must be non-negative, got {params.ring_count}")

    builder = SceneBuilder()
    cx, _, cz = SCENE_CENTER

    ground = builder.add_material(
        diffuse=params.ground_color,
        specular=(params.ground_reflectance,) * 3,
        shininess=params.shininess,
    )
    # Floor top sits at y = 0
    builder.add_sphere((cx, -GROUND_RADIUS, cz), GROUND_RADIUS, material=ground)

    mirror = builder.add_material(
        diffuse=(0.05, 0.05, 0.05),
        specular=(params.mirror_reflectance,) * 3,
        shininess=params.shininess * 4.0,
    )
    builder.add_sphere((cx, params.mirror_radius, cz), params.mirror_radius, material=mirror)

    for i in range(params.ring_count):
        angle = 2.0 * math.pi * i / params.ring_count
        color = RING_COLORS[i % len(RING_COLORS)]
        material = builder.add_material(
            diffuse=color,
            specular=(params.ring_reflectance,) * 3,
            shininess=params.shininess,
        )
        builder.add_sphere(
            (
                cx + params.ring_radius * math.cos(angle),
                params.sphere_radius,
                cz + params.ring_radius * math.sin(angle),
            ),
            params.sphere_radius,
            material=material,
        )

    intensity = (params.light_intensity,) * 3
    builder.add_light((cx - 4.0, 8.0, cz + 4.0), intensity)
    builder.add_light((cx + 5.0, 6.0, cz - 2.0), intensity)

    return builder


def create_mirror_spheres_scene(
    params: MirrorSpheresParams | None = None,
) -> tuple[Scene, PinholeCamera]:
    """Create the mirror-spheres scene and a camera looking at it.

    Args:
        params: Optional parameters. If None, uses MirrorSpheresParams().

    Returns:
        A tuple of (Scene, PinholeCamera).
    """
    if params is None:
        params = MirrorSpheresParams()

    scene = build_mirror_spheres(params).build()
    camera = PinholeCamera(
        lookfrom=(SCENE_CENTER[0], 3.0, SCENE_CENTER[2] + 7.5),
        lookat=(SCENE_CENTER[0], 0.8, SCENE_CENTER[2]),
        vup=(0.0, 1.0, 0.0),
        vfov=45.0,
        aspect_ratio=params.aspect_ratio,
    )
    return scene, camera
