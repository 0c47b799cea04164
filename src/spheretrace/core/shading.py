"""Direct illumination with hard shadows.

shade() sums the Blinn-Phong contribution of every point light in the scene
that is visible from the surface point. Visibility is decided per light by a
shadow ray spawned SELF_INTERSECTION_EPSILON off the surface toward the
light; an intersection only counts as an occluder if it lies closer than the
light itself.

There is no ambient term and no clamping: results may exceed 1.0 and are
left for the display stage to compress.
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import length, normalize, offset_ray
from spheretrace.materials.blinn_phong import Material, MaterialParams, blinn_phong
from spheretrace.scene.intersection import is_occluded
from spheretrace.scene.scene import Scene

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def shade(
    material: Material,
    position: vec3,
    normal: vec3,
    view_dir: vec3,
    scene: ti.template(),
) -> vec3:
    """Compute shadowed Blinn-Phong illumination at a surface point.

    Args:
        material: Material of the surface.
        position: The surface point.
        normal: Unit outward normal at the point.
        view_dir: Unit direction from the point toward the viewer.
        scene: The Scene providing lights and occluders.

    Returns:
        The summed contribution of all unshadowed lights (RGB).
    """
    color = vec3(0.0, 0.0, 0.0)
    for i in range(scene.num_lights[None]):
        light = scene.get_light(i)
        to_light = light.position - position
        light_dir = normalize(to_light)
        shadow_ray = offset_ray(position, light_dir, light_dir)
        if is_occluded(shadow_ray, scene, length(to_light)) == 0:
            color += blinn_phong(material, normal, light_dir, view_dir, light.intensity)
    return color


@ti.kernel
def _shade_kernel(
    scene: ti.template(),
    diffuse: vec3,
    specular: vec3,
    shininess: ti.f32,
    position: vec3,
    normal: vec3,
    view_dir: vec3,
) -> vec3:
    material = Material(diffuse=diffuse, specular=specular, shininess=shininess)
    return shade(material, position, normal, view_dir, scene)


def shade_point(
    scene: Scene,
    material: MaterialParams,
    position: tuple[float, float, float],
    normal: tuple[float, float, float],
    view_dir: tuple[float, float, float],
) -> tuple[float, float, float]:
    """Shade a single surface point from Python.

    Args:
        scene: The scene providing lights and occluders.
        material: Material of the surface.
        position: The surface point.
        normal: Unit outward normal at the point.
        view_dir: Unit direction toward the viewer.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    color = _shade_kernel(
        scene,
        vec3(*material.diffuse),
        vec3(*material.specular),
        material.shininess,
        vec3(*position),
        vec3(*normal),
        vec3(*view_dir),
    )
    return (float(color[0]), float(color[1]), float(color[2]))
