"""Scene-level closest-hit intersection.

This module walks every sphere of a Scene and keeps the closest accepted
near-root hit. Spheres are visited in scene order and the acceptance test is
strict (t < best_t), so on an exact distance tie the first sphere wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.builder import SceneBuilder
    >>> from spheretrace.scene.intersection import intersect_ray
    >>> builder = SceneBuilder()
    >>> builder.add_sphere((0, 0, -3), 1.0)
    >>> scene = builder.build()
    >>> hit = intersect_ray(scene, (0, 0, 0), (0, 0, -1))
    >>> round(hit.t, 3)
    2.0
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import Ray
from spheretrace.geometry.sphere import HitInfo, hit_sphere, make_miss_record
from spheretrace.materials.blinn_phong import MaterialParams
from spheretrace.scene.scene import Scene

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def intersect(ray: Ray, scene: ti.template()) -> HitInfo:
    """Find the closest sphere hit along a ray.

    Args:
        ray: The ray to test. The direction need not be unit length.
        scene: The Scene to test against.

    Returns:
        The closest hit with hit == 1, or a miss record (hit == 0,
        t == NO_HIT_T) if no sphere qualifies.
    """
    result = make_miss_record()
    for i in range(scene.num_spheres[None]):
        rec = hit_sphere(ray, scene.get_sphere(i), result.t)
        if rec.hit == 1:
            result = rec
    return result


@ti.func
def is_occluded(ray: Ray, scene: ti.template(), max_distance: ti.f32) -> ti.i32:
    """Check whether any sphere blocks a ray before max_distance.

    Hits at or beyond max_distance (for example behind a light) do not
    count as occluders.

    Args:
        ray: The shadow ray.
        scene: The Scene to test against.
        max_distance: Distance along the ray to the light.

    Returns:
        1 if the ray is blocked, 0 otherwise.
    """
    rec = intersect(ray, scene)
    occluded = 0
    if rec.hit == 1 and rec.t < max_distance:
        occluded = 1
    return occluded


# =============================================================================
# Host-side Queries
# =============================================================================


@dataclass(frozen=True)
class HitResult:
    """Host-side copy of a HitInfo for a ray that hit something.

    Attributes:
        t: Distance along the ray to the hit.
        position: The intersection point.
        normal: Unit outward normal at the intersection point.
        material: The material of the hit sphere.
    """

    t: float
    position: tuple[float, float, float]
    normal: tuple[float, float, float]
    material: MaterialParams


# Lazy holder - the result field is created on first use after Taichi is initialized
_probe_field: Any = None


def _get_probe_field() -> Any:
    global _probe_field
    if _probe_field is None:
        _probe_field = HitInfo.field(shape=())
    return _probe_field


@ti.kernel
def _intersect_kernel(scene: ti.template(), origin: vec3, direction: vec3, out: ti.template()):
    out[None] = intersect(Ray(origin=origin, direction=direction), scene)


def _as_tuple(v: Any) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def intersect_ray(
    scene: Scene,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> HitResult | None:
    """Intersect a single ray with a scene from Python.

    This is meant for tests, debugging and picking. Rendering calls the
    intersect() Taichi function directly inside kernels.

    Args:
        scene: The scene to query.
        origin: Ray origin.
        direction: Ray direction (need not be unit length).

    Returns:
        A HitResult for the closest hit, or None if the ray hits nothing.
    """
    out = _get_probe_field()
    _intersect_kernel(scene, vec3(*origin), vec3(*direction), out)
    rec = out[None]
    if rec.hit == 0:
        return None
    return HitResult(
        t=float(rec.t),
        position=_as_tuple(rec.position),
        normal=_as_tuple(rec.normal),
        material=MaterialParams(
            diffuse=_as_tuple(rec.material.diffuse),
            specular=_as_tuple(rec.material.specular),
            shininess=float(rec.material.shininess),
        ),
    )
