"""Sphere primitive with near-root ray-sphere intersection.

This module provides the Sphere dataclass, the HitInfo record returned by
intersection queries, and the per-sphere intersection routine.

The ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

which expands to a*t^2 + b*t + c = 0 with

    oc = origin - center
    a = dot(direction, direction)
    b = 2 * dot(oc, direction)
    c = dot(oc, oc) - radius^2

Only the near root t = (-b - sqrt(b^2 - 4ac)) / (2a) is considered, i.e. the
entry point of the ray into the sphere. A ray whose origin lies inside a
sphere therefore never reports the exit point; callers are expected to keep
ray origins outside all spheres.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import SELF_INTERSECTION_EPSILON, Ray, dot, length_squared, normalize
from spheretrace.materials.blinn_phong import Material

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Distance sentinel meaning "no hit yet"
NO_HIT_T = 1e30


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (must be positive).
        material: The Blinn-Phong material of the surface.
    """

    center: vec3
    radius: ti.f32
    material: Material


@ti.dataclass
class HitInfo:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if an intersection was found, 0 otherwise.
        t: Distance along the ray to the hit. NO_HIT_T when hit == 0.
        position: The intersection point. Only valid if hit == 1.
        normal: Unit outward normal at the intersection point.
            Only valid if hit == 1.
        material: Copy of the hit sphere's material. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    position: vec3
    normal: vec3
    material: Material


@ti.func
def make_miss_record() -> HitInfo:
    """Create a HitInfo indicating no intersection."""
    return HitInfo(
        hit=0,
        t=NO_HIT_T,
        position=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material=Material(
            diffuse=vec3(0.0, 0.0, 0.0),
            specular=vec3(0.0, 0.0, 0.0),
            shininess=1.0,
        ),
    )


@ti.func
def near_root(ray: Ray, center: vec3, radius: ti.f32):
    """Solve the ray-sphere quadratic for its near root.

    Args:
        ray: The ray to test.
        center: Sphere center.
        radius: Sphere radius.

    Returns:
        A tuple (has_root, t). has_root is 1 when the discriminant is
        strictly positive; t is the near root in that case and NO_HIT_T
        otherwise.
    """
    oc = ray.origin - center
    a = length_squared(ray.direction)
    b = 2.0 * dot(oc, ray.direction)
    c = length_squared(oc) - radius * radius
    discriminant = b * b - 4.0 * a * c

    has_root = 0
    t = NO_HIT_T
    # A tangent ray (discriminant == 0) is treated as a miss
    if discriminant > 0.0:
        has_root = 1
        t = (-b - ti.sqrt(discriminant)) / (2.0 * a)
    return has_root, t


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_max: ti.f32) -> HitInfo:
    """Test a ray against one sphere.

    The near root is accepted only if SELF_INTERSECTION_EPSILON < t < t_max,
    where t_max is the closest distance found so far.

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        t_max: Upper bound (exclusive) on accepted hit distances.

    Returns:
        A HitInfo for the accepted hit, or a miss record.
    """
    result = make_miss_record()
    has_root, t = near_root(ray, sphere.center, sphere.radius)
    if has_root == 1 and t < t_max and t > SELF_INTERSECTION_EPSILON:
        position = ray.origin + ray.direction * t
        result = HitInfo(
            hit=1,
            t=t,
            position=position,
            normal=normalize(position - sphere.center),
            material=sphere.material,
        )
    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material: Material) -> Sphere:
    """Create a sphere inside a Taichi kernel."""
    return Sphere(center=center, radius=radius, material=material)
