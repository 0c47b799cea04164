"""Ray data structure and vector utilities for the ray tracer.

This module provides the Ray dataclass and the small set of vector helpers
used by intersection, shading and the reflection loop. All helpers are
Taichi functions so they can be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases for vectors using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4

# Offset and acceptance threshold shared by shadow rays, reflection rays
# and the intersector.
SELF_INTERSECTION_EPSILON = 0.001


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Intersection does
            not require unit length; shading normalizes where it matters.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def offset_ray(point: vec3, offset_dir: vec3, direction: vec3) -> Ray:
    """Spawn a ray slightly off a surface point.

    The origin is pushed SELF_INTERSECTION_EPSILON along offset_dir so that a
    secondary ray does not immediately re-hit the surface it starts on.

    Args:
        point: The surface point the ray leaves from.
        offset_dir: Unit vector to push the origin along (the surface normal
            for reflections, the light direction for shadow rays).
        direction: The direction of the new ray.

    Returns:
        The offset ray.
    """
    return Ray(origin=point + offset_dir * SELF_INTERSECTION_EPSILON, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes the mirror reflection d - 2 * dot(d, n) * n. The normal should
    be unit length for correct results.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def channel_sum(v: vec3) -> ti.f32:
    """Sum of the three color channels."""
    return v.x + v.y + v.z
