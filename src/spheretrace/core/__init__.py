"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and vector utilities
    shading: Shadowed Blinn-Phong direct illumination
    tracer: Primary hit, direct shading and the bounded reflection loop
    renderer: Parallel full-frame rendering into an RGBA buffer

The tracer follows the Whitted model restricted to mirror reflection: one
primary hit, direct lighting from point lights with hard shadows, and a fixed
number of specular bounces attenuated by the product of specular
coefficients along the path.
"""

from .ray import (
    SELF_INTERSECTION_EPSILON,
    Ray,
    channel_sum,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    offset_ray,
    ray_at,
    reflect,
    vec3,
    vec4,
)

# Note: shading, tracer and renderer are NOT imported here to avoid circular
# imports with the scene package. Import them directly, e.g.
#   from spheretrace.core.tracer import trace_ray

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "offset_ray",
    "vec3",
    "vec4",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "reflect",
    "channel_sum",
    "SELF_INTERSECTION_EPSILON",
]
