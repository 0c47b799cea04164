"""Geometry module for the sphere primitive.

Components:
    sphere: Sphere struct, hit records and ray-sphere intersection

All intersection routines are Taichi functions (@ti.func). Only the near
root of the ray-sphere quadratic is considered, so a ray starting inside a
sphere does not hit that sphere.
"""

from .sphere import (
    NO_HIT_T,
    HitInfo,
    Sphere,
    hit_sphere,
    make_miss_record,
    make_sphere,
    near_root,
)

__all__ = [
    "Sphere",
    "HitInfo",
    "hit_sphere",
    "near_root",
    "make_sphere",
    "make_miss_record",
    "NO_HIT_T",
]
