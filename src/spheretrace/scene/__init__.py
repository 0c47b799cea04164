"""Scene module for scene storage, construction and intersection.

This module handles scene representation and ray-scene queries:

Components:
    scene: Immutable Scene snapshot stored in Taichi fields
    builder: Validating SceneBuilder and serializable SceneConfig
    intersection: Closest-hit and shadow-ray queries
    presets: Ready-made scenes with matching cameras

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for sphere and light data
    - Fields sized to the scene, with live counts in 0-d fields
    - Written once from Python, read-only inside kernels
"""

from .builder import (
    LightParams,
    SceneBuilder,
    SceneConfig,
    SphereParams,
)
from .intersection import (
    HitResult,
    intersect,
    intersect_ray,
    is_occluded,
)
from .presets import (
    MirrorSpheresParams,
    build_mirror_spheres,
    create_mirror_spheres_scene,
)
from .scene import Light, Scene

__all__ = [
    # Scene snapshot
    "Scene",
    "Light",
    # Builder
    "SceneBuilder",
    "SceneConfig",
    "SphereParams",
    "LightParams",
    # Intersection
    "intersect",
    "is_occluded",
    "intersect_ray",
    "HitResult",
    # Presets
    "MirrorSpheresParams",
    "build_mirror_spheres",
    "create_mirror_spheres_scene",
]
