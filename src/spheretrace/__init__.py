"""Recursive Blinn-Phong sphere ray tracer built on Taichi.

This package renders scenes made only of spheres lit by point lights:
- Closest-hit ray-sphere intersection
- Blinn-Phong direct lighting with hard shadows
- Mirror reflections bounded by a runtime bounce limit
- Environment lookup (constant, procedural sky or cube map) for escaping rays

Subpackages:
    core: Ray utilities, shading, the reflection tracer and the renderer
    geometry: Sphere primitive and hit records
    materials: Blinn-Phong material model
    scene: Scene snapshot, builder, intersection queries and presets
    environment: Environment samplers for rays that leave the scene
    camera: Pinhole camera with per-pixel ray generation
    preview: Display processing and preview windows
"""

__version__ = "0.1.0"
