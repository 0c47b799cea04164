"""Immutable scene snapshot stored in Taichi fields.

A Scene holds the ordered spheres and point lights of one configuration in a
Structure-of-Arrays layout for GPU-efficient access. Fields are allocated to
exactly the number of primitives handed in, so there is no fixed capacity;
the live counts are kept in 0-d fields so an empty scene is representable.

Scenes are written once, from Python, when they are built, and are only read
by kernels afterwards. Use SceneBuilder to create one from validated
parameters rather than calling the constructor directly.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.builder import SceneBuilder
    >>> builder = SceneBuilder()
    >>> builder.add_sphere((0, 0, -5), 1.0, diffuse=(1, 0, 0))
    >>> builder.add_light((0, 5, -5), (1, 1, 1))
    >>> scene = builder.build()
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.geometry.sphere import Sphere
from spheretrace.materials.blinn_phong import Material

if TYPE_CHECKING:
    from spheretrace.scene.builder import LightParams, SphereParams

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class Light:
    """A point light.

    Attributes:
        position: Light position in world space.
        intensity: Light intensity (RGB, non-negative).
    """

    position: vec3
    intensity: vec3


@ti.data_oriented
class Scene:
    """Read-only collection of spheres and point lights.

    Attributes:
        sphere_count: Number of spheres in the scene.
        light_count: Number of lights in the scene.
    """

    def __init__(self, spheres: Sequence["SphereParams"], lights: Sequence["LightParams"]) -> None:
        """Upload spheres and lights into freshly allocated fields.

        Args:
            spheres: Validated sphere descriptions, in scene order.
            lights: Validated light descriptions, in scene order.
        """
        self._sphere_count = len(spheres)
        self._light_count = len(lights)
        self._sphere_params = tuple(spheres)
        self._light_params = tuple(lights)

        # Fields cannot have zero length; the counts gate every loop
        sphere_capacity = max(self._sphere_count, 1)
        light_capacity = max(self._light_count, 1)

        self.num_spheres = ti.field(dtype=ti.i32, shape=())
        self.sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=sphere_capacity)
        self.sphere_radii = ti.field(dtype=ti.f32, shape=sphere_capacity)
        self.sphere_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=sphere_capacity)
        self.sphere_specular = ti.Vector.field(3, dtype=ti.f32, shape=sphere_capacity)
        self.sphere_shininess = ti.field(dtype=ti.f32, shape=sphere_capacity)

        self.num_lights = ti.field(dtype=ti.i32, shape=())
        self.light_positions = ti.Vector.field(3, dtype=ti.f32, shape=light_capacity)
        self.light_intensities = ti.Vector.field(3, dtype=ti.f32, shape=light_capacity)

        self._upload()

    def _upload(self) -> None:
        """Copy the host-side parameters into the Taichi fields."""
        if self._sphere_count > 0:
            self.sphere_centers.from_numpy(
                np.array([s.center for s in self._sphere_params], dtype=np.float32)
            )
            self.sphere_radii.from_numpy(
                np.array([s.radius for s in self._sphere_params], dtype=np.float32)
            )
            self.sphere_diffuse.from_numpy(
                np.array([s.material.diffuse for s in self._sphere_params], dtype=np.float32)
            )
            self.sphere_specular.from_numpy(
                np.array([s.material.specular for s in self._sphere_params], dtype=np.float32)
            )
            self.sphere_shininess.from_numpy(
                np.array([s.material.shininess for s in self._sphere_params], dtype=np.float32)
            )
        self.num_spheres[None] = self._sphere_count

        if self._light_count > 0:
            self.light_positions.from_numpy(
                np.array([light.position for light in self._light_params], dtype=np.float32)
            )
            self.light_intensities.from_numpy(
                np.array([light.intensity for light in self._light_params], dtype=np.float32)
            )
        self.num_lights[None] = self._light_count

    @property
    def sphere_count(self) -> int:
        return self._sphere_count

    @property
    def light_count(self) -> int:
        return self._light_count

    @property
    def spheres(self) -> tuple["SphereParams", ...]:
        """Host-side copies of the spheres, in scene order."""
        return self._sphere_params

    @property
    def lights(self) -> tuple["LightParams", ...]:
        """Host-side copies of the lights, in scene order."""
        return self._light_params

    @ti.func
    def get_sphere(self, i: ti.i32) -> Sphere:
        """Assemble sphere i from the SoA fields."""
        return Sphere(
            center=self.sphere_centers[i],
            radius=self.sphere_radii[i],
            material=Material(
                diffuse=self.sphere_diffuse[i],
                specular=self.sphere_specular[i],
                shininess=self.sphere_shininess[i],
            ),
        )

    @ti.func
    def get_light(self, i: ti.i32) -> Light:
        """Assemble light i from the SoA fields."""
        return Light(position=self.light_positions[i], intensity=self.light_intensities[i])

    def __repr__(self) -> str:
        return f"Scene(spheres={self._sphere_count}, lights={self._light_count})"
