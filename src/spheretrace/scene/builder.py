"""Scene builder for assembling validated spheres and lights.

This module provides the host-side API used to describe a scene before it is
frozen into an immutable Scene snapshot. The builder owns all validation so
that the render core never has to check its inputs:

- Spheres must have a positive radius; degenerate spheres are rejected.
- Light intensities must be non-negative.
- Materials are validated (and shininess clamped) by MaterialParams.

A builder can be serialized to and from plain dictionaries through
SceneConfig, which makes it easy to keep scene descriptions alongside
render settings.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.builder import SceneBuilder
    >>> builder = SceneBuilder()
    >>> mirror = builder.add_material(specular=(0.9, 0.9, 0.9), diffuse=(0.05, 0.05, 0.05))
    >>> builder.add_sphere((0, 0, -5), 1.0, material=mirror)
    >>> builder.add_light((0, 5, -5), (1, 1, 1))
    >>> scene = builder.build()
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from spheretrace.materials.blinn_phong import MaterialParams
from spheretrace.scene.scene import Scene

logger = logging.getLogger(__name__)


def _vec3_tuple(values: Sequence[float], name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    result = (float(values[0]), float(values[1]), float(values[2]))
    if not all(math.isfinite(v) for v in result):
        raise ValueError(f"{name} must be finite, got {result}")
    return result


@dataclass(frozen=True)
class SphereParams:
    """Information about a sphere in the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        material: The Blinn-Phong material of the sphere.

    Raises:
        ValueError: If the radius is not positive.
    """

    center: tuple[float, float, float]
    radius: float
    material: MaterialParams = field(default_factory=MaterialParams)

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _vec3_tuple(self.center, "center"))
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")
        object.__setattr__(self, "radius", float(self.radius))


@dataclass(frozen=True)
class LightParams:
    """Information about a point light in the scene.

    Attributes:
        position: The light position.
        intensity: The light intensity as (R, G, B), non-negative.

    Raises:
        ValueError: If any intensity component is negative.
    """

    position: tuple[float, float, float]
    intensity: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec3_tuple(self.position, "position"))
        intensity = _vec3_tuple(self.intensity, "intensity")
        for i, component in enumerate(intensity):
            if component < 0.0:
                raise ValueError(f"Light intensity component {i} = {component} is negative.")
        object.__setattr__(self, "intensity", intensity)


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations (material referenced by index).
        lights: List of light configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)


class SceneBuilder:
    """Collects spheres, lights and materials and builds Scene snapshots.

    Materials are registered once and referenced by id, so several spheres
    can share one material. Every build() call produces a new, independent
    Scene; later changes to the builder do not affect scenes already built.

    Attributes:
        materials: Registered materials, indexed by material id.
        spheres: Spheres added so far, in scene order.
        lights: Lights added so far, in scene order.

    Example:
        >>> builder = SceneBuilder()
        >>> red = builder.add_material(diffuse=(0.8, 0.1, 0.1))
        >>> chrome = builder.add_material(diffuse=(0.1, 0.1, 0.1), specular=(0.8, 0.8, 0.8))
        >>> builder.add_sphere((-1, 0, -4), 1.0, material=red)
        >>> builder.add_sphere((1, 0, -4), 1.0, material=chrome)
        >>> builder.add_light((0, 5, 0), (1, 1, 1))
        >>> scene = builder.build()
    """

    def __init__(self) -> None:
        """Initialize an empty builder."""
        self.materials: list[MaterialParams] = []
        self.spheres: list[SphereParams] = []
        self.lights: list[LightParams] = []

    def clear(self) -> None:
        """Remove all spheres, lights and materials."""
        self.materials.clear()
        self.spheres.clear()
        self.lights.clear()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        diffuse: tuple[float, float, float] = (0.5, 0.5, 0.5),
        specular: tuple[float, float, float] = (0.0, 0.0, 0.0),
        shininess: float = 32.0,
    ) -> int:
        """Register a Blinn-Phong material.

        Args:
            diffuse: Diffuse coefficient as (R, G, B).
            specular: Specular coefficient as (R, G, B).
            shininess: Specular exponent. Non-positive values are clamped.

        Returns:
            The material id.

        Raises:
            ValueError: If a coefficient is negative.
        """
        self.materials.append(MaterialParams(diffuse, specular, shininess))
        return len(self.materials) - 1

    def get_material(self, material_id: int) -> MaterialParams:
        """Look up a registered material.

        Raises:
            ValueError: If the id is not registered.
        """
        if not 0 <= material_id < len(self.materials):
            raise ValueError(
                f"Unknown material id {material_id} ({len(self.materials)} registered)"
            )
        return self.materials[material_id]

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: int | MaterialParams | None = None,
        *,
        diffuse: tuple[float, float, float] | None = None,
        specular: tuple[float, float, float] | None = None,
        shininess: float | None = None,
    ) -> int:
        """Add a sphere to the scene.

        The material may be given as a registered id, a MaterialParams, or
        inline through the diffuse/specular/shininess keywords.

        Args:
            center: The center of the sphere.
            radius: The radius (must be positive).
            material: Material id or MaterialParams.
            diffuse: Inline diffuse coefficient.
            specular: Inline specular coefficient.
            shininess: Inline specular exponent.

        Returns:
            The index of the sphere in scene order.

        Raises:
            ValueError: If the radius is not positive, the material id is
                unknown, or both a material and inline values are given.
        """
        inline = diffuse is not None or specular is not None or shininess is not None
        if material is not None and inline:
            raise ValueError("Pass either a material or inline material values, not both")

        if isinstance(material, MaterialParams):
            params = material
        elif material is not None:
            params = self.get_material(material)
        else:
            params = MaterialParams(
                diffuse=diffuse if diffuse is not None else (0.5, 0.5, 0.5),
                specular=specular if specular is not None else (0.0, 0.0, 0.0),
                shininess=shininess if shininess is not None else 32.0,
            )

        self.spheres.append(SphereParams(center=center, radius=radius, material=params))
        return len(self.spheres) - 1

    def add_light(
        self,
        position: tuple[float, float, float],
        intensity: tuple[float, float, float] = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a point light to the scene.

        Args:
            position: The light position.
            intensity: The light intensity as (R, G, B).

        Returns:
            The index of the light in scene order.

        Raises:
            ValueError: If any intensity component is negative.
        """
        self.lights.append(LightParams(position=position, intensity=intensity))
        return len(self.lights) - 1

    def get_sphere_count(self) -> int:
        """Get the number of spheres added so far."""
        return len(self.spheres)

    def get_light_count(self) -> int:
        """Get the number of lights added so far."""
        return len(self.lights)

    # =========================================================================
    # Snapshot
    # =========================================================================

    def build(self) -> Scene:
        """Freeze the current contents into a Scene.

        Returns:
            A new Scene holding copies of the current spheres and lights.
        """
        scene = Scene(self.spheres, self.lights)
        logger.info(
            "Built scene with %d spheres and %d lights", scene.sphere_count, scene.light_count
        )
        if scene.sphere_count == 0:
            logger.warning("Scene has no spheres; every ray will show the environment")
        return scene

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the builder contents to a SceneConfig.

        Spheres reference materials by index. Inline materials are
        registered in the exported material list.

        Returns:
            A SceneConfig describing the scene.
        """
        materials = list(self.materials)
        sphere_configs = []
        for sphere in self.spheres:
            if sphere.material in materials:
                material_index = materials.index(sphere.material)
            else:
                materials.append(sphere.material)
                material_index = len(materials) - 1
            sphere_configs.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material": material_index,
                }
            )

        return SceneConfig(
            materials=[material.to_dict() for material in materials],
            spheres=sphere_configs,
            lights=[
                {"position": list(light.position), "intensity": list(light.intensity)}
                for light in self.lights
            ],
        )

    def from_config(self, config: SceneConfig) -> None:
        """Replace the builder contents with a SceneConfig.

        Every entry is validated before anything is replaced, so a rejected
        configuration leaves the builder unchanged.

        Args:
            config: The configuration to load.

        Raises:
            ValueError: If the configuration contains invalid values.
        """
        materials = [MaterialParams.from_dict(material) for material in config.materials]

        spheres = []
        for sphere in config.spheres:
            if materials:
                material_id = int(sphere.get("material", 0))
                if not 0 <= material_id < len(materials):
                    raise ValueError(
                        f"Unknown material id {material_id} ({len(materials)} registered)"
                    )
                material = materials[material_id]
            else:
                material = MaterialParams()
            spheres.append(
                SphereParams(
                    center=tuple(sphere["center"]),
                    radius=float(sphere["radius"]),
                    material=material,
                )
            )

        lights = [
            LightParams(
                position=tuple(light["position"]),
                intensity=tuple(light.get("intensity", (1.0, 1.0, 1.0))),
            )
            for light in config.lights
        ]

        self.materials = materials
        self.spheres = spheres
        self.lights = lights

    def to_dict(self) -> dict[str, Any]:
        """Export the builder contents to a plain dictionary."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "lights": config.lights,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the builder contents with a dictionary from to_dict()."""
        self.from_config(
            SceneConfig(
                materials=list(data.get("materials", [])),
                spheres=list(data.get("spheres", [])),
                lights=list(data.get("lights", [])),
            )
        )

    @classmethod
    def from_scene_dict(cls, data: dict[str, Any]) -> SceneBuilder:
        """Create a builder from a dictionary produced by to_dict()."""
        builder = cls()
        builder.from_dict(data)
        return builder

    def __repr__(self) -> str:
        return (
            f"SceneBuilder(materials={len(self.materials)}, spheres={len(self.spheres)}, "
            f"lights={len(self.lights)})"
        )
