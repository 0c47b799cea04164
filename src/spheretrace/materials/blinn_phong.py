"""Blinn-Phong material implementation.

This module implements the local illumination model used for every surface
in the scene. A material combines a Lambertian diffuse term with a specular
lobe built from the half-vector between the light and view directions:

    color = (k_d * max(N . L, 0) + k_s * max(N . H, 0)^n) * I
    H = normalize(L + V)

where k_d and k_s are the diffuse and specular coefficients, n is the
shininess exponent and I the light intensity. The specular coefficient
doubles as the mirror reflectance used by the tracer's reflection loop.

Shininess enters a power function, so a zero or negative exponent is
clamped to SHININESS_FLOOR when the host-side MaterialParams is created.

Example:
    >>> from spheretrace.materials.blinn_phong import MaterialParams
    >>> red_plastic = MaterialParams(
    ...     diffuse=(0.8, 0.1, 0.1), specular=(0.2, 0.2, 0.2), shininess=50.0
    ... )
"""

import logging
import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import dot, normalize

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Smallest exponent allowed to reach the power function
SHININESS_FLOOR = 1e-4


@ti.dataclass
class Material:
    """Blinn-Phong material properties.

    Attributes:
        diffuse: Diffuse coefficient k_d (RGB).
        specular: Specular coefficient k_s (RGB). Also the per-bounce
            reflectance of the surface.
        shininess: Specular exponent n (positive).
    """

    diffuse: vec3
    specular: vec3
    shininess: ti.f32


@ti.func
def blinn_phong(
    material: Material,
    normal: vec3,
    light_dir: vec3,
    view_dir: vec3,
    intensity: vec3,
) -> vec3:
    """Evaluate the Blinn-Phong contribution of a single unoccluded light.

    Args:
        material: The surface material.
        normal: Unit surface normal.
        light_dir: Unit direction from the surface point toward the light.
        view_dir: Unit direction from the surface point toward the viewer.
        intensity: The light intensity (RGB).

    Returns:
        The reflected radiance (RGB). Not clamped.
    """
    halfway = normalize(light_dir + view_dir)
    diffuse = tm.max(dot(normal, light_dir), 0.0)
    specular = tm.max(dot(normal, halfway), 0.0) ** material.shininess
    return (material.diffuse * diffuse + material.specular * specular) * intensity


@ti.func
def make_material(diffuse: vec3, specular: vec3, shininess: ti.f32) -> Material:
    """Create a material inside a Taichi kernel.

    The shininess is floored at SHININESS_FLOOR here as well, so materials
    built on the device obey the same contract as host-side ones.
    """
    return Material(
        diffuse=diffuse,
        specular=specular,
        shininess=tm.max(shininess, SHININESS_FLOOR),
    )


# =============================================================================
# Host-side Material Description
# =============================================================================


def clamp_shininess(shininess: float) -> float:
    """Floor a shininess exponent to a small positive value.

    Args:
        shininess: The requested exponent.

    Returns:
        The exponent, or SHININESS_FLOOR if it was below the floor.

    Raises:
        ValueError: If the exponent is NaN or infinite.
    """
    if not math.isfinite(shininess):
        raise ValueError(f"Shininess must be finite, got {shininess}")
    if shininess < SHININESS_FLOOR:
        logger.warning(
            "Shininess %s is below the floor; clamping to %s", shininess, SHININESS_FLOOR
        )
        return SHININESS_FLOOR
    return float(shininess)


def _validate_coefficients(name: str, values: tuple[float, float, float]) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    for i, component in enumerate(values):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite.")
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative.")
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass(frozen=True)
class MaterialParams:
    """Host-side description of a Blinn-Phong material.

    Values are validated on construction: coefficients must be non-negative
    and a non-positive shininess is clamped to SHININESS_FLOOR.

    Attributes:
        diffuse: Diffuse coefficient as (R, G, B). Conceptually in [0, 1].
        specular: Specular coefficient as (R, G, B). Conceptually in [0, 1];
            reflections only lose energy per bounce when it is.
        shininess: Specular exponent.

    Raises:
        ValueError: If a coefficient has the wrong length or a negative or
            non-finite component, or the shininess is not finite.
    """

    diffuse: tuple[float, float, float] = (0.5, 0.5, 0.5)
    specular: tuple[float, float, float] = (0.0, 0.0, 0.0)
    shininess: float = 32.0

    def __post_init__(self) -> None:
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "diffuse", _validate_coefficients("diffuse", tuple(self.diffuse)))
        object.__setattr__(self, "specular", _validate_coefficients("specular", tuple(self.specular)))
        object.__setattr__(self, "shininess", clamp_shininess(self.shininess))

    @property
    def is_reflective(self) -> bool:
        """Whether the material feeds any energy into the reflection loop."""
        return sum(self.specular) > 0.0

    def to_dict(self) -> dict[str, object]:
        """Convert to a plain dictionary."""
        return {
            "diffuse": list(self.diffuse),
            "specular": list(self.specular),
            "shininess": self.shininess,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "MaterialParams":
        """Create from a dictionary produced by to_dict()."""
        return cls(
            diffuse=tuple(data.get("diffuse", (0.5, 0.5, 0.5))),  # type: ignore[arg-type]
            specular=tuple(data.get("specular", (0.0, 0.0, 0.0))),  # type: ignore[arg-type]
            shininess=float(data.get("shininess", 32.0)),  # type: ignore[arg-type]
        )
