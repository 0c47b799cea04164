"""Materials module for the Blinn-Phong reflection model.

Components:
    blinn_phong: Material struct, validated host-side parameters and the
        Blinn-Phong evaluation used for direct lighting

A material carries a diffuse color, a specular color and a shininess
exponent. The specular color doubles as the mirror reflectance that
attenuates reflected rays; a black specular color means no reflection.
"""

from .blinn_phong import (
    SHININESS_FLOOR,
    Material,
    MaterialParams,
    blinn_phong,
    clamp_shininess,
    make_material,
)

__all__ = [
    "Material",
    "MaterialParams",
    "blinn_phong",
    "make_material",
    "clamp_shininess",
    "SHININESS_FLOOR",
]
