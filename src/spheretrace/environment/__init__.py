"""Environment module for rays that leave the scene.

Components:
    samplers: Constant, procedural sky and cube-map environments

Every environment is a @ti.data_oriented object with a ``sample(direction)``
Taichi function, passed to kernels as a template argument.
"""

from .samplers import (
    CUBE_FACES,
    ConstantEnvironment,
    CubeMapEnvironment,
    GradientSkyEnvironment,
    sample_environment,
)

__all__ = [
    "ConstantEnvironment",
    "GradientSkyEnvironment",
    "CubeMapEnvironment",
    "CUBE_FACES",
    "sample_environment",
]
