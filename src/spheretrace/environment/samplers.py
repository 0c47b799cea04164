"""Environment (background) samplers.

An environment sampler maps a world-space direction to a color in [0, 1]^3.
The tracer treats it as an opaque capability: any object decorated with
@ti.data_oriented that exposes

    @ti.func
    def sample(self, direction: vec3) -> vec3: ...

can be passed wherever an environment is expected (kernels receive it as a
ti.template() argument). Samplers must be deterministic for a given
direction and must not be modified while a frame renders.

Implementations:
    ConstantEnvironment: A single color in every direction.
    GradientSkyEnvironment: Procedural sky gradient with a flat ground color.
    CubeMapEnvironment: Image-based lookup into six cube faces.

Axis conventions differ between scenes and cube-map sources, so the cube map
swizzles the lookup direction through a configurable axis order; "xzy" (the
default) swaps Y and Z, matching cube maps authored Z-up for a Y-up scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.environment.samplers import GradientSkyEnvironment
    >>> sky = GradientSkyEnvironment()
    >>> sample_environment(sky, (0.0, 1.0, 0.0))  # zenith color
    (0.3..., 0.5..., 0.9...)
"""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Face order used for cube-map storage (OpenGL layer order)
CUBE_FACES = ("+x", "-x", "+y", "-y", "+z", "-z")

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


def _parse_axis_order(axis_order: str) -> tuple[int, int, int]:
    """Turn a swizzle such as "xzy" into component indices.

    Raises:
        ValueError: If the string is not a permutation of "xyz".
    """
    if len(axis_order) != 3 or sorted(axis_order) != ["x", "y", "z"]:
        raise ValueError(f"Axis order must be a permutation of 'xyz', got {axis_order!r}")
    return (_AXIS_INDEX[axis_order[0]], _AXIS_INDEX[axis_order[1]], _AXIS_INDEX[axis_order[2]])


def _color_tuple(color: Sequence[float], name: str) -> tuple[float, float, float]:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    return (float(color[0]), float(color[1]), float(color[2]))


@ti.data_oriented
class ConstantEnvironment:
    """Environment returning the same color in every direction.

    Attributes:
        color: The background color as (R, G, B).
    """

    def __init__(self, color: Sequence[float] = (0.0, 0.0, 0.0)) -> None:
        self.color = _color_tuple(color, "color")
        self._color = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._color[None] = self.color

    @ti.func
    def sample(self, direction: vec3) -> vec3:
        return self._color[None]

    def __repr__(self) -> str:
        return f"ConstantEnvironment(color={self.color})"


@ti.data_oriented
class GradientSkyEnvironment:
    """Procedural sky: a vertical gradient above the horizon, flat ground below.

    Directions with a positive up component blend from the horizon color to
    the zenith color by that component (after normalization); directions at
    or below the horizon return the ground color.

    Attributes:
        horizon: Color at the horizon.
        zenith: Color straight up.
        ground: Color below the horizon.
        up_axis: Which world axis points up ("x", "y" or "z").
    """

    def __init__(
        self,
        horizon: Sequence[float] = (0.9, 0.9, 0.95),
        zenith: Sequence[float] = (0.3, 0.5, 0.9),
        ground: Sequence[float] = (0.25, 0.22, 0.2),
        up_axis: str = "y",
    ) -> None:
        if up_axis not in _AXIS_INDEX:
            raise ValueError(f"Up axis must be one of 'x', 'y', 'z', got {up_axis!r}")
        self.horizon = _color_tuple(horizon, "horizon")
        self.zenith = _color_tuple(zenith, "zenith")
        self.ground = _color_tuple(ground, "ground")
        self.up_axis = up_axis
        self._up_index = _AXIS_INDEX[up_axis]

        self._horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._zenith = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._ground = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._horizon[None] = self.horizon
        self._zenith[None] = self.zenith
        self._ground[None] = self.ground

    @ti.func
    def sample(self, direction: vec3) -> vec3:
        up = tm.normalize(direction)[ti.static(self._up_index)]
        color = self._ground[None]
        if up > 0.0:
            color = tm.mix(self._horizon[None], self._zenith[None], up)
        return color

    def __repr__(self) -> str:
        return (
            f"GradientSkyEnvironment(horizon={self.horizon}, zenith={self.zenith}, "
            f"ground={self.ground}, up_axis={self.up_axis!r})"
        )


def _face_to_float(face: npt.NDArray[Any], name: str) -> npt.NDArray[np.float32]:
    """Convert one face image to float32 RGB in [0, 1].

    Raises:
        ValueError: If the face is not an (N, N, 3) or (N, N, 4) image.
    """
    array = np.asarray(face)
    if array.ndim != 3 or array.shape[2] not in (3, 4) or array.shape[0] != array.shape[1]:
        raise ValueError(
            f"Cube face {name} must be a square RGB image of shape (N, N, 3), got {array.shape}"
        )
    rgb = array[:, :, :3]
    if np.issubdtype(rgb.dtype, np.integer):
        return (rgb.astype(np.float32) / 255.0).astype(np.float32)
    return np.clip(rgb.astype(np.float32), 0.0, 1.0)


@ti.data_oriented
class CubeMapEnvironment:
    """Image-based environment using six cube faces.

    Face selection and (s, t) coordinates follow the OpenGL cube-map rules:
    the direction component with the largest magnitude picks the face and
    the other two, divided by it, give the position on that face. Row 0 of
    each face image is t = 0. Lookups use the nearest texel.

    Attributes:
        size: Edge length of each face in texels.
        axis_order: Swizzle applied to the direction before lookup.
    """

    def __init__(
        self,
        faces: Mapping[str, npt.NDArray[Any]],
        axis_order: str = "xzy",
    ) -> None:
        """Create a cube map from six face images.

        Args:
            faces: Mapping from face name ("+x", "-x", "+y", "-y", "+z",
                "-z") to a square image array of shape (N, N, 3) or
                (N, N, 4). uint8 images are scaled to [0, 1]; float images
                are clamped to [0, 1].
            axis_order: Swizzle applied to lookup directions, e.g. "xzy".

        Raises:
            ValueError: If a face is missing, faces differ in size, a face
                is not square RGB, or axis_order is not a permutation.
        """
        missing = [name for name in CUBE_FACES if name not in faces]
        if missing:
            raise ValueError(f"Cube map is missing faces: {missing}")

        self.axis_order = axis_order
        self._axes = _parse_axis_order(axis_order)

        converted = [_face_to_float(faces[name], name) for name in CUBE_FACES]
        sizes = {face.shape[0] for face in converted}
        if len(sizes) != 1:
            raise ValueError(f"Cube faces must all have the same size, got {sorted(sizes)}")
        self.size = sizes.pop()

        self._texels = ti.Vector.field(3, dtype=ti.f32, shape=(6, self.size, self.size))
        self._texels.from_numpy(np.ascontiguousarray(np.stack(converted)))

    @classmethod
    def from_files(
        cls,
        paths: Mapping[str, str | Path],
        axis_order: str = "xzy",
    ) -> "CubeMapEnvironment":
        """Load six cube faces from image files using Pillow.

        Args:
            paths: Mapping from face name to image path.
            axis_order: Swizzle applied to lookup directions.

        Returns:
            A new CubeMapEnvironment.
        """
        faces = {}
        for name, path in paths.items():
            with PILImage.open(path) as image:
                faces[name] = np.asarray(image.convert("RGB"))
            logger.debug("Loaded cube face %s from %s", name, path)
        logger.info("Loaded cube map with %d faces", len(faces))
        return cls(faces, axis_order=axis_order)

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        names: Mapping[str, str] | None = None,
        axis_order: str = "xzy",
    ) -> "CubeMapEnvironment":
        """Load a cube map from a directory of face images.

        Args:
            directory: Directory holding the faces.
            names: Mapping from face name to file name. Defaults to
                posx.jpg, negx.jpg, posy.jpg, negy.jpg, posz.jpg, negz.jpg.
            axis_order: Swizzle applied to lookup directions.

        Returns:
            A new CubeMapEnvironment.
        """
        if names is None:
            names = {
                "+x": "posx.jpg",
                "-x": "negx.jpg",
                "+y": "posy.jpg",
                "-y": "negy.jpg",
                "+z": "posz.jpg",
                "-z": "negz.jpg",
            }
        root = Path(directory)
        return cls.from_files({face: root / name for face, name in names.items()}, axis_order)

    @ti.func
    def _select_face(self, d: vec3):
        """Pick the cube face and face coordinates for a direction.

        Returns:
            A tuple (face, sc, tc, ma) with face in [0, 6) (CUBE_FACES
            order), the unnormalized face coordinates and the major-axis
            magnitude.
        """
        ax = ti.abs(d.x)
        ay = ti.abs(d.y)
        az = ti.abs(d.z)
        face = 0
        sc = 0.0
        tc = 0.0
        ma = 1.0
        if ax >= ay and ax >= az:
            ma = ax
            sc = -d.z if d.x >= 0.0 else d.z
            tc = -d.y
            face = 0 if d.x >= 0.0 else 1
        elif ay >= az:
            ma = ay
            sc = d.x
            tc = d.z if d.y >= 0.0 else -d.z
            face = 2 if d.y >= 0.0 else 3
        else:
            ma = az
            sc = d.x if d.z >= 0.0 else -d.x
            tc = -d.y
            face = 4 if d.z >= 0.0 else 5
        return face, sc, tc, ma

    @ti.func
    def sample(self, direction: vec3) -> vec3:
        d = vec3(
            direction[ti.static(self._axes[0])],
            direction[ti.static(self._axes[1])],
            direction[ti.static(self._axes[2])],
        )
        face, sc, tc, ma = self._select_face(d)
        s = 0.5 * (sc / ma + 1.0)
        t = 0.5 * (tc / ma + 1.0)
        size = ti.static(self.size)
        col = ti.min(ti.max(ti.cast(s * size, ti.i32), 0), size - 1)
        row = ti.min(ti.max(ti.cast(t * size, ti.i32), 0), size - 1)
        return self._texels[face, row, col]

    def __repr__(self) -> str:
        return f"CubeMapEnvironment(size={self.size}, axis_order={self.axis_order!r})"


# =============================================================================
# Host-side Sampling
# =============================================================================


@ti.kernel
def _sample_kernel(environment: ti.template(), direction: vec3) -> vec3:
    return environment.sample(direction)


def sample_environment(environment: Any, direction: Sequence[float]) -> tuple[float, float, float]:
    """Sample an environment from Python.

    Args:
        environment: Any environment sampler.
        direction: Lookup direction (need not be unit length).

    Returns:
        Tuple of (R, G, B).
    """
    color = _sample_kernel(environment, vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))
