"""Full-frame renderer that traces every pixel in parallel.

This module walks the pixel grid, generates one primary ray per pixel from
the pinhole camera and calls the tracer. The outermost loop of the render
kernel runs over pixels, so Taichi parallelizes it; every iteration writes
only its own slot of the buffer.

Frames are atomic from the caller's point of view: rows are traced in tiles
into a scratch buffer and copied to the visible frame only after the last
tile finishes. Cancelling through the progress callback (or by closing the
progressive generator early) discards the scratch buffer, leaving the
previously committed frame untouched.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.renderer import Renderer
    >>> from spheretrace.scene.presets import create_mirror_spheres_scene
    >>> from spheretrace.environment.samplers import GradientSkyEnvironment
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> renderer = Renderer(320, 240)
    >>> renderer.render(scene, GradientSkyEnvironment(), bounce_limit=4, camera=camera)
    True
    >>> image = renderer.get_image_numpy()  # (240, 320, 4)
"""

import logging
import time
from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti

from spheretrace.camera.pinhole import PinholeCamera, get_pixel_ray, setup_camera
from spheretrace.core.tracer import DEFAULT_BOUNCE_LIMIT, trace, validate_bounce_limit
from spheretrace.scene.scene import Scene

logger = logging.getLogger(__name__)

# Maximum supported image dimensions
MAX_IMAGE_WIDTH = 4096
MAX_IMAGE_HEIGHT = 4096

# Rows traced per kernel launch
DEFAULT_TILE_ROWS = 64

# Type alias for progress callback
# Callback receives (rows_done, total_rows); returning False cancels the frame
ProgressCallback = Callable[[int, int], "bool | None"]


@ti.data_oriented
class Renderer:
    """Renders scenes into an RGBA frame buffer.

    The frame buffer holds unclamped linear RGB plus an alpha of 1.0 per
    pixel. Clamping and gamma belong to the display stage.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        tile_rows: Rows traced per kernel launch.
    """

    def __init__(self, width: int, height: int, tile_rows: int = DEFAULT_TILE_ROWS) -> None:
        """Allocate the scratch and frame buffers.

        Args:
            width: Image width in pixels (max MAX_IMAGE_WIDTH).
            height: Image height in pixels (max MAX_IMAGE_HEIGHT).
            tile_rows: Rows traced per kernel launch. Smaller tiles give
                finer progress reports and faster cancellation.

        Raises:
            ValueError: If dimensions are not positive or exceed the
                maximum supported size, or tile_rows is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({width}x{height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if tile_rows <= 0:
            raise ValueError(f"tile_rows must be positive, got {tile_rows}")

        self.width = width
        self.height = height
        self.tile_rows = tile_rows
        self._frames_rendered = 0

        # Fields are indexed (x, y) with y = 0 at the bottom row
        self._scratch = ti.Vector.field(4, dtype=ti.f32, shape=(width, height))
        self._frame = ti.Vector.field(4, dtype=ti.f32, shape=(width, height))

    @property
    def frames_rendered(self) -> int:
        """Number of frames committed so far."""
        return self._frames_rendered

    @property
    def has_frame(self) -> bool:
        """Whether a frame has been committed."""
        return self._frames_rendered > 0

    # =========================================================================
    # Rendering Kernels
    # =========================================================================

    @ti.kernel
    def _render_rows(
        self,
        scene: ti.template(),
        environment: ti.template(),
        bounce_limit: ti.i32,
        row_start: ti.i32,
        row_end: ti.i32,
    ):
        """Trace one tile of rows into the scratch buffer."""
        for i, j in ti.ndrange(self.width, (row_start, row_end)):
            ray = get_pixel_ray(i, j, self.width, self.height)
            self._scratch[i, j] = trace(ray, scene, environment, bounce_limit)

    @ti.kernel
    def _commit(self):
        """Copy the scratch buffer to the visible frame."""
        for i, j in self._frame:
            self._frame[i, j] = self._scratch[i, j]

    # =========================================================================
    # Public Rendering API
    # =========================================================================

    def render_progressive(
        self,
        scene: Scene,
        environment: Any,
        bounce_limit: int = DEFAULT_BOUNCE_LIMIT,
        camera: PinholeCamera | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render a frame tile by tile, yielding progress after each tile.

        The frame is committed only once the generator runs to completion.
        Closing the generator early discards the partial frame.

        Args:
            scene: The scene to render.
            environment: The environment sampler.
            bounce_limit: Number of reflection bounces allowed.
            camera: Optional camera to set up before rendering. If None,
                the currently configured camera is used.

        Yields:
            Tuple of (rows_done, total_rows).

        Raises:
            ValueError: If bounce_limit is outside [0, MAX_BOUNCES].
        """
        bounce_limit = validate_bounce_limit(bounce_limit)
        if camera is not None:
            setup_camera(camera)

        start_time = time.perf_counter()
        row = 0
        while row < self.height:
            row_end = min(row + self.tile_rows, self.height)
            self._render_rows(scene, environment, bounce_limit, row, row_end)
            row = row_end
            yield (row, self.height)

        self._commit()
        self._frames_rendered += 1
        logger.info(
            "Rendered %dx%d frame (%d bounces) in %.3fs",
            self.width,
            self.height,
            bounce_limit,
            time.perf_counter() - start_time,
        )

    def render(
        self,
        scene: Scene,
        environment: Any,
        bounce_limit: int = DEFAULT_BOUNCE_LIMIT,
        camera: PinholeCamera | None = None,
        callback: ProgressCallback | None = None,
    ) -> bool:
        """Render a full frame.

        Args:
            scene: The scene to render.
            environment: The environment sampler.
            bounce_limit: Number of reflection bounces allowed.
            camera: Optional camera to set up before rendering.
            callback: Optional function called after each tile with
                (rows_done, total_rows). Returning False cancels the frame.

        Returns:
            True if the frame was committed, False if it was cancelled.

        Raises:
            ValueError: If bounce_limit is outside [0, MAX_BOUNCES].

        Example:
            >>> def progress(done, total):
            ...     print(f"{done}/{total} rows")
            >>> renderer.render(scene, env, bounce_limit=4, callback=progress)
        """
        progress = self.render_progressive(scene, environment, bounce_limit, camera)
        for done, total in progress:
            if callback is not None and callback(done, total) is False:
                progress.close()
                logger.info("Frame cancelled after %d/%d rows", done, total)
                return False
        return True

    # =========================================================================
    # Frame Access
    # =========================================================================

    def _check_has_frame(self) -> None:
        if not self.has_frame:
            raise RuntimeError("No frame has been rendered yet. Call render() first.")

    def get_frame(self) -> ti.MatrixField:
        """Get the committed frame as a Taichi field of shape (width, height).

        Raises:
            RuntimeError: If no frame has been rendered.
        """
        self._check_has_frame()
        return self._frame

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the committed frame as a NumPy array.

        Returns:
            Array of shape (height, width, 4) with dtype float32, row 0 at
            the top. RGB values are unclamped.

        Raises:
            RuntimeError: If no frame has been rendered.
        """
        self._check_has_frame()
        image = self._frame.to_numpy()
        # (width, height, 4) -> (height, width, 4), then flip to top-left origin
        image = np.flipud(np.transpose(image, (1, 0, 2)))
        return np.ascontiguousarray(image, dtype=np.float32)

    def get_rgb_numpy(self) -> npt.NDArray[np.float32]:
        """Get the committed frame without its alpha channel.

        Returns:
            Array of shape (height, width, 3) with dtype float32.
        """
        return np.ascontiguousarray(self.get_image_numpy()[:, :, :3])

    def __repr__(self) -> str:
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"frames={self._frames_rendered})"
        )
