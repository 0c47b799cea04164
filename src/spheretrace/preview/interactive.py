"""Interactive preview window using Taichi GGUI.

This module provides an interactive preview window that re-renders the scene
whenever the bounce limit changes.

Features:
    - Taichi GGUI-based window (GPU-accelerated)
    - Display updates from numpy arrays or directly from the frame field
    - Up/Down arrow keys raise or lower the bounce limit
    - GUI panel with a bounce limit slider
    - Re-renders only when the bounce limit changes

Example:
    >>> import numpy as np
    >>> from spheretrace.preview.interactive import InteractivePreview
    >>>
    >>> preview = InteractivePreview(512, 512)
    >>> image = np.zeros((512, 512, 3), dtype=np.float32)
    >>> preview.update_image(image)
    >>> preview.run()

Reactive Rendering Example:
    >>> from spheretrace.scene.presets import create_mirror_spheres_scene
    >>> from spheretrace.environment.samplers import GradientSkyEnvironment
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> preview = InteractivePreview(640, 480)
    >>> preview.run_reactive(scene, GradientSkyEnvironment(), camera)
"""

import logging
import os
from typing import TYPE_CHECKING, Any

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretrace.core.tracer import DEFAULT_BOUNCE_LIMIT, MAX_BOUNCES, validate_bounce_limit
from spheretrace.preview.display import to_rgb

if TYPE_CHECKING:
    import numpy.typing as npt

    from spheretrace.camera.pinhole import PinholeCamera
    from spheretrace.core.renderer import Renderer
    from spheretrace.scene.scene import Scene

logger = logging.getLogger(__name__)


# Lazy kernel holder - kernel is created on first use after Taichi is initialized
_copy_frame_kernel: Any = None


def _get_copy_frame_kernel() -> Any:
    """Get or create the frame copy kernel.

    The kernel clamps the RGB part of an RGBA frame to [0, 1] and applies
    gamma while copying it into the display field.
    """
    global _copy_frame_kernel
    if _copy_frame_kernel is None:

        @ti.kernel
        def _kernel(src: ti.template(), dst: ti.template(), inv_gamma: ti.f32):
            for i, j in dst:
                color = src[i, j]
                rgb = tm.clamp(tm.vec3(color[0], color[1], color[2]), 0.0, 1.0)
                dst[i, j] = rgb**inv_gamma

        _copy_frame_kernel = _kernel
    return _copy_frame_kernel


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        gamma: Gamma applied when copying frames for display.
        bounce_limit: Bounce limit used by the reactive loop.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Sphere Tracer - Interactive Preview",
        bounce_limit: int = DEFAULT_BOUNCE_LIMIT,
        gamma: float = 2.2,
    ) -> None:
        """Set up the display buffer. The window opens on first use.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.
            bounce_limit: Initial bounce limit for the reactive loop.
            gamma: Display gamma (default 2.2 for sRGB).

        Raises:
            ValueError: If dimensions or gamma are not positive, or
                bounce_limit is outside [0, MAX_BOUNCES].
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Window dimensions must be positive, got {width}x{height}")
        if gamma <= 0.0:
            raise ValueError(f"Gamma must be positive, got {gamma}")

        self.width = width
        self.height = height
        self.gamma = gamma
        self.bounce_limit = validate_bounce_limit(bounce_limit)
        self._title = title
        self._is_initialized = False
        self._needs_render = True

        # Deferred so the class can be used headless
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        self.display_image: ti.MatrixField = ti.Vector.field(3, dtype=ti.f32, shape=(width, height))

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> "ti.ui.Window":
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> "ti.ui.Canvas":
        """Get the canvas for rendering."""
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    @property
    def needs_render(self) -> bool:
        """Whether the reactive loop must render before the next frame."""
        return self._needs_render

    # =========================================================================
    # Display Updates
    # =========================================================================

    def update_image(self, image: "npt.NDArray[np.float32]") -> None:
        """Update the display image from a numpy array.

        The image must already be display-ready (values in [0, 1], gamma
        applied). An alpha channel is ignored.

        Args:
            image: Array of shape (height, width, 3) or (height, width, 4)
                with row 0 at the top.

        Raises:
            ValueError: If the image size doesn't match the window.
        """
        if image.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected "
                f"({self.height}, {self.width}, 3 or 4)"
            )
        rgb = to_rgb(image)

        # NumPy (row, col) with row 0 at top -> Taichi (x, y) with y = 0 at bottom
        self.display_image.from_numpy(np.ascontiguousarray(np.transpose(np.flipud(rgb), (1, 0, 2))))

    def update_image_from_field(self, field: ti.MatrixField) -> None:
        """Update the display image from a renderer frame field.

        Clamps to [0, 1] and applies the display gamma on the device,
        avoiding a host round trip.

        Args:
            field: Taichi Vector.field of shape (width, height) with 3 or 4
                components, unclamped linear RGB(A).

        Raises:
            ValueError: If the field shape doesn't match the window.
        """
        if tuple(field.shape) != (self.width, self.height):
            raise ValueError(
                f"Field shape {tuple(field.shape)} doesn't match expected "
                f"({self.width}, {self.height})"
            )
        kernel = _get_copy_frame_kernel()
        kernel(field, self.display_image, 1.0 / self.gamma)

    def update_from_renderer(self, renderer: "Renderer") -> None:
        """Show the renderer's committed frame.

        Raises:
            RuntimeError: If the renderer has no committed frame.
        """
        self.update_image_from_field(renderer.get_frame())

    def get_display_numpy(self) -> "npt.NDArray[np.float32]":
        """Read back the display buffer as (height, width, 3), row 0 at the top."""
        image = self.display_image.to_numpy()
        return np.ascontiguousarray(np.flipud(np.transpose(image, (1, 0, 2))))

    # =========================================================================
    # Window Loop
    # =========================================================================

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Show the display image until the window is closed."""
        self._initialize_window()

        while self.is_running():
            self.show_frame()

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        if os.uname().sysname == "Darwin":
            # SSH without X forwarding has no display
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)

    # =========================================================================
    # Reactive Rendering Support
    # =========================================================================

    def set_bounce_limit(self, bounce_limit: int) -> bool:
        """Change the bounce limit, clamped to [0, MAX_BOUNCES].

        Args:
            bounce_limit: Requested bounce limit.

        Returns:
            True if the value changed and a re-render is pending.
        """
        clamped = max(0, min(int(bounce_limit), MAX_BOUNCES))
        if clamped == self.bounce_limit:
            return False
        logger.info("Bounce limit %d -> %d", self.bounce_limit, clamped)
        self.bounce_limit = clamped
        self._needs_render = True
        return True

    def handle_key(self, key: str) -> bool:
        """Apply a key press to the preview state.

        Up raises the bounce limit by one, Down lowers it by one. Other keys
        are ignored.

        Args:
            key: Key name as reported by ti.ui events.

        Returns:
            True if the key changed the bounce limit.
        """
        if key == ti.ui.UP:
            return self.set_bounce_limit(self.bounce_limit + 1)
        if key == ti.ui.DOWN:
            return self.set_bounce_limit(self.bounce_limit - 1)
        return False

    def render_if_needed(
        self,
        renderer: "Renderer",
        scene: "Scene",
        environment: Any,
        camera: "PinholeCamera | None" = None,
    ) -> bool:
        """Render and refresh the display when the bounce limit changed.

        Args:
            renderer: Renderer whose size matches the window.
            scene: Scene to render.
            environment: Environment sampler.
            camera: Optional camera to set up before rendering.

        Returns:
            True if a frame was rendered.
        """
        if not self._needs_render:
            return False
        committed = renderer.render(scene, environment, self.bounce_limit, camera=camera)
        if committed:
            self.update_from_renderer(renderer)
            self._needs_render = False
        return committed

    def _process_events(self) -> None:
        for event in self.window.get_events(ti.ui.PRESS):
            self.handle_key(event.key)

    def _draw_gui_panel(self) -> None:
        with self.window.GUI.sub_window("Reflections", 0.02, 0.02, 0.3, 0.12) as gui:
            new_limit = gui.slider_int("Bounce limit", self.bounce_limit, 0, MAX_BOUNCES)
            gui.text("Up/Down: change bounce limit")
        self.set_bounce_limit(new_limit)

    def run_reactive(
        self,
        scene: "Scene",
        environment: Any,
        camera: "PinholeCamera | None" = None,
    ) -> None:
        """Run the interactive loop until the window is closed.

        Each iteration reads key presses and the GUI slider, re-renders if
        the bounce limit changed, and presents the latest frame. The camera
        is set up once, before the first render.

        Args:
            scene: Scene to render.
            environment: Environment sampler.
            camera: Optional camera to set up before the first render.
        """
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.renderer import Renderer

        self._initialize_window()
        if camera is not None:
            setup_camera(camera)
        renderer = Renderer(self.width, self.height)
        self._needs_render = True
        logger.info("Interactive preview started (bounce limit %d)", self.bounce_limit)

        while self.is_running():
            self._process_events()
            self.render_if_needed(renderer, scene, environment)
            self._draw_gui_panel()
            self.show_frame()
