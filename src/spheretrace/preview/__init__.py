"""Preview module for display processing and visualization.

Components:
    display: Clamping, tone mapping, gamma and Matplotlib preview
    interactive: Taichi GGUI-based interactive preview window

Rendered frames hold unclamped linear RGB. The display stage maps them into
[0, 1] by clamping (default) or tone mapping, then applies gamma.

Example:
    >>> from spheretrace.preview import show_preview
    >>> renderer.render(scene, environment, bounce_limit=4, camera=camera)
    >>> show_preview(renderer)

For interactive GGUI preview:
    >>> from spheretrace.preview import InteractivePreview
    >>> preview = InteractivePreview(640, 480)
    >>> preview.run_reactive(scene, environment, camera)
"""

from spheretrace.preview.display import (
    ToneMapMethod,
    apply_gamma,
    compute_rmse,
    image_to_uint8,
    process_image_for_display,
    show_comparison,
    show_preview,
    to_rgb,
    tone_map_exposure,
    tone_map_reinhard,
)
from spheretrace.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Display functions
    "show_preview",
    "show_comparison",
    # Display processing
    "to_rgb",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "image_to_uint8",
    "compute_rmse",
    "ToneMapMethod",
]
