#!/usr/bin/env python3
"""Render the mirror-spheres scene.

This script renders the preset scene of reflective spheres on a ground sphere
and shows the result in a Matplotlib window.

Usage:
    python -m examples.render_mirror_spheres [options]

Options:
    --width WIDTH         Image width in pixels (default: 640)
    --height HEIGHT       Image height in pixels (default: 480)
    --bounces N           Reflection bounce limit (default: 5)
    --cubemap DIR         Directory with posx/negx/posy/negy/posz/negz images
    --tone-map METHOD     none, reinhard or exposure (default: none)
    --compare N           Also render with bounce limit N and show both
    --no-show             Render without opening a window
    --quiet               Suppress progress output

Example:
    python -m examples.render_mirror_spheres --bounces 8 --tone-map reinhard
"""

import argparse
import logging
import sys
import time

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the mirror-spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument("--bounces", type=int, default=5, help="Reflection bounce limit (default: 5)")
    parser.add_argument(
        "--cubemap",
        type=str,
        default=None,
        help="Directory holding the six cube-map faces (default: procedural sky)",
    )
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="none",
        help="Tone mapping for display (default: none, plain clamp)",
    )
    parser.add_argument(
        "--compare",
        type=int,
        default=None,
        help="Second bounce limit to render and compare against",
    )
    parser.add_argument("--no-show", action="store_true", help="Do not open a preview window")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_mirror_spheres(
    width: int = 640,
    height: int = 480,
    bounce_limit: int = 5,
    cubemap_dir: str | None = None,
    tone_map: str = "none",
    compare_limit: int | None = None,
    show: bool = True,
    quiet: bool = False,
) -> float | None:
    """Render the mirror-spheres scene and optionally display it.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        bounce_limit: Reflection bounce limit.
        cubemap_dir: Directory with cube-map face images, or None for the
            procedural sky.
        tone_map: Tone mapping method for display.
        compare_limit: Optional second bounce limit to compare against.
        show: Whether to open a Matplotlib window.
        quiet: If True, suppress progress output.

    Returns:
        RMSE between the two renders when compare_limit is given, else None.
    """
    # Lazy imports to allow Taichi initialization first
    from spheretrace.core.renderer import Renderer
    from spheretrace.environment.samplers import CubeMapEnvironment, GradientSkyEnvironment
    from spheretrace.preview.display import compute_rmse, show_comparison, show_preview
    from spheretrace.scene.presets import MirrorSpheresParams, create_mirror_spheres_scene

    if not quiet:
        print(f"Creating mirror-spheres scene ({width}x{height})...")

    scene, camera = create_mirror_spheres_scene(MirrorSpheresParams(aspect_ratio=width / height))
    if cubemap_dir is not None:
        environment = CubeMapEnvironment.from_directory(cubemap_dir)
    else:
        environment = GradientSkyEnvironment()

    renderer = Renderer(width, height)

    start_time = time.time()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if not quiet:
            print(
                f"\r  Progress: {rows_done}/{total_rows} rows "
                f"({rows_done / total_rows * 100:.1f}%)",
                end="",
                flush=True,
            )

    if not quiet:
        print(f"Rendering with bounce limit {bounce_limit}...")
    renderer.render(scene, environment, bounce_limit, camera=camera, callback=progress_callback)
    if not quiet:
        print()
        print(f"Render time: {time.time() - start_time:.2f}s")

    if compare_limit is None:
        if show:
            show_preview(renderer, tone_map=tone_map)
        return None

    first = renderer.get_image_numpy()
    if not quiet:
        print(f"Rendering with bounce limit {compare_limit}...")
    renderer.render(scene, environment, compare_limit, callback=progress_callback)
    if not quiet:
        print()
    second = renderer.get_image_numpy()

    if show:
        rmse = show_comparison(
            first,
            second,
            labels=(f"{bounce_limit} bounces", f"{compare_limit} bounces"),
            tone_map=tone_map,
        )
    else:
        rmse = compute_rmse(first, second)
    if not quiet:
        print(f"RMSE between renders: {rmse:.6f}")
    return rmse


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_mirror_spheres(
            width=args.width,
            height=args.height,
            bounce_limit=args.bounces,
            cubemap_dir=args.cubemap,
            tone_map=args.tone_map,
            compare_limit=args.compare,
            show=not args.no_show,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
