#!/usr/bin/env python3
"""Interactive mirror-spheres viewer with a live bounce limit.

This script opens a GGUI window on the mirror-spheres scene. The frame is
re-rendered whenever the bounce limit changes.

Usage:
    python -m examples.interactive_mirror_spheres [--cubemap DIR]

Controls:
    - Up / Down arrows: raise or lower the bounce limit
    - Bounce limit slider: set the bounce limit directly
"""

import argparse
import logging
import platform
import sys

import taichi as ti


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    On macOS, prefers Metal. Falls back to CPU if GPU is unavailable.

    Returns:
        Name of the backend being used.
    """
    if platform.system() == "Darwin":
        try:
            ti.init(arch=ti.metal)
            return "Metal (GPU)"
        except Exception:
            pass

    try:
        ti.init(arch=ti.gpu)
        return "GPU"
    except Exception:
        pass

    ti.init(arch=ti.cpu)
    return "CPU"


def main() -> int:
    """Main entry point for the interactive viewer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = argparse.ArgumentParser(description="Interactive mirror-spheres viewer.")
    parser.add_argument("--width", type=int, default=640)
    parser.add_argument("--height", type=int, default=480)
    parser.add_argument("--bounces", type=int, default=5)
    parser.add_argument("--cubemap", type=str, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Initialize Taichi first (before importing modules that allocate fields)
    backend = initialize_taichi()
    print(f"Taichi backend: {backend}")

    from spheretrace.environment.samplers import CubeMapEnvironment, GradientSkyEnvironment
    from spheretrace.preview.interactive import InteractivePreview
    from spheretrace.scene.presets import MirrorSpheresParams, create_mirror_spheres_scene

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        return 1

    try:
        scene, camera = create_mirror_spheres_scene(
            MirrorSpheresParams(aspect_ratio=args.width / args.height)
        )
        if args.cubemap is not None:
            environment = CubeMapEnvironment.from_directory(args.cubemap)
        else:
            environment = GradientSkyEnvironment()
        preview = InteractivePreview(args.width, args.height, bounce_limit=args.bounces)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("Starting interactive rendering...")
    print("  - Up/Down arrows change the bounce limit")
    print("  - Close window to exit")

    try:
        preview.run_reactive(scene, environment, camera)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
