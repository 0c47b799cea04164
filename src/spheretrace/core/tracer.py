"""Recursive (bounded) mirror-reflection ray tracer.

This module is the entry point of the render core. For one ray it finds the
primary hit, shades it with direct Blinn-Phong lighting, then follows mirror
reflections for at most bounce_limit bounces, weighting each reflected
contribution by the product of the specular coefficients seen so far.

Each invocation walks a small state machine:

    TRACING --(primary miss)--------------------> BACKGROUND
    TRACING --(bounce index reached the limit)--> BOUNCE_LIMIT
    TRACING --(k.r + k.g + k.b <= 0)------------> ZERO_ENERGY
    TRACING --(reflection ray missed)-----------> MISS

The per-bounce checks run in that fixed order (bounce limit, energy, intersection)
so no intersection work is spent once either limit is reached.

Key features:
    - Primary misses return the environment color directly
    - Reflection rays offset along the normal to avoid self-intersection
    - Attenuation compounds multiplicatively per bounce
    - A reflection miss adds the attenuated environment color and stops

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.tracer import trace_ray
    >>> from spheretrace.environment.samplers import ConstantEnvironment
    >>> from spheretrace.scene.builder import SceneBuilder
    >>>
    >>> scene = SceneBuilder().build()
    >>> env = ConstantEnvironment((0.2, 0.3, 0.4))
    >>> trace_ray(scene, env, (0, 0, 0), (0, 0, -1), bounce_limit=4)
    (0.2..., 0.3..., 0.4..., 1.0)
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import Ray, channel_sum, normalize, offset_ray, reflect
from spheretrace.core.shading import shade
from spheretrace.scene.intersection import intersect
from spheretrace.scene.scene import Scene

# Type aliases for vectors
vec3 = tm.vec3
vec4 = tm.vec4

# =============================================================================
# Tracing Constants
# =============================================================================

# Hard upper bound on reflection bounces per ray
MAX_BOUNCES = 16

# Bounce limit used when the caller does not pick one
DEFAULT_BOUNCE_LIMIT = 5


class TraceOutcome(IntEnum):
    """Terminal state of one trace invocation.

    TRACING is the initial state and never returned from a completed trace.
    """

    TRACING = 0
    BACKGROUND = 1
    BOUNCE_LIMIT = 2
    ZERO_ENERGY = 3
    MISS = 4


def validate_bounce_limit(bounce_limit: int) -> int:
    """Check a requested bounce limit against MAX_BOUNCES.

    Args:
        bounce_limit: Requested number of reflection bounces.

    Returns:
        The bounce limit as an int.

    Raises:
        ValueError: If the limit is negative or above MAX_BOUNCES.
    """
    if bounce_limit < 0 or bounce_limit > MAX_BOUNCES:
        raise ValueError(
            f"Bounce limit {bounce_limit} is outside [0, {MAX_BOUNCES}]"
        )
    return int(bounce_limit)


# =============================================================================
# Tracing Core
# =============================================================================


@ti.func
def trace_with_outcome(
    ray: Ray,
    scene: ti.template(),
    environment: ti.template(),
    bounce_limit: ti.i32,
):
    """Trace a ray and report how the trace terminated.

    Args:
        ray: The primary ray (world space).
        scene: The Scene to trace against.
        environment: Any environment sampler exposing a sample(direction)
            Taichi function.
        bounce_limit: Number of reflection bounces allowed, in
            [0, MAX_BOUNCES]. 0 disables reflections.

    Returns:
        A tuple of (color, outcome, bounces, attenuation) where:
        - color: RGBA radiance, RGB unclamped, alpha 1.0.
        - outcome: The TraceOutcome value as an int.
        - bounces: Number of reflection rays that were cast.
        - attenuation: The attenuation factor k when the trace stopped.
    """
    color = vec3(0.0, 0.0, 0.0)
    outcome = int(TraceOutcome.TRACING)
    bounces = 0
    k = vec3(0.0, 0.0, 0.0)

    hit = intersect(ray, scene)
    if hit.hit == 0:
        color = environment.sample(ray.direction)
        outcome = int(TraceOutcome.BACKGROUND)
    else:
        view = normalize(-ray.direction)
        color = shade(hit.material, hit.position, hit.normal, view, scene)
        k = hit.material.specular

        current_ray = ray
        current_hit = hit

        # Active flag instead of break: outcome stays TRACING while the loop runs
        for bounce in range(MAX_BOUNCES):
            if outcome == int(TraceOutcome.TRACING):
                if bounce >= bounce_limit:
                    outcome = int(TraceOutcome.BOUNCE_LIMIT)
                elif channel_sum(k) <= 0.0:
                    outcome = int(TraceOutcome.ZERO_ENERGY)
                else:
                    reflection_ray = offset_ray(
                        current_hit.position,
                        current_hit.normal,
                        reflect(current_ray.direction, current_hit.normal),
                    )
                    bounces += 1
                    new_hit = intersect(reflection_ray, scene)

                    if new_hit.hit == 1:
                        reflected_view = normalize(-reflection_ray.direction)
                        color += k * shade(
                            new_hit.material,
                            new_hit.position,
                            new_hit.normal,
                            reflected_view,
                            scene,
                        )
                        k *= new_hit.material.specular
                        current_ray = reflection_ray
                        current_hit = new_hit
                    else:
                        color += k * environment.sample(reflection_ray.direction)
                        outcome = int(TraceOutcome.MISS)

        # Ran through all MAX_BOUNCES iterations with energy left
        if outcome == int(TraceOutcome.TRACING):
            outcome = int(TraceOutcome.BOUNCE_LIMIT)

    return vec4(color.x, color.y, color.z, 1.0), outcome, bounces, k


@ti.func
def trace(
    ray: Ray,
    scene: ti.template(),
    environment: ti.template(),
    bounce_limit: ti.i32,
) -> vec4:
    """Compute the color seen along a ray.

    This is the per-pixel entry point used by the renderer.

    Args:
        ray: The primary ray (world space).
        scene: The Scene to trace against.
        environment: The environment sampler for rays that escape.
        bounce_limit: Number of reflection bounces allowed.

    Returns:
        RGBA color, RGB unclamped, alpha 1.0.
    """
    color, _, _, _ = trace_with_outcome(ray, scene, environment, bounce_limit)
    return color


# =============================================================================
# Host-side Tracing
# =============================================================================


@ti.dataclass
class TraceRecord:
    """Device-side record of a single trace, for host queries."""

    color: vec4
    outcome: ti.i32
    bounces: ti.i32
    attenuation: vec3


@dataclass(frozen=True)
class TraceResult:
    """Result of tracing a single ray from Python.

    Attributes:
        color: RGBA color, RGB unclamped, alpha 1.0.
        outcome: How the trace terminated.
        bounces: Number of reflection rays cast.
        attenuation: Attenuation factor k when the trace stopped.
    """

    color: tuple[float, float, float, float]
    outcome: TraceOutcome
    bounces: int
    attenuation: tuple[float, float, float]


# Lazy holder - the record field is created on first use after Taichi is initialized
_record_field: Any = None


def _get_record_field() -> Any:
    global _record_field
    if _record_field is None:
        _record_field = TraceRecord.field(shape=())
    return _record_field


@ti.kernel
def _trace_kernel(
    scene: ti.template(),
    environment: ti.template(),
    origin: vec3,
    direction: vec3,
    bounce_limit: ti.i32,
    out: ti.template(),
):
    color, outcome, bounces, k = trace_with_outcome(
        Ray(origin=origin, direction=direction), scene, environment, bounce_limit
    )
    out[None] = TraceRecord(color=color, outcome=outcome, bounces=bounces, attenuation=k)


def trace_ray_with_outcome(
    scene: Scene,
    environment: Any,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    bounce_limit: int = DEFAULT_BOUNCE_LIMIT,
) -> TraceResult:
    """Trace a single ray from Python and report the termination state.

    Args:
        scene: The scene to trace against.
        environment: The environment sampler.
        origin: Ray origin.
        direction: Ray direction.
        bounce_limit: Number of reflection bounces allowed.

    Returns:
        A TraceResult.

    Raises:
        ValueError: If bounce_limit is outside [0, MAX_BOUNCES].
    """
    bounce_limit = validate_bounce_limit(bounce_limit)
    out = _get_record_field()
    _trace_kernel(scene, environment, vec3(*origin), vec3(*direction), bounce_limit, out)
    rec = out[None]
    return TraceResult(
        color=(float(rec.color[0]), float(rec.color[1]), float(rec.color[2]), float(rec.color[3])),
        outcome=TraceOutcome(int(rec.outcome)),
        bounces=int(rec.bounces),
        attenuation=(
            float(rec.attenuation[0]),
            float(rec.attenuation[1]),
            float(rec.attenuation[2]),
        ),
    )


def trace_ray(
    scene: Scene,
    environment: Any,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    bounce_limit: int = DEFAULT_BOUNCE_LIMIT,
) -> tuple[float, float, float, float]:
    """Trace a single ray from Python.

    This is a Python-callable function for testing and picking. For full
    frames use Renderer, which traces all pixels in parallel.

    Args:
        scene: The scene to trace against.
        environment: The environment sampler.
        origin: Ray origin.
        direction: Ray direction.
        bounce_limit: Number of reflection bounces allowed.

    Returns:
        Tuple of (R, G, B, A). RGB is unclamped, A is always 1.0.

    Raises:
        ValueError: If bounce_limit is outside [0, MAX_BOUNCES].
    """
    return trace_ray_with_outcome(scene, environment, origin, direction, bounce_limit).color
