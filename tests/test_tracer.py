"""Unit tests for the bounded reflection tracer.

Tests cover:
- Primary misses returning the environment
- The one-sphere scenario
- Attenuation and bounce accounting between facing mirrors
- Termination outcomes (background, bounce limit, zero energy, miss)
- Bounce limit validation
"""

import pytest


class TestPrimaryRays:
    """Tests for primary hits and misses."""

    def test_miss_returns_environment(self):
        """Test a ray that hits nothing returns the environment color exactly."""
        from spheretrace.core.tracer import TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment
        from spheretrace.scene.builder import SceneBuilder

        env = ConstantEnvironment((0.2, 0.3, 0.4))
        result = trace_ray_with_outcome(SceneBuilder().build(), env, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert result.color == pytest.approx((0.2, 0.3, 0.4, 1.0), abs=1e-6)
        assert result.outcome == TraceOutcome.BACKGROUND
        assert result.bounces == 0

    def test_one_sphere_front(self, one_sphere_builder):
        """Test the front of the red sphere is unlit by a light above it."""
        from spheretrace.core.tracer import TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment

        result = trace_ray_with_outcome(
            one_sphere_builder.build(),
            ConstantEnvironment((0.5, 0.5, 0.5)),
            (0.0, 0.0, 0.0),
            (0.0, 0.0, -1.0),
        )

        # N.L < 0 at (0, 0, -4) for a light at (0, 5, -5)
        assert result.color == pytest.approx((0.0, 0.0, 0.0, 1.0), abs=1e-6)
        assert result.outcome == TraceOutcome.ZERO_ENERGY
        assert result.bounces == 0

    def test_one_sphere_top(self, one_sphere_builder):
        """Test the top of the red sphere is fully lit."""
        from spheretrace.core.tracer import trace_ray
        from spheretrace.environment.samplers import ConstantEnvironment

        color = trace_ray(
            one_sphere_builder.build(),
            ConstantEnvironment((0.5, 0.5, 0.5)),
            (0.0, 3.0, -5.0),
            (0.0, -1.0, 0.0),
        )
        assert color == pytest.approx((1.0, 0.0, 0.0, 1.0), abs=1e-5)

    def test_alpha_always_one(self, one_sphere_builder):
        """Test alpha is 1.0 for hits and misses alike."""
        from spheretrace.core.tracer import trace_ray
        from spheretrace.environment.samplers import ConstantEnvironment

        scene = one_sphere_builder.build()
        env = ConstantEnvironment((0.0, 0.0, 0.0))
        assert trace_ray(scene, env, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))[3] == 1.0
        assert trace_ray(scene, env, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))[3] == 1.0


class TestReflections:
    """Tests for the reflection loop."""

    def test_facing_mirrors_attenuation(self, facing_mirrors_builder):
        """Test attenuation compounds per bounce and never increases."""
        from spheretrace.core.tracer import TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment

        scene = facing_mirrors_builder.build()
        env = ConstantEnvironment((0.5, 0.5, 0.5))

        expected = [0.8, 0.4, 0.32, 0.16, 0.128, 0.064]
        previous = None
        for limit, k in enumerate(expected):
            result = trace_ray_with_outcome(scene, env, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0), limit)
            assert result.attenuation == pytest.approx((k, k, k), abs=1e-5)
            assert result.bounces == limit
            assert result.outcome == TraceOutcome.BOUNCE_LIMIT
            if previous is not None:
                assert result.attenuation[0] <= previous
            previous = result.attenuation[0]

    def test_facing_mirrors_stop_at_max(self, facing_mirrors_builder):
        """Test the loop never exceeds MAX_BOUNCES."""
        from spheretrace.core.tracer import MAX_BOUNCES, TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment

        result = trace_ray_with_outcome(
            facing_mirrors_builder.build(),
            ConstantEnvironment((0.5, 0.5, 0.5)),
            (0.0, 0.0, 0.0),
            (0.0, 0.0, -1.0),
            MAX_BOUNCES,
        )
        assert result.bounces == MAX_BOUNCES
        assert result.outcome == TraceOutcome.BOUNCE_LIMIT

    def test_single_mirror_no_self_hit(self):
        """Test a reflected ray leaves the mirror and escapes after one bounce."""
        from spheretrace.core.tracer import TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment
        from spheretrace.scene.builder import SceneBuilder

        builder = SceneBuilder()
        builder.add_sphere((0.0, 0.0, -5.0), 1.0, diffuse=(0.0, 0.0, 0.0), specular=(0.8, 0.8, 0.8))
        result = trace_ray_with_outcome(
            builder.build(),
            ConstantEnvironment((0.5, 0.5, 0.5)),
            (0.0, 0.0, 0.0),
            (0.0, 0.0, -1.0),
        )

        assert result.outcome == TraceOutcome.MISS
        assert result.bounces == 1
        # Reflection miss adds k * environment
        assert result.color == pytest.approx((0.4, 0.4, 0.4, 1.0), abs=1e-5)

    def test_zero_specular_stops_immediately(self, one_sphere_builder):
        """Test a non-reflective hit casts no reflection rays."""
        from spheretrace.core.tracer import TraceOutcome, trace_ray_with_outcome
        from spheretrace.environment.samplers import ConstantEnvironment

        result = trace_ray_with_outcome(
            one_sphere_builder.build(),
            ConstantEnvironment((1.0, 1.0, 1.0)),
            (0.0, 3.0, -5.0),
            (0.0, -1.0, 0.0),
            bounce_limit=16,
        )
        assert result.outcome == TraceOutcome.ZERO_ENERGY
        assert result.bounces == 0

    def test_bounce_limit_zero_matches_zero_specular(self):
        """Test limit 0 on a mirror equals the same scene with specular 0."""
        from spheretrace.core.tracer import trace_ray
        from spheretrace.environment.samplers import ConstantEnvironment
        from spheretrace.scene.builder import SceneBuilder

        env = ConstantEnvironment((0.6, 0.7, 0.8))
        mirror = SceneBuilder()
        mirror.add_sphere((0.0, 0.0, -5.0), 1.0, diffuse=(0.3, 0.3, 0.3), specular=(0.9, 0.9, 0.9))
        matte = SceneBuilder()
        matte.add_sphere((0.0, 0.0, -5.0), 1.0, diffuse=(0.3, 0.3, 0.3), specular=(0.0, 0.0, 0.0))

        for direction in [(0.0, 0.0, -1.0), (0.1, 0.1, -1.0), (0.0, 1.0, 0.0)]:
            a = trace_ray(mirror.build(), env, (0.0, 0.0, 0.0), direction, bounce_limit=0)
            b = trace_ray(matte.build(), env, (0.0, 0.0, 0.0), direction, bounce_limit=5)
            assert a == pytest.approx(b, abs=1e-6)


class TestBounceLimitValidation:
    """Tests for bounce limit validation."""

    @pytest.mark.parametrize("limit", [-1, 17, 100])
    def test_out_of_range(self, limit):
        """Test limits outside [0, MAX_BOUNCES] raise ValueError."""
        from spheretrace.core.tracer import trace_ray
        from spheretrace.environment.samplers import ConstantEnvironment
        from spheretrace.scene.builder import SceneBuilder

        with pytest.raises(ValueError, match="Bounce limit"):
            trace_ray(
                SceneBuilder().build(),
                ConstantEnvironment(),
                (0.0, 0.0, 0.0),
                (0.0, 0.0, -1.0),
                bounce_limit=limit,
            )

    @pytest.mark.parametrize("limit", [0, 5, 16])
    def test_in_range(self, limit):
        """Test valid limits pass through unchanged."""
        from spheretrace.core.tracer import validate_bounce_limit

        assert validate_bounce_limit(limit) == limit
