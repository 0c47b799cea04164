"""Unit tests for the ray module.

Tests cover:
- Ray dataclass, ray_at and make_ray
- Offset rays used for shadows and reflections
- Vector utility functions (dot, normalize, length, reflect, channel_sum)
"""

import math

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes correct point along ray."""
        from spheretrace.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0))
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_offset_ray_pushes_origin(self):
        """Test offset_ray moves the origin by the epsilon along offset_dir."""
        from spheretrace.core.ray import SELF_INTERSECTION_EPSILON, offset_ray, vec3

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = offset_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0))
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        o = origin[None]
        d = direction[None]
        assert abs(o[0] - 1.0) < 1e-6
        assert abs(o[1] - (1.0 + SELF_INTERSECTION_EPSILON)) < 1e-6
        assert abs(o[2] - 1.0) < 1e-6
        assert abs(d[0] - 1.0) < 1e-6
        assert abs(d[1]) < 1e-6


class TestVectorUtilities:
    """Tests for vector helper functions."""

    def test_dot_and_length(self):
        """Test dot, length and length_squared."""
        from spheretrace.core.ray import dot, length, length_squared, vec3

        results = ti.field(dtype=ti.f32, shape=(3,))

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            results[0] = dot(v, vec3(1.0, 2.0, 3.0))
            results[1] = length(v)
            results[2] = length_squared(v)

        test_kernel()
        assert abs(results[0] - 11.0) < 1e-6
        assert abs(results[1] - 5.0) < 1e-6
        assert abs(results[2] - 25.0) < 1e-6

    def test_normalize(self):
        """Test normalize produces a unit vector in the same direction."""
        from spheretrace.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_reflect_head_on(self):
        """Test reflection of a ray hitting a surface head-on reverses it."""
        from spheretrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6

    def test_reflect_45_degrees(self):
        """Test reflection at 45 degrees keeps the tangent component."""
        from spheretrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = vec3(1.0, -1.0, 0.0).normalized()
            result[None] = reflect(d, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        s = 1.0 / math.sqrt(2.0)
        assert abs(r[0] - s) < 1e-6
        assert abs(r[1] - s) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_channel_sum(self):
        """Test channel_sum adds the three components."""
        from spheretrace.core.ray import channel_sum, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = channel_sum(vec3(0.25, 0.5, 0.125))

        test_kernel()
        assert abs(result[None] - 0.875) < 1e-6
