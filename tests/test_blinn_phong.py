"""Unit tests for the Blinn-Phong material model.

Tests cover:
- Diffuse and specular terms of blinn_phong()
- Back-facing lights contribute nothing
- Shininess clamping on device and host
- MaterialParams validation and dict round trip
"""

import math

import pytest
import taichi as ti


class TestBlinnPhongEvaluation:
    """Tests for the blinn_phong Taichi function."""

    def test_diffuse_only_head_on(self):
        """Test a light straight above gives the full diffuse color."""
        from spheretrace.materials.blinn_phong import Material, blinn_phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            material = Material(
                diffuse=vec3(0.8, 0.4, 0.2), specular=vec3(0.0, 0.0, 0.0), shininess=10.0
            )
            n = vec3(0.0, 1.0, 0.0)
            result[None] = blinn_phong(material, n, n, n, vec3(1.0, 1.0, 1.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.8) < 1e-6
        assert abs(r[1] - 0.4) < 1e-6
        assert abs(r[2] - 0.2) < 1e-6

    def test_diffuse_cosine_falloff(self):
        """Test the diffuse term scales with the cosine of the light angle."""
        from spheretrace.materials.blinn_phong import Material, blinn_phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            material = Material(
                diffuse=vec3(1.0, 1.0, 1.0), specular=vec3(0.0, 0.0, 0.0), shininess=10.0
            )
            n = vec3(0.0, 1.0, 0.0)
            light_dir = vec3(1.0, 1.0, 0.0).normalized()
            result[None] = blinn_phong(material, n, light_dir, n, vec3(2.0, 2.0, 2.0))

        test_kernel()
        expected = 2.0 / math.sqrt(2.0)
        assert abs(result[None][0] - expected) < 1e-5

    def test_specular_peak_at_mirror_direction(self):
        """Test N.H = 1 gives the full specular color regardless of shininess."""
        from spheretrace.materials.blinn_phong import Material, blinn_phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            material = Material(
                diffuse=vec3(0.0, 0.0, 0.0), specular=vec3(0.5, 0.5, 0.5), shininess=100.0
            )
            n = vec3(0.0, 1.0, 0.0)
            light_dir = vec3(1.0, 1.0, 0.0).normalized()
            view_dir = vec3(-1.0, 1.0, 0.0).normalized()
            result[None] = blinn_phong(material, n, light_dir, view_dir, vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert abs(result[None][0] - 0.5) < 1e-5

    def test_specular_exponent(self):
        """Test the specular term is (N.H)^shininess."""
        from spheretrace.materials.blinn_phong import Material, blinn_phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            material = Material(
                diffuse=vec3(0.0, 0.0, 0.0), specular=vec3(1.0, 1.0, 1.0), shininess=4.0
            )
            n = vec3(0.0, 1.0, 0.0)
            # Light and view coincide, 60 degrees off the normal
            d = vec3(math.sin(math.pi / 3.0), 0.5, 0.0)
            result[None] = blinn_phong(material, n, d, d, vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert abs(result[None][0] - 0.5**4) < 1e-5

    def test_back_facing_light_contributes_nothing(self):
        """Test a light below the surface yields zero."""
        from spheretrace.materials.blinn_phong import Material, blinn_phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            material = Material(
                diffuse=vec3(1.0, 1.0, 1.0), specular=vec3(0.0, 0.0, 0.0), shininess=10.0
            )
            n = vec3(0.0, 1.0, 0.0)
            result[None] = blinn_phong(
                material, n, vec3(0.0, -1.0, 0.0), n, vec3(1.0, 1.0, 1.0)
            )

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_make_material_floors_shininess(self):
        """Test make_material clamps a non-positive exponent."""
        from spheretrace.materials.blinn_phong import SHININESS_FLOOR, make_material, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            material = make_material(vec3(1.0, 1.0, 1.0), vec3(0.0, 0.0, 0.0), -3.0)
            result[None] = material.shininess

        test_kernel()
        assert abs(result[None] - SHININESS_FLOOR) < 1e-8


class TestMaterialParams:
    """Tests for host-side material descriptions."""

    def test_defaults(self):
        """Test default material is gray, non-reflective."""
        from spheretrace.materials.blinn_phong import MaterialParams

        params = MaterialParams()
        assert params.diffuse == (0.5, 0.5, 0.5)
        assert params.specular == (0.0, 0.0, 0.0)
        assert params.shininess == 32.0
        assert not params.is_reflective

    def test_reflective(self):
        """Test any positive specular component makes a material reflective."""
        from spheretrace.materials.blinn_phong import MaterialParams

        assert MaterialParams(specular=(0.0, 0.1, 0.0)).is_reflective

    def test_negative_coefficient_rejected(self):
        """Test negative diffuse or specular components raise ValueError."""
        from spheretrace.materials.blinn_phong import MaterialParams

        with pytest.raises(ValueError, match="diffuse"):
            MaterialParams(diffuse=(0.5, -0.1, 0.5))
        with pytest.raises(ValueError, match="specular"):
            MaterialParams(specular=(-1.0, 0.0, 0.0))

    def test_wrong_length_rejected(self):
        """Test coefficients must have three components."""
        from spheretrace.materials.blinn_phong import MaterialParams

        with pytest.raises(ValueError, match="3 components"):
            MaterialParams(diffuse=(0.5, 0.5))

    def test_non_positive_shininess_clamped(self):
        """Test zero or negative shininess is clamped, not rejected."""
        from spheretrace.materials.blinn_phong import SHININESS_FLOOR, MaterialParams

        assert MaterialParams(shininess=0.0).shininess == SHININESS_FLOOR
        assert MaterialParams(shininess=-5.0).shininess == SHININESS_FLOOR

    def test_clamp_shininess_logs_warning(self, caplog):
        """Test clamping is reported through logging."""
        from spheretrace.materials.blinn_phong import SHININESS_FLOOR, clamp_shininess

        with caplog.at_level("WARNING", logger="spheretrace.materials.blinn_phong"):
            assert clamp_shininess(0.0) == SHININESS_FLOOR
        assert "clamping" in caplog.text

    def test_dict_round_trip(self):
        """Test to_dict/from_dict preserve the material."""
        from spheretrace.materials.blinn_phong import MaterialParams

        params = MaterialParams(diffuse=(0.1, 0.2, 0.3), specular=(0.4, 0.5, 0.6), shininess=7.0)
        assert MaterialParams.from_dict(params.to_dict()) == params

    @pytest.mark.parametrize("shininess", [float("nan"), float("inf")])
    def test_non_finite_shininess_rejected(self, shininess):
        """Test NaN or infinite shininess raises ValueError instead of reaching pow."""
        from spheretrace.materials.blinn_phong import MaterialParams, clamp_shininess

        with pytest.raises(ValueError, match="finite"):
            clamp_shininess(shininess)
        with pytest.raises(ValueError, match="finite"):
            MaterialParams(shininess=shininess)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_non_finite_coefficient_rejected(self, bad):
        """Test NaN or infinite coefficients raise ValueError."""
        from spheretrace.materials.blinn_phong import MaterialParams

        with pytest.raises(ValueError, match="not finite"):
            MaterialParams(diffuse=(0.5, bad, 0.5))
        with pytest.raises(ValueError, match="not finite"):
            MaterialParams(specular=(bad, 0.0, 0.0))
