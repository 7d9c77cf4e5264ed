"""Tests for lighting."""

import pytest
import math

from phongray.vec3 import Vec3, Point3, Color
from phongray.lights import Light

WHITE = Color(1, 1, 1)
DIM = Color(0.1, 0.1, 0.1)


class TestPointLight:
    """Test point light behaviour."""

    def test_flag(self):
        light = Light.point(Point3(0, 10, 0), DIM, WHITE, WHITE)
        assert not light.is_directional
        assert light.w == 1.0

    def test_direction_from(self):
        light = Light.point(Point3(0, 10, 0), DIM, WHITE, WHITE)
        assert light.direction_from(Point3(0, 0, 0)) == Vec3(0, 1, 0)

    def test_distance_from(self):
        light = Light.point(Point3(0, 10, 0), DIM, WHITE, WHITE)
        assert abs(light.distance_from(Point3(0, 0, 0), 1e6) - 10.0) < 1e-9

    def test_attenuation(self):
        light = Light.point(Point3(0, 0, 0), DIM, WHITE, WHITE,
                            constant=1.0, linear=0.5, quadratic=0.25)
        # 1 / (1 + 0.5*2 + 0.25*4)
        assert abs(light.attenuation(2.0) - 1.0 / 3.0) < 1e-12

    def test_attenuation_decreases_with_distance(self):
        light = Light.point(Point3(0, 0, 0), DIM, WHITE, WHITE,
                            constant=1.0, linear=0.1, quadratic=0.01)
        assert light.attenuation(1.0) > light.attenuation(5.0) > light.attenuation(50.0)

    def test_zero_distance_with_zero_constant(self):
        light = Light.point(Point3(0, 0, 0), DIM, WHITE, WHITE,
                            constant=0.0, linear=1.0, quadratic=1.0)
        attenuation = light.attenuation(0.0)
        assert math.isfinite(attenuation)
        assert attenuation == 1.0

    def test_all_zero_coefficients(self):
        light = Light.point(Point3(0, 0, 0), DIM, WHITE, WHITE,
                            constant=0.0, linear=0.0, quadratic=0.0)
        assert light.attenuation(3.0) == 1.0


class TestDirectionalLight:
    """Test directional light behaviour."""

    def test_flag_from_w(self):
        light = Light(Vec3(0, -1, 0), 0.0, DIM, WHITE, WHITE, 1.0, 0.0, 0.0)
        assert light.is_directional

    def test_direction_is_inverted(self):
        # Light travelling downwards comes from above
        light = Light.directional(Vec3(0, -2, 0), DIM, WHITE, WHITE)
        assert light.direction_from(Point3(3, 4, 5)) == Vec3(0, 1, 0)

    def test_nominal_distance(self):
        light = Light.directional(Vec3(0, -1, 0), DIM, WHITE, WHITE)
        assert light.distance_from(Point3(0, 0, 0), 1e6) == 1e6

    def test_no_falloff(self):
        light = Light(Vec3(0, -1, 0), 0.0, DIM, WHITE, WHITE, 5.0, 5.0, 5.0)
        assert light.attenuation(1000.0) == 1.0


class TestLightImmutability:
    """Lights are fixed once a scene is built."""

    def test_frozen(self):
        light = Light.point(Point3(0, 0, 0), DIM, WHITE, WHITE)
        with pytest.raises(AttributeError):
            light.w = 0.0
