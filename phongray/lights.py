"""
Light sources for Phong shading.

A light is described by a homogeneous position (x, y, z, w):
- w != 0: point light at (x, y, z) with distance attenuation
- w == 0: directional light travelling along (x, y, z), no falloff

Each light carries separate ambient, diffuse and specular intensities.
"""

from __future__ import annotations
from dataclasses import dataclass

from .vec3 import Vec3, Point3, Color

# Attenuation denominators at or below this are treated as "no falloff".
MIN_ATTENUATION_DENOMINATOR = 1e-12


@dataclass(frozen=True)
class Light:
    """A point or directional light.

    Attributes:
        position: Light position (point light) or travel direction
            (directional light)
        w: Homogeneous coordinate; 0 marks a directional light
        ambient: Ambient intensity
        diffuse: Diffuse intensity
        specular: Specular intensity
        constant: Constant attenuation coefficient (point lights only)
        linear: Linear attenuation coefficient (point lights only)
        quadratic: Quadratic attenuation coefficient (point lights only)
    """
    position: Vec3
    w: float
    ambient: Color
    diffuse: Color
    specular: Color
    constant: float = 1.0
    linear: float = 0.0
    quadratic: float = 0.0

    @classmethod
    def point(cls, position: Point3, ambient: Color, diffuse: Color, specular: Color,
              constant: float = 1.0, linear: float = 0.0, quadratic: float = 0.0) -> Light:
        """Create a point light at the given position."""
        return cls(position, 1.0, ambient, diffuse, specular, constant, linear, quadratic)

    @classmethod
    def directional(cls, direction: Vec3, ambient: Color, diffuse: Color, specular: Color) -> Light:
        """Create a directional light travelling along ``direction``."""
        return cls(direction, 0.0, ambient, diffuse, specular)

    @property
    def is_directional(self) -> bool:
        return self.w == 0

    def direction_from(self, point: Point3) -> Vec3:
        """Unit vector from ``point`` towards the light."""
        if self.is_directional:
            return (-self.position).normalize()
        return (self.position - point).normalize()

    def distance_from(self, point: Point3, infinity: float) -> float:
        """Distance from ``point`` to the light.

        Directional lights have no position, so the caller-supplied
        ``infinity`` stands in for their distance.
        """
        if self.is_directional:
            return infinity
        return (self.position - point).length()

    def attenuation(self, distance: float) -> float:
        """Intensity multiplier at the given distance from the light.

        1 / (constant + linear*d + quadratic*d²) for point lights; a
        vanishing denominator (e.g. all-zero coefficients at d == 0) yields
        1.0 instead of a division by zero.
        """
        if self.is_directional:
            return 1.0
        denominator = self.constant + self.linear * distance + self.quadratic * distance * distance
        if denominator <= MIN_ATTENUATION_DENOMINATOR:
            return 1.0
        return 1.0 / denominator
