"""
Surface materials for Phong shading.

A material carries the three Phong reflectance terms and a shininess
exponent. Shininess does double duty: it sharpens the specular highlight
and, divided by the renderer's reflectivity constant, sets how strongly the
surface mirrors the rest of the scene.
"""

from __future__ import annotations
from dataclasses import dataclass

from .vec3 import Color


@dataclass(frozen=True)
class Material:
    """Phong material.

    Attributes:
        ambient: Reflectance for ambient light
        diffuse: Reflectance for Lambertian (diffuse) light
        specular: Reflectance for highlights
        shininess: Specular exponent, also drives mirror reflection strength
    """
    ambient: Color
    diffuse: Color
    specular: Color
    shininess: float

    def __post_init__(self):
        if self.shininess <= 0:
            raise ValueError(f"Material shininess must be positive, got {self.shininess}")

    @classmethod
    def matte(cls, color: Color, ambient: float = 0.1) -> Material:
        """A dull material: diffuse color, faint ambient, no highlight."""
        return cls(
            ambient=color * ambient,
            diffuse=color,
            specular=Color(0, 0, 0),
            shininess=1.0
        )
