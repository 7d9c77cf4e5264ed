"""
phongray - A Python Whitted-style Ray Tracer

Renders still images of sphere and triangle scenes with:
- Phong lighting (ambient, diffuse, specular) from point and directional lights
- Hard shadows
- Recursive mirror reflection
- Jittered supersampling anti-aliasing
- Row-parallel rendering with reproducible seeded sampling
"""

__version__ = "0.1.0"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .materials import Material
from .shapes import Geometry, Hit, Sphere, Triangle
from .lights import Light
from .scene import Scene, IntersectionInfo, NO_INTERSECTION, raycast
from .camera import Camera
from .framebuffer import Framebuffer, to_byte, quantize
from .renderer import Renderer, RenderSettings
from .scene_parser import (
    SceneParser, SceneParseError, SceneDescription,
    load_scene, parse_scene, parse_scene_text
)
