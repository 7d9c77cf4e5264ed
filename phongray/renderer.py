"""
Renderer module - the heart of the ray tracer.

Implements:
- Recursive Phong shading with hard shadows and mirror reflection
- Stochastic anti-aliasing (jittered supersampling)
- Row-parallel rendering with reproducible per-row random streams
"""

from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from .vec3 import Color
from .ray import Ray
from .camera import Camera, PIXEL_CENTER
from .scene import Scene
from .framebuffer import Framebuffer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RenderSettings:
    """Immutable configuration for the renderer.

    Attributes:
        background_color: Color of rays that hit nothing
        shadow_bias: Offset along the normal for shadow ray origins
        reflection_bias: Offset along the normal for reflection ray origins
        reflectivity_constant: Reflections are scaled by shininess / this
        light_infinity: Nominal distance to a directional light
        antialias: Use jittered supersampling instead of one centered ray
        samples_per_pixel: Number of jittered samples when antialiasing
        num_threads: Worker threads, 0 = one per CPU
        seed: Seed for jitter sampling, None = fresh entropy each render
    """
    background_color: Color = field(default_factory=lambda: Color(0.0, 0.5, 0.5))
    shadow_bias: float = 1e-4
    reflection_bias: float = 1e-4
    reflectivity_constant: float = 128.0
    light_infinity: float = 1e6
    antialias: bool = True
    samples_per_pixel: int = 16
    num_threads: int = 0
    seed: Optional[int] = None

    def __post_init__(self):
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}")
        if self.shadow_bias <= 0 or self.reflection_bias <= 0:
            raise ValueError("Shadow and reflection biases must be positive")
        if self.reflectivity_constant <= 0:
            raise ValueError(f"reflectivity_constant must be positive, got {self.reflectivity_constant}")
        if self.light_infinity <= 0:
            raise ValueError(f"light_infinity must be positive, got {self.light_infinity}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads cannot be negative, got {self.num_threads}")

    @property
    def worker_count(self) -> int:
        """Resolved number of worker threads."""
        return self.num_threads or os.cpu_count() or 4


class Renderer:
    """Whitted-style recursive ray tracer with Phong lighting."""

    def __init__(self, settings: Optional[RenderSettings] = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Set a callback for progress updates.

        Args:
            callback: Called as callback(rows_done, total_rows) after each row
        """
        self._progress_callback = callback

    def ray_trace(self, ray: Ray, scene: Scene, camera: Camera, depth: int) -> Color:
        """Compute the light arriving along ``ray``.

        Args:
            ray: The ray to trace
            scene: The scene to trace against
            camera: Viewer, used for specular highlights
            depth: Remaining bounces including this one; 1 means no
                reflection rays. Values below 1 are treated as 1.

        Returns:
            Unclamped linear color
        """
        settings = self.settings
        depth = max(depth, 1)

        info = scene.raycast(ray)
        if not info.hit:
            return settings.background_color

        material = info.obj.material
        point = info.point
        normal = info.normal
        lights = scene.lights
        to_camera = (camera.position - point).normalize()
        shadow_origin = point + normal * settings.shadow_bias

        color = Color(0, 0, 0)
        for light in lights:
            color = color + material.ambient * (light.ambient / len(lights))

            to_light = light.direction_from(point)
            shadow_ray = Ray(shadow_origin, light.direction_from(shadow_origin))
            light_distance = light.distance_from(shadow_origin, settings.light_infinity)

            if self._occluded(shadow_ray, scene, light_distance):
                continue

            diffuse = material.diffuse * light.diffuse * max(to_light.dot(normal), 0.0)

            reflected = (-to_light).reflect(normal)
            strength = max(reflected.dot(to_camera), 0.0) ** material.shininess
            specular = material.specular * light.specular * strength

            attenuation = light.attenuation(light.distance_from(point, settings.light_infinity))
            color = color + (diffuse + specular) * attenuation

        if depth > 1:
            mirror = Ray(
                point + normal * settings.reflection_bias,
                ray.direction.reflect(normal).normalize()
            )
            reflection = self.ray_trace(mirror, scene, camera, depth - 1)
            color = color + reflection * (material.shininess / settings.reflectivity_constant)

        return color

    @staticmethod
    def _occluded(shadow_ray: Ray, scene: Scene, light_distance: float) -> bool:
        """True if something lies strictly between the ray origin and the light."""
        blocker = scene.raycast(shadow_ray)
        return blocker.hit and blocker.t < light_distance

    def sample_pixel(
        self,
        scene: Scene,
        camera: Camera,
        x: int,
        y: int,
        depth: int,
        rng: np.random.Generator
    ) -> Color:
        """Average one or more camera samples for the pixel at (x, y).

        Args:
            x: Pixel column, 0 = left
            y: Pixel row, 0 = top of the output image
            depth: Maximum recursion depth
            rng: Source of sub-pixel jitter

        Returns:
            The averaged, unclamped color. If shading fails the background
            color is returned so the rest of the image still renders.
        """
        row = camera.image_height - y - 1

        try:
            if not self.settings.antialias:
                return self.ray_trace(camera.get_ray(x, row, PIXEL_CENTER), scene, camera, depth)

            samples = self.settings.samples_per_pixel
            total = Color(0, 0, 0)
            for offset in rng.random((samples, 2)):
                ray = camera.get_ray(x, row, (float(offset[0]), float(offset[1])))
                total = total + self.ray_trace(ray, scene, camera, depth)
            return total / samples
        except Exception:
            logger.exception("Failed to shade pixel (%d, %d); using background color", x, y)
            return self.settings.background_color

    def render(self, scene: Scene, camera: Camera, max_depth: int) -> Framebuffer:
        """Render the scene into a new framebuffer.

        Rows are independent: each one gets its own random stream spawned
        from a single seed sequence, so a seeded render produces the same
        image regardless of how many threads are used.

        Args:
            scene: The scene to render
            camera: The camera to render from, defines the image size
            max_depth: Maximum recursion depth (1 = no reflections)

        Returns:
            The quantized image
        """
        width = camera.image_width
        height = camera.image_height
        framebuffer = Framebuffer(width, height)

        if max_depth < 1:
            logger.warning("max_depth %d is below 1; rendering without reflections", max_depth)
            max_depth = 1

        streams = np.random.SeedSequence(self.settings.seed).spawn(height)
        completed_rows = [0]  # Use list for mutable in closure
        progress_lock = threading.Lock()

        logger.info(
            "Rendering %dx%d, %d objects, %d lights, depth %d, %s",
            width, height, len(scene), len(scene.lights), max_depth,
            f"{self.settings.samples_per_pixel} samples/pixel" if self.settings.antialias else "no antialiasing"
        )

        def render_row(y: int) -> None:
            rng = np.random.default_rng(streams[y])
            row = np.empty((width, 3), dtype=np.float64)
            for x in range(width):
                row[x] = self.sample_pixel(scene, camera, x, y, max_depth, rng).to_array()
            framebuffer.set_row(y, row)

            with progress_lock:
                completed_rows[0] += 1
                if self._progress_callback:
                    self._progress_callback(completed_rows[0], height)

        workers = self.settings.worker_count
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                # list() re-raises any worker exception here
                list(executor.map(render_row, range(height)))
        else:
            for y in range(height):
                render_row(y)

        return framebuffer
