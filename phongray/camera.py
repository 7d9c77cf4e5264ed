"""
Pinhole camera that maps image pixels to world-space rays.

The viewport sits ``focal_length`` in front of the camera and spans the
vertical field of view; its width follows the image aspect ratio. Pixel
rows are counted from the bottom of the viewport.
"""

from __future__ import annotations
import math
from typing import Tuple

from .vec3 import Vec3, Point3
from .ray import Ray

# Sub-pixel offset of a ray through the pixel center.
PIXEL_CENTER = (0.5, 0.5)


class Camera:
    """A perspective camera positioned with a look-at target."""

    def __init__(
        self,
        position: Point3,
        look_target: Point3,
        global_up: Vec3 = Vec3(0, 1, 0),
        fov_y: float = 45.0,
        focal_length: float = 1.0,
        image_width: int = 640,
        image_height: int = 480
    ):
        """Create a camera.

        Args:
            position: Camera position in world space
            look_target: Point the camera is looking at
            global_up: World up vector, must not be parallel to the view
            fov_y: Vertical field of view in degrees
            focal_length: Distance from the camera to the viewport
            image_width: Output width in pixels
            image_height: Output height in pixels

        Raises:
            ValueError: If the configuration cannot produce a viewport
        """
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
        if focal_length <= 0:
            raise ValueError(f"Focal length must be positive, got {focal_length}")
        if not 0 < fov_y < 180:
            raise ValueError(f"Vertical field of view must be in (0, 180) degrees, got {fov_y}")

        self.position = position
        self.look_target = look_target
        self.global_up = global_up
        self.fov_y = fov_y
        self.focal_length = focal_length
        self.image_width = image_width
        self.image_height = image_height

        self.forward = (look_target - position).normalize()
        if self.forward.near_zero():
            raise ValueError("Camera look target coincides with its position")

        right = self.forward.cross(global_up)
        if right.near_zero():
            raise ValueError("Camera global up vector is parallel to the view direction")

        # Orthonormal camera basis
        self.right = right.normalize()
        self.up = self.right.cross(self.forward).normalize()

        self.viewport_height = 2 * focal_length * math.tan(math.radians(fov_y) / 2)
        self.viewport_width = image_width * self.viewport_height / image_height

        self.lower_left = (
            position
            + self.forward * focal_length
            - self.right * (self.viewport_width / 2)
            - self.up * (self.viewport_height / 2)
        )

    @property
    def aspect_ratio(self) -> float:
        return self.image_width / self.image_height

    def get_ray(self, x: int, y: int, offset: Tuple[float, float] = PIXEL_CENTER) -> Ray:
        """Generate the ray through a point inside pixel (x, y).

        Args:
            x: Pixel column, 0 = left
            y: Pixel row, 0 = bottom
            offset: Position inside the pixel, each component in [0, 1)

        Returns:
            A ray from the camera position through the viewport point
        """
        offset_x, offset_y = offset
        s = (x + offset_x) * self.viewport_width / self.image_width
        t = (y + offset_y) * self.viewport_height / self.image_height

        pixel_position = self.lower_left + self.right * s + self.up * t
        return Ray(self.position, (pixel_position - self.position).normalize())

    def __repr__(self) -> str:
        return (f"Camera(position={self.position}, look_target={self.look_target}, "
                f"fov_y={self.fov_y}, size={self.image_width}x{self.image_height})")
