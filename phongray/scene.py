"""
Scene container and nearest-hit ray casting.

The scene is a plain linear list: every query tests every object in
insertion order.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .vec3 import Vec3, Point3
from .ray import Ray
from .shapes import Geometry
from .lights import Light

# Distance reported by a raycast that hit nothing.
NO_INTERSECTION = -1.0


@dataclass(frozen=True)
class IntersectionInfo:
    """Result of casting a ray into a scene.

    Attributes:
        ray: The ray that was cast
        t: Distance to the hit, or NO_INTERSECTION
        obj: The object that was hit, None on a miss
        point: Hit point (None on a miss)
        normal: Unit normal at the hit point (None on a miss)
    """
    ray: Ray
    t: float = NO_INTERSECTION
    obj: Optional[Geometry] = None
    point: Optional[Point3] = None
    normal: Optional[Vec3] = None

    @property
    def hit(self) -> bool:
        return self.obj is not None


class Scene:
    """Objects and lights to render.

    The scene takes its own copy of both sequences; it is not modified
    after construction, so any number of workers may query it at once.
    """

    def __init__(self, objects: Iterable[Geometry] = (), lights: Iterable[Light] = ()):
        self._objects: Tuple[Geometry, ...] = tuple(objects)
        self._lights: Tuple[Light, ...] = tuple(lights)

    @property
    def objects(self) -> Tuple[Geometry, ...]:
        return self._objects

    @property
    def lights(self) -> Tuple[Light, ...]:
        return self._lights

    def raycast(self, ray: Ray) -> IntersectionInfo:
        """Find the nearest object in front of the ray origin.

        On equal distances the object that comes first in the scene wins.
        """
        closest = None
        closest_obj = None

        for obj in self._objects:
            hit = obj.intersect(ray)
            if hit is None or not hit.t > 0:
                continue
            if closest is None or hit.t < closest.t:
                closest = hit
                closest_obj = obj

        if closest is None:
            return IntersectionInfo(ray=ray)

        return IntersectionInfo(
            ray=ray,
            t=closest.t,
            obj=closest_obj,
            point=closest.point,
            normal=closest.normal
        )

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self):
        return iter(self._objects)

    def __repr__(self) -> str:
        return f"Scene(objects={len(self._objects)}, lights={len(self._lights)})"


def raycast(ray: Ray, scene: Scene) -> IntersectionInfo:
    """Convenience function for Scene.raycast."""
    return scene.raycast(ray)
