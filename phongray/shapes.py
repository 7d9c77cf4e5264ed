"""
Geometric primitives for the ray tracer.

Every primitive implements ``intersect(ray)``, returning a Hit for the
nearest point in front of the ray origin or None on a miss. Degenerate
primitives (bad radius, collinear vertices) never report a hit.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import math

from .vec3 import Vec3, Point3
from .ray import Ray
from .materials import Material

# Triangles treat relative sines and cosines below this as zero.
EPSILON = 1e-8


@dataclass(frozen=True)
class Hit:
    """A single ray-primitive intersection.

    Attributes:
        t: Ray parameter of the hit, always > 0
        point: The intersection point in world space
        normal: Unit surface normal at the intersection
    """
    t: float
    point: Point3
    normal: Vec3


class Geometry(ABC):
    """Abstract base class for all objects that can be hit by rays."""

    material: Material

    @abstractmethod
    def intersect(self, ray: Ray) -> Optional[Hit]:
        """Test if ray intersects this object.

        Args:
            ray: The ray to test (unit direction)

        Returns:
            Hit for the nearest intersection with t > 0, None otherwise
        """
        pass


class Sphere(Geometry):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Material):
        self.center = center
        self.radius = radius
        self.material = material

    @property
    def degenerate(self) -> bool:
        """True for a non-positive or non-finite radius."""
        return not (self.radius > 0 and math.isfinite(self.radius))

    def intersect(self, ray: Ray) -> Optional[Hit]:
        """Solve |O + tD - C|² = r² for a unit direction D.

        With m = O - C the quadratic reduces to t² + 2bt + c = 0 where
        b = m·D and c = m·m - r², so the roots are -b ± sqrt(b² - c).
        """
        if self.degenerate:
            return None

        m = ray.origin - self.center
        b = m.dot(ray.direction)
        c = m.length_squared() - self.radius * self.radius
        discriminant = b * b - c

        if discriminant < 0:
            return None

        if discriminant == 0:
            t = -b
        else:
            sqrtd = math.sqrt(discriminant)
            t1 = -b + sqrtd
            t2 = -b - sqrtd
            # Ray starts inside the sphere: only the far root is in front
            if t2 > 0:
                t = t2
            else:
                t = t1

        # Also rejects NaN from non-finite centers or rays
        if not t > 0:
            return None

        point = ray.at(t)
        normal = (point - self.center).normalize()
        return Hit(t=t, point=point, normal=normal)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Triangle(Geometry):
    """A one-sided triangle defined by three vertices.

    The front face is the side the normal (B - A) x (C - A) points to, i.e.
    the side from which A, B, C appear counter-clockwise. Rays arriving
    from behind pass through.
    """

    def __init__(self, a: Point3, b: Point3, c: Point3, material: Material):
        self.a = a
        self.b = b
        self.c = c
        self.material = material

        # Pre-compute edges and normal
        self.ab = b - a
        self.ac = c - a
        self.n = self.ab.cross(self.ac)
        self.normal = self.n.normalize()
        # |n| = |AB| |AC| sin(angle), so compare the sine against EPSILON
        self.area = self.n.length()
        self.degenerate = not self.area > EPSILON * self.ab.length() * self.ac.length()

    def intersect(self, ray: Ray) -> Optional[Hit]:
        """Solve for t, u, v with Cramer's rule on the plane/edge system.

        O + tD = A + u(B - A) + v(C - A), using f = -D·n as the shared
        denominator.
        """
        if self.degenerate:
            return None

        neg_dir = -ray.direction
        f = neg_dir.dot(self.n)

        # Ray is parallel to the plane (f / |n| is the cosine of the incidence angle)
        if abs(f) < EPSILON * self.area:
            return None

        # Ray approaches the back face
        if f < 0:
            return None

        ao = ray.origin - self.a
        t = ao.dot(self.n) / f
        if not t > 0:
            return None

        e = neg_dir.cross(ao)
        u = self.ac.dot(e) / f
        v = -self.ab.dot(e) / f

        if not (u >= 0 and v >= 0 and u + v <= 1):
            return None

        return Hit(t=t, point=ray.at(t), normal=self.normal)

    def __repr__(self) -> str:
        return f"Triangle(a={self.a}, b={self.b}, c={self.c})"
