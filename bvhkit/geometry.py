"""Rays, bounding volumes, BVH nodes and the primitive intersection tests."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

INVALID_INDEX = 0xFFFFFFFF
COLLAPSED_PRIMITIVE_COUNT = 0xFFFF
_TRIANGLE_EPSILON = 1e-9


def _vec3(value) -> np.ndarray:
    array = np.asarray(value, dtype=np.float64).ravel()
    if array.size < 3:
        raise ValueError("expected at least three components")
    return array[:3].copy()


@dataclass
class Ray:
    origin: np.ndarray
    direction: np.ndarray
    tmax: float = math.inf

    def __post_init__(self) -> None:
        self.origin = _vec3(self.origin)
        self.direction = _vec3(self.direction)


@dataclass
class AABB:
    minimum: np.ndarray
    maximum: np.ndarray

    def __post_init__(self) -> None:
        self.minimum = _vec3(self.minimum)
        self.maximum = _vec3(self.maximum)

    def surface_area(self) -> float:
        dx, dy, dz = self.maximum - self.minimum
        return float(2.0 * (dx * dy + dy * dz + dz * dx))


@dataclass
class OBB:
    """Oriented box: centre, three orthonormal axes and half extents along them."""

    mid: np.ndarray
    v0: np.ndarray
    v1: np.ndarray
    v2: np.ndarray
    ext: np.ndarray

    def __post_init__(self) -> None:
        self.mid = _vec3(self.mid)
        self.v0 = _vec3(self.v0)
        self.v1 = _vec3(self.v1)
        self.v2 = _vec3(self.v2)
        self.ext = _vec3(self.ext)

    def surface_area(self) -> float:
        ex, ey, ez = self.ext
        return float(8.0 * (ex * ey + ey * ez + ez * ex))


@dataclass
class BVHNode:
    bounds: AABB
    left: int = 0
    right: int = 0
    primitives_offset: int = 0
    n_primitives: int = 0
    axis: int = 0

    def is_leaf(self) -> bool:
        return self.n_primitives > 0


@dataclass
class Intersection:
    primitive: int = INVALID_INDEX
    instance: int = 0
    barys: np.ndarray = field(default_factory=lambda: np.zeros(2))
    geom_normal: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def hit(self) -> bool:
        return self.primitive != INVALID_INDEX


_UNIT_MIN = np.full(3, -0.5)
_UNIT_MAX = np.full(3, 0.5)


def _slabs(direction, origin, lo, hi):
    direction = _vec3(direction)
    origin = _vec3(origin)
    with np.errstate(divide="ignore", invalid="ignore"):
        inverse = 1.0 / direction
        t0 = (lo - origin) * inverse
        t1 = (hi - origin) * inverse
    near = np.fmin(t0, t1)
    far = np.fmax(t0, t1)
    near = np.where(np.isnan(near), -np.inf, near)
    far = np.where(np.isnan(far), np.inf, far)
    return direction, near, far


def _intersect(direction, origin, lo, hi, tmax):
    direction, near, far = _slabs(direction, origin, lo, hi)
    axis = int(np.argmax(near))
    tnear = float(near[axis])
    tfar = min(float(far.min()), float(tmax))
    normal = np.zeros(3)
    normal[axis] = -math.copysign(1.0, direction[axis])
    return tnear, tfar, normal


def ray_aabb_intersect(direction, origin, box: AABB, tmax) -> tuple[float, float]:
    """Entry and exit distances of a ray through a box; a miss gives entry > exit."""
    tnear, tfar, _ = _intersect(direction, origin, box.minimum, box.maximum, tmax)
    return tnear, tfar


def ray_aabb_intersect_normal(direction, origin, box: AABB, tmax):
    """Like ray_aabb_intersect, also returning the normal of the entry face."""
    return _intersect(direction, origin, box.minimum, box.maximum, tmax)


def ray_unit_aabb_intersect(direction, origin, tmax) -> tuple[float, float]:
    """Intersect a ray with the unit box centred at the origin."""
    tnear, tfar, _ = _intersect(direction, origin, _UNIT_MIN, _UNIT_MAX, tmax)
    return tnear, tfar


def ray_unit_aabb_intersect_normal(direction, origin, tmax):
    return _intersect(direction, origin, _UNIT_MIN, _UNIT_MAX, tmax)


def ray_triangle_intersect(direction, origin, a, b, c, tmax) -> tuple[float, float, float]:
    """Return (u, v, t); t is infinite when the ray misses within tmax."""
    miss = (0.0, 0.0, math.inf)
    direction = _vec3(direction)
    origin = _vec3(origin)
    a, b, c = _vec3(a), _vec3(b), _vec3(c)
    edge1 = b - a
    edge2 = c - a
    p = np.cross(direction, edge2)
    det = float(np.dot(edge1, p))
    if abs(det) < _TRIANGLE_EPSILON:
        return miss
    inverse = 1.0 / det
    s = origin - a
    u = float(np.dot(s, p)) * inverse
    if u < 0.0 or u > 1.0:
        return miss
    q = np.cross(s, edge1)
    v = float(np.dot(direction, q)) * inverse
    if v < 0.0 or u + v > 1.0:
        return miss
    t = float(np.dot(edge2, q)) * inverse
    if t <= _TRIANGLE_EPSILON or t >= tmax:
        return miss
    return u, v, t


def transform_point(matrix, point) -> np.ndarray:
    """Apply an affine 3x4 or 4x4 matrix to a point."""
    m = np.asarray(matrix, dtype=np.float64)
    return m[:3, :3] @ _vec3(point) + m[:3, 3]


def transform_vector(matrix, vector) -> np.ndarray:
    """Apply the linear part of an affine matrix to a direction."""
    m = np.asarray(matrix, dtype=np.float64)
    return m[:3, :3] @ _vec3(vector)


def triangle_normal(a, b, c) -> np.ndarray:
    a = _vec3(a)
    n = np.cross(_vec3(b) - a, _vec3(c) - a)
    length = float(np.linalg.norm(n))
    if length == 0.0:
        raise ValueError("degenerate triangle has no normal")
    return n / length