"""Closest-hit and bounding-volume traversal of binary BVHs.

Node 0 is the root. A node with a positive primitive count is a leaf. A
single-primitive leaf stores its face index directly in ``primitives_offset``.
Otherwise the leaf's face indices are ``primitives[offset : offset + count]``.
Oriented traversal reads ``transforms[i]``, an affine world-to-local matrix
(3x4 or 4x4), for every node whose ``axis`` is 1. The matrix maps the node's
oriented box onto the unit cube centred at the origin.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

import numpy as np

from .geometry import (
    BVHNode,
    Intersection,
    Ray,
    ray_aabb_intersect,
    ray_aabb_intersect_normal,
    ray_triangle_intersect,
    ray_unit_aabb_intersect,
    ray_unit_aabb_intersect_normal,
    transform_point,
    transform_vector,
    triangle_normal,
)

STACK_SIZE = 64
_UNLIMITED_LEVEL = 10000
_ORIENTED = 1

_Interval = Callable[[int, np.ndarray, np.ndarray, float], tuple]


def _vertices(vertices) -> np.ndarray:
    return np.asarray(vertices, dtype=np.float64).reshape(-1, 3)


def _faces(faces) -> np.ndarray:
    array = np.asarray(faces, dtype=np.int64)
    if array.ndim != 2 or array.shape[1] < 3:
        raise ValueError("faces must be rows of at least three vertex indices")
    return array


def _push(stack: list, item) -> None:
    if len(stack) >= STACK_SIZE:
        raise OverflowError("traversal stack exhausted")
    stack.append(item)


def _affine4(matrix) -> np.ndarray:
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape == (4, 4):
        return m
    if m.shape == (3, 4):
        return np.vstack([m, [0.0, 0.0, 0.0, 1.0]])
    raise ValueError("transform must be a 3x4 or 4x4 matrix")


def _aabb_interval(bvh: Sequence[BVHNode]) -> _Interval:
    def interval(index, direction, origin, tmax):
        return ray_aabb_intersect(direction, origin, bvh[index].bounds, tmax)

    return interval


def _oriented_interval(bvh: Sequence[BVHNode], transforms) -> _Interval:
    def interval(index, direction, origin, tmax):
        node = bvh[index]
        if node.axis == _ORIENTED:
            m = transforms[index]
            return ray_unit_aabb_intersect(
                transform_vector(m, direction), transform_point(m, origin), tmax
            )
        return ray_aabb_intersect(direction, origin, node.bounds, tmax)

    return interval


def _closest_hit(bvh, vertices, faces, primitives, ray: Ray, child_interval: _Interval) -> Intersection:
    result = Intersection()
    if ray.tmax < 0.0:
        return result
    vertices = _vertices(vertices)
    faces = _faces(faces)
    min_distance = float(ray.tmax)
    origin, direction = ray.origin, ray.direction
    stack: list[int] = []
    current = 0

    while True:
        node = bvh[current]
        if node.n_primitives > 0:
            offset = node.primitives_offset
            if node.n_primitives == 1:
                ids = [offset]
            else:
                ids = primitives[offset : offset + node.n_primitives]
            for primitive_id in ids:
                face = faces[int(primitive_id)]
                u, v, t = ray_triangle_intersect(
                    direction, origin,
                    vertices[face[0]], vertices[face[1]], vertices[face[2]],
                    min_distance,
                )
                if t < min_distance:
                    min_distance = t
                    result.primitive = int(primitive_id)
                    result.barys = np.array([u, v])
            if not stack:
                break
            current = stack.pop()
            continue

        lnear, lfar = child_interval(node.left, direction, origin, min_distance)
        rnear, rfar = child_interval(node.right, direction, origin, min_distance)
        go_left = lfar >= lnear and lfar >= 0.0 and lnear <= min_distance
        go_right = rfar >= rnear and rfar >= 0.0 and rnear <= min_distance

        if go_left != go_right:
            current = node.left if go_left else node.right
        elif not go_left:
            if not stack:
                break
            current = stack.pop()
        elif lnear < rnear:
            _push(stack, node.right)
            current = node.left
        else:
            _push(stack, node.left)
            current = node.right

    if result.hit:
        face = faces[result.primitive]
        result.instance = 0
        result.geom_normal = triangle_normal(
            vertices[face[0]], vertices[face[1]], vertices[face[2]]
        )
    return result


def bvh_intersect_ray(bvh, vertices, faces, primitives, ray: Ray) -> Intersection:
    """Find the closest triangle hit by ``ray`` within ``ray.tmax``."""
    return _closest_hit(bvh, vertices, faces, primitives, ray, _aabb_interval(bvh))


def bvh_intersect(bvh, vertices, faces, primitives, rays: Iterable[Ray]) -> list[Intersection]:
    return [bvh_intersect_ray(bvh, vertices, faces, primitives, ray) for ray in rays]


def obvh_intersect_ray(bvh, vertices, faces, primitives, transforms, ray: Ray) -> Intersection:
    """Closest hit where nodes marked oriented are culled by their oriented boxes."""
    return _closest_hit(
        bvh, vertices, faces, primitives, ray, _oriented_interval(bvh, transforms)
    )


def obvh_intersect(bvh, vertices, faces, primitives, transforms, rays: Iterable[Ray]) -> list[Intersection]:
    return [
        obvh_intersect_ray(bvh, vertices, faces, primitives, transforms, ray)
        for ray in rays
    ]


def _bounds_hit(bvh, ray: Ray, max_level: int, node_interval, child_interval: _Interval) -> Intersection:
    result = Intersection()
    min_distance = float(ray.tmax)
    origin, direction = ray.origin, ray.direction
    limit = _UNLIMITED_LEVEL if max_level < 0 else max_level
    stack: list[tuple[int, int]] = []
    current, level = 0, 0

    while True:
        node = bvh[current]
        near, far, normal = node_interval(current, direction, origin, min_distance)

        if (near < 0.0 and far < 0.0) or near >= min_distance:
            if not stack:
                break
            current, level = stack.pop()
            continue

        if level == limit or node.n_primitives > 0:
            if near < min_distance:
                min_distance = near
                result.primitive = 0
                result.instance = 0
                result.geom_normal = np.array(normal, dtype=np.float64)
                result.barys = np.zeros(2)
            if not stack:
                break
            current, level = stack.pop()
            continue

        lnear, lfar = child_interval(node.left, direction, origin, min_distance)
        rnear, rfar = child_interval(node.right, direction, origin, min_distance)
        go_left = lfar >= lnear
        go_right = rfar >= rnear

        if go_left != go_right:
            first, second = (node.left, node.right) if go_left else (node.right, node.left)
            _push(stack, (second, level + 1))
            current = first
            level += 1
        elif not go_left:
            if not stack:
                break
            # Only the node is restored here; the level carries over.
            current = stack.pop()[0]
        else:
            first, second = (
                (node.left, node.right) if lnear < rnear else (node.right, node.left)
            )
            _push(stack, (second, level + 1))
            current = first
            level += 1

    return result


def bvh_intersect_bounds_ray(bvh, ray: Ray, max_level: int) -> Intersection:
    """Closest node box hit at ``max_level`` depth or at a leaf; negative means no limit."""

    def node_interval(index, direction, origin, tmax):
        return ray_aabb_intersect_normal(direction, origin, bvh[index].bounds, tmax)

    return _bounds_hit(bvh, ray, max_level, node_interval, _aabb_interval(bvh))


def bvh_intersect_bounds(bvh, rays: Iterable[Ray], max_level: int) -> list[Intersection]:
    return [bvh_intersect_bounds_ray(bvh, ray, max_level) for ray in rays]


def obvh_intersect_bounds_ray(bvh, transforms, ray: Ray, max_level: int) -> Intersection:
    """Like bvh_intersect_bounds_ray, using oriented boxes where nodes are marked so."""

    def node_interval(index, direction, origin, tmax):
        node = bvh[index]
        if node.axis != _ORIENTED:
            return ray_aabb_intersect_normal(direction, origin, node.bounds, tmax)
        m = _affine4(transforms[index])
        near, far, normal = ray_unit_aabb_intersect_normal(
            transform_vector(m, direction), transform_point(m, origin), tmax
        )
        world = transform_vector(np.linalg.inv(m), normal)
        length = float(np.linalg.norm(world))
        if length > 0.0:
            world = world / length
        return near, far, world

    return _bounds_hit(
        bvh, ray, max_level, node_interval, _oriented_interval(bvh, transforms)
    )


def obvh_intersect_bounds(bvh, transforms, rays: Iterable[Ray], max_level: int) -> list[Intersection]:
    return [obvh_intersect_bounds_ray(bvh, transforms, ray, max_level) for ray in rays]