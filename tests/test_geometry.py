import math

import numpy as np
import pytest

from bvhkit.geometry import (
    AABB,
    OBB,
    BVHNode,
    Intersection,
    ray_aabb_intersect,
    ray_aabb_intersect_normal,
    ray_triangle_intersect,
    ray_unit_aabb_intersect,
    ray_unit_aabb_intersect_normal,
    transform_point,
    transform_vector,
    triangle_normal,
)

BOX = AABB((-1, -1, -1), (1, 1, 1))


def test_unit_cube_surface_area():
    assert AABB((0, 0, 0), (1, 1, 1)).surface_area() == pytest.approx(6.0)


def test_obb_matches_equal_aabb():
    obb = OBB((0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1), (1, 1, 1))
    assert obb.surface_area() == pytest.approx(BOX.surface_area())


def test_ray_hits_box_on_faces():
    origin = np.array([0.0, 0.0, -5.0])
    direction = np.array([0.0, 0.0, 1.0])
    tnear, tfar = ray_aabb_intersect(direction, origin, BOX, math.inf)
    assert tnear <= tfar
    assert (origin + tnear * direction)[2] == pytest.approx(BOX.minimum[2])
    assert (origin + tfar * direction)[2] == pytest.approx(BOX.maximum[2])


def test_ray_misses_box():
    tnear, tfar = ray_aabb_intersect((0, 0, 1), (5, 5, -5), BOX, math.inf)
    assert tnear > tfar


def test_tmax_limits_exit():
    tnear, tfar = ray_aabb_intersect((0, 0, 1), (0, 0, -5), BOX, 2.0)
    assert tfar <= 2.0
    assert tfar < tnear


def test_parallel_ray_inside_slab_hits():
    tnear, tfar = ray_aabb_intersect((1, 0, 0), (-5, 0.5, 0.5), BOX, math.inf)
    assert tnear <= tfar
    assert -5 + tnear == pytest.approx(BOX.minimum[0])


def test_entry_normal_faces_ray():
    direction = np.array([0.0, 0.0, 1.0])
    _, _, normal = ray_aabb_intersect_normal(direction, (0, 0, -5), BOX, math.inf)
    assert np.allclose(normal, -direction)


def test_unit_box_matches_explicit_box():
    unit = AABB((-0.5, -0.5, -0.5), (0.5, 0.5, 0.5))
    args = ((0.3, 0.2, 1.0), (0.1, -0.1, -4.0))
    assert ray_unit_aabb_intersect(*args, math.inf) == pytest.approx(
        ray_aabb_intersect(*args, unit, math.inf)
    )
    tnear, tfar, normal = ray_unit_aabb_intersect_normal(*args, math.inf)
    ref = ray_aabb_intersect_normal(*args, unit, math.inf)
    assert (tnear, tfar) == pytest.approx(ref[:2])
    assert np.allclose(normal, ref[2])


def test_triangle_hit_reconstructs_point():
    a, b, c = np.array([0.0, 0, 0]), np.array([1.0, 0, 0]), np.array([0.0, 1, 0])
    origin = np.array([0.2, 0.3, 1.0])
    direction = np.array([0.0, 0.0, -1.0])
    u, v, t = ray_triangle_intersect(direction, origin, a, b, c, math.inf)
    assert t > 0
    point = origin + t * direction
    assert np.allclose(point, (1 - u - v) * a + u * b + v * c)


def test_triangle_miss_outside():
    _, _, t = ray_triangle_intersect((0, 0, -1), (2, 2, 1), (0, 0, 0), (1, 0, 0), (0, 1, 0), math.inf)
    assert math.isinf(t)


def test_triangle_behind_or_beyond_tmax_misses():
    tri = ((0, 0, 0), (1, 0, 0), (0, 1, 0))
    _, _, behind = ray_triangle_intersect((0, 0, 1), (0.2, 0.2, 1), *tri, math.inf)
    _, _, far = ray_triangle_intersect((0, 0, -1), (0.2, 0.2, 1), *tri, 0.5)
    assert math.isinf(behind)
    assert math.isinf(far)


def test_transform_point_and_vector():
    offset = np.array([1.0, 2.0, 3.0])
    matrix = np.eye(4)
    matrix[:3, 3] = offset
    point = np.array([4.0, 5.0, 6.0])
    assert np.allclose(transform_point(matrix, point), point + offset)
    assert np.allclose(transform_vector(matrix, point), point)
    assert np.allclose(transform_point(matrix[:3], point), point + offset)


def test_triangle_normal_is_unit_and_orthogonal():
    a, b, c = np.array([0.0, 0, 0]), np.array([2.0, 0, 1]), np.array([0.0, 3, 0])
    n = triangle_normal(a, b, c)
    assert np.linalg.norm(n) == pytest.approx(1.0)
    assert np.dot(n, b - a) == pytest.approx(0.0)
    assert np.dot(n, c - a) == pytest.approx(0.0)


def test_degenerate_triangle_normal_raises():
    with pytest.raises(ValueError):
        triangle_normal((0, 0, 0), (1, 1, 1), (2, 2, 2))


def test_node_leaf_flag():
    assert BVHNode(BOX, n_primitives=1).is_leaf() is True
    assert BVHNode(BOX, left=1, right=2).is_leaf() is False


def test_default_intersection_is_miss():
    assert Intersection().hit is False
    assert Intersection(primitive=3).hit is True