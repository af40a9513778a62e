import pytest

from bvhkit.soatree import SoABVHTree


def _two_leaf_tree(areas):
    tree = SoABVHTree(2)
    tree.left_indices[0] = 1
    tree.right_indices[0] = 2
    tree.parent_indices[1] = 0
    tree.parent_indices[2] = 0
    tree.data_indices[1] = 0
    tree.data_indices[2] = 1
    tree.area[:] = areas
    return tree


def test_node_count_and_array_sizes():
    tree = SoABVHTree(5)
    assert tree.node_count() == 2 * 5 - 1
    assert len(tree.area) == tree.node_count()
    assert tree.bounding_box_min.shape == (tree.node_count(), 4)


def test_zero_triangles_raise():
    with pytest.raises(ValueError):
        SoABVHTree(0)


def test_sah_with_only_traversal_cost_is_that_cost():
    tree = _two_leaf_tree([8.0, 3.0, 4.0])
    assert tree.sah(1.5, 0.0) == pytest.approx(1.5)


def test_sah_with_leaves_summing_to_root():
    tree = _two_leaf_tree([7.0, 3.0, 4.0])
    assert tree.sah(1.0, 1.0) == pytest.approx(2.0)


def test_sah_scales_with_costs():
    tree = _two_leaf_tree([8.0, 3.0, 4.0])
    assert tree.sah(2.4, 2.0) == pytest.approx(2 * tree.sah(1.2, 1.0))


def test_sah_zero_root_area_raises():
    tree = _two_leaf_tree([0.0, 3.0, 4.0])
    with pytest.raises(ValueError):
        tree.sah(1.2, 1.0)


def test_dump_lists_every_node(tmp_path):
    tree = _two_leaf_tree([7.0, 3.0, 4.0])
    tree.bounding_box_max[0, :3] = (1.5, 2.0, 3.0)
    target = tmp_path / "tree.txt"
    tree.dump(target)
    lines = target.read_text().splitlines()
    assert lines[0] == "2"
    assert len(lines) == 1 + tree.node_count()
    assert lines[1].startswith("i: 0 Data: 0 Left: 1 Right: 2 Parent: -1 ")
    assert lines[1].endswith("BBoxMax: 1.5 2 3")