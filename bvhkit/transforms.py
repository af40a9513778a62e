"""Post-build passes over binary BVHs: leaf collapsing, SAH evaluation, subtree leaves.

Trees follow the layout used throughout the package: ``internal_count``
internal nodes first, then one leaf per primitive. ``parents[i]`` is the
parent of node ``i``. The root's parent is ``INVALID_INDEX`` or a negative
number.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from .geometry import COLLAPSED_PRIMITIVE_COUNT, INVALID_INDEX, OBB, BVHNode

MAX_LEAF_SIZE = 8


@dataclass
class CollapseResult:
    """Outcome of collapsing a BVH.

    ``nodes`` is the rewritten tree. Internal nodes turned into leaves read
    their face indices from ``primitives``. Nodes absorbed by such a leaf carry
    ``COLLAPSED_PRIMITIVE_COUNT`` as their primitive count.
    """

    nodes: list[BVHNode]
    primitive_counts: np.ndarray
    primitives: np.ndarray
    costs: np.ndarray
    collapsed: np.ndarray


def _parent(parents, index: int) -> Optional[int]:
    value = int(parents[index])
    if value < 0 or value == INVALID_INDEX:
        return None
    return value


def _area(nodes: Sequence[BVHNode], obbs: Optional[Sequence[OBB]], index: int) -> float:
    if obbs is not None:
        return obbs[index].surface_area()
    return nodes[index].bounds.surface_area()


def _gather_primitives(nodes: Sequence[BVHNode], start: BVHNode) -> list[int]:
    """Distinct face indices of the leaves below ``start``, in depth-first order."""
    found: list[int] = []
    stack = [start.left, start.right]
    while stack:
        node = nodes[stack.pop()]
        if node.n_primitives > 0:
            data_index = node.primitives_offset
            if data_index not in found:
                found.append(data_index)
        else:
            stack.append(node.left)
            stack.append(node.right)
    return found


def collapse_bvh(
    nodes: Sequence[BVHNode],
    parents,
    ci: float,
    ct: float,
    primitive_count: int,
    internal_count: int,
    obbs: Optional[Sequence[OBB]] = None,
) -> CollapseResult:
    """Turn subtrees into multi-primitive leaves wherever that lowers the SAH cost.

    A subtree is collapsed when intersecting all of its primitives directly
    costs less than traversing it and it holds at most ``MAX_LEAF_SIZE``
    primitives. With ``obbs`` given, areas come from the oriented boxes and
    the traversal cost of internal nodes is doubled.
    """
    node_count = internal_count + primitive_count
    if len(nodes) != node_count:
        raise ValueError("node list does not match the internal and primitive counts")
    if len(parents) != node_count:
        raise ValueError("parent list does not match the node count")
    if obbs is not None and len(obbs) != node_count:
        raise ValueError("oriented box list does not match the node count")

    collapsed_nodes = [replace(node) for node in nodes]
    collapse_table = np.zeros(node_count, dtype=bool)
    visited = np.zeros(internal_count, dtype=bool)
    primitive_counts = np.zeros(node_count, dtype=np.int64)
    costs = np.zeros(node_count, dtype=np.float64)
    traversal_factor = 2.0 if obbs is not None else 1.0

    leaf_indices = range(internal_count, node_count)
    for index in leaf_indices:
        primitive_counts[index] = 1
        costs[index] = ct * _area(nodes, obbs, index)

    for leaf in leaf_indices:
        parent_index = _parent(parents, leaf)
        while parent_index is not None:
            if not visited[parent_index]:
                visited[parent_index] = True
                break
            parent = nodes[parent_index]
            count = int(primitive_counts[parent.left] + primitive_counts[parent.right])
            primitive_counts[parent_index] = count
            area = _area(nodes, obbs, parent_index)
            costs[parent_index] = (
                traversal_factor * ci * area + costs[parent.left] + costs[parent.right]
            )
            leaf_cost = ct * area * count
            if leaf_cost < costs[parent_index] and count <= MAX_LEAF_SIZE:
                costs[parent_index] = leaf_cost
                collapse_table[parent_index] = True
                collapse_table[parent.left] = True
                collapse_table[parent.right] = True
                collapsed_nodes[parent.left].n_primitives = COLLAPSED_PRIMITIVE_COUNT
                collapsed_nodes[parent.right].n_primitives = COLLAPSED_PRIMITIVE_COUNT
            parent_index = _parent(parents, parent_index)

    visited[:] = False
    primitives: list[int] = []

    def emit(child: int) -> None:
        reserved = int(primitive_counts[child])
        offset = len(primitives)
        found = _gather_primitives(nodes, nodes[child])
        primitives.extend(found)
        primitives.extend([INVALID_INDEX] * (reserved - len(found)))
        primitive_counts[child] = len(found)
        collapsed_nodes[child].n_primitives = len(found)
        collapsed_nodes[child].primitives_offset = offset

    for leaf in leaf_indices:
        parent_index = _parent(parents, leaf)
        while parent_index is not None:
            if not visited[parent_index]:
                visited[parent_index] = True
                break
            if collapse_table[parent_index]:
                parent_index = _parent(parents, parent_index)
                continue
            parent = collapsed_nodes[parent_index]
            for child in (parent.left, parent.right):
                if primitive_counts[child] > 1 and collapse_table[child]:
                    emit(child)
            parent_index = _parent(parents, parent_index)

    return CollapseResult(
        nodes=collapsed_nodes,
        primitive_counts=primitive_counts,
        primitives=np.asarray(primitives, dtype=np.int64),
        costs=costs,
        collapsed=collapse_table,
    )


def bvh_sah(
    nodes: Sequence[BVHNode],
    root_index: int,
    ci: float,
    ct: float,
    obbs: Optional[Sequence[OBB]] = None,
    output_file=None,
) -> float:
    """Surface area heuristic of the tree below ``root_index``, relative to the root.

    Nodes absorbed by a collapsed leaf are skipped. When ``output_file`` is
    given the result is appended to it as ``"<value>,"``.
    """
    root = nodes[root_index]
    root_area = _area(nodes, obbs, root_index)
    if root_area == 0.0:
        raise ValueError("root node has zero surface area")

    sah = 0.0
    stack: list[int] = []
    if root.n_primitives > 0:
        sah += ct * root_area * root.n_primitives
    else:
        stack.append(root_index)

    while stack:
        index = stack.pop()
        node = nodes[index]
        area = _area(nodes, obbs, index)
        if node.n_primitives > 0:
            if node.n_primitives == COLLAPSED_PRIMITIVE_COUNT:
                continue
            if node.n_primitives == 1:
                area = node.bounds.surface_area()
            sah += ct * node.n_primitives * area
        else:
            sah += ci * area
            stack.append(node.left)
            stack.append(node.right)

    quality = sah / root_area
    if output_file is not None:
        with Path(output_file).open("a") as out:
            out.write(f"{quality:f},")
    return quality


def subtree_leaves(nodes: Sequence[BVHNode], root_index: int) -> list[int]:
    """Indices of the leaves below ``root_index``, in breadth-first order."""
    leaves: list[int] = []
    queue = deque([root_index])
    while queue:
        index = queue.popleft()
        node = nodes[index]
        if node.n_primitives > 0:
            leaves.append(index)
            continue
        queue.append(node.left)
        queue.append(node.right)
    return leaves