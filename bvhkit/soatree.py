"""BVH stored as a structure of arrays: internal nodes first, then leaves."""

from __future__ import annotations

from pathlib import Path

import numpy as np


class SoABVHTree:
    """A binary BVH over ``n`` triangles with ``2n - 1`` nodes.

    Nodes ``0 .. n-2`` are internal, nodes ``n-1 .. 2n-2`` are leaves.
    """

    def __init__(self, number_of_triangles: int) -> None:
        if number_of_triangles < 1:
            raise ValueError("a tree needs at least one triangle")
        self.number_of_triangles = number_of_triangles
        count = self.node_count()
        self.parent_indices = np.full(count, -1, dtype=np.int32)
        self.left_indices = np.zeros(count, dtype=np.int32)
        self.right_indices = np.zeros(count, dtype=np.int32)
        self.data_indices = np.zeros(count, dtype=np.int32)
        self.bounding_box_min = np.zeros((count, 4), dtype=np.float32)
        self.bounding_box_max = np.zeros((count, 4), dtype=np.float32)
        self.area = np.zeros(count, dtype=np.float32)
        self.root_index = 0

    def node_count(self) -> int:
        return 2 * self.number_of_triangles - 1

    def sah(self, node_traversal_cost: float, triangle_intersection_cost: float) -> float:
        """Surface area heuristic cost of the tree."""
        n = self.number_of_triangles
        root = self.root_index
        total = float(self.area[root])
        if total == 0.0:
            raise ValueError("root node has zero surface area")
        internal = total + sum(
            float(a) for i, a in enumerate(self.area[: n - 1]) if i != root
        )
        leaves = float(np.sum(self.area[n - 1 :], dtype=np.float64))
        return (node_traversal_cost * internal + triangle_intersection_cost * leaves) / total

    def dump(self, path) -> None:
        """Write a readable listing of every node to ``path``."""
        lines = [str(self.number_of_triangles)]
        for i in range(self.node_count()):
            lo = self.bounding_box_min[i]
            hi = self.bounding_box_max[i]
            lines.append(
                f"i: {i} Data: {self.data_indices[i]} Left: {self.left_indices[i]}"
                f" Right: {self.right_indices[i]} Parent: {self.parent_indices[i]} "
                f"BBoxMin: {float(lo[0]):g} {float(lo[1]):g} {float(lo[2]):g}"
                f" BBoxMax: {float(hi[0]):g} {float(hi[1]):g} {float(hi[2]):g}"
            )
        Path(path).write_text("\n".join(lines) + "\n")