# bvhkit

Bounding volume hierarchies for ray tracing, in plain Python with numpy.

## Modules

- **`bvhkit.scene`**: scene description types. `Mesh` (vertices, faces with
  three or four columns, optional normals and UVs, `face_count()`),
  `Sphere`, `Material`, `Sampler` and `Texture` (`channel_count()`), with the
  enumerations `TargetType`, `CameraType`, `LightType`, `ObjectType`,
  `WrapMode` and `TextureType`. `Mesh` checks that faces refer to existing
  vertices and pads three-column faces with a zero fourth column.
- **`bvhkit.geometry`**: `Ray`, `AABB` and `OBB` (each with
  `surface_area()`), `BVHNode` (`is_leaf()`) and `Intersection` (with a
  `hit` property). Slab tests `ray_aabb_intersect` and
  `ray_unit_aabb_intersect` return entry and exit distances (a miss gives
  entry > exit); their `_normal` variants also return the normal of the
  entry face. `ray_triangle_intersect` returns `(u, v, t)` with `t`
  infinite on a miss. Also `transform_point`, `transform_vector` and
  `triangle_normal`, plus the constants `INVALID_INDEX` and
  `COLLAPSED_PRIMITIVE_COUNT`.
- **`bvhkit.intersect`**: closest-hit traversal of axis-aligned trees
  (`bvh_intersect_ray`, `bvh_intersect`) and of trees whose nodes may be
  culled by an oriented box (`obvh_intersect_ray`, `obvh_intersect`), plus
  box-only queries that report the closest node box hit at a chosen depth
  or at a leaf (`bvh_intersect_bounds_ray`, `bvh_intersect_bounds`,
  `obvh_intersect_bounds_ray`, `obvh_intersect_bounds`); a negative
  `max_level` means no depth limit. The traversal stack holds at most
  `STACK_SIZE` (64) entries; going deeper raises `OverflowError`.
- **`bvhkit.transforms`**: `collapse_bvh` turns subtrees of at most
  `MAX_LEAF_SIZE` (8) primitives into multi-primitive leaves wherever that
  lowers the SAH cost, returning a `CollapseResult`; `bvh_sah` computes the
  SAH quality of a tree relative to its root area, optionally appending the
  value to a file; `subtree_leaves` lists the leaves below a node in
  breadth-first order.
- **`bvhkit.soatree`**: `SoABVHTree`, a tree over `n` triangles stored as
  parallel numpy arrays (internal nodes first, then leaves), with
  `node_count()`, `sah()` and `dump()`.
- **`bvhkit.scheduler`**: the pair orderings used by agglomerative treelet
  restructuring: `pair_count`, `generate_schedule_upper` and
  `generate_schedule_lower`. Each schedule slot packs up to two pairs of
  16 bits, a pair being `(i << 8) | j`.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## A short example

```python
from bvhkit.geometry import AABB, BVHNode, Ray
from bvhkit.intersect import bvh_intersect_ray

vertices = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]
faces = [(0, 1, 2, 0)]
leaf = BVHNode(bounds=AABB((0.0, 0.0, 0.0), (1.0, 1.0, 0.0)),
               n_primitives=1, primitives_offset=0)

ray = Ray(origin=(0.25, 0.25, 1.0), direction=(0.0, 0.0, -1.0), tmax=10.0)
hit = bvh_intersect_ray([leaf], vertices, faces, [0], ray)
print(hit.primitive, hit.barys, hit.geom_normal)
```

A tree is a list of `BVHNode` values with the root at index 0. Internal
nodes name their children by index; leaves give a primitive count and an
offset into the primitive index list. A leaf with one primitive stores the
face index itself as its offset. For oriented traversal, `transforms[i]` is
an affine 3x4 or 4x4 world-to-local matrix for every node whose `axis` is 1,
mapping the node's box onto the unit cube centred at the origin.

## Cost model

`bvh_sah`, `collapse_bvh` and `SoABVHTree.sah` take two costs: `ci`, the
cost of visiting an internal node, and `ct`, the cost of a ray/triangle
test. SAH results are normalised by the surface area of the root, so they
are comparable between trees over the same scene. When `collapse_bvh` is
given oriented boxes, areas come from them and the internal-node cost is
doubled.

## What it does not do

bvhkit does not build hierarchies from a mesh: there is no Morton-code or
top-down builder, no fitting of oriented boxes to primitives, and no
treelet optimiser that uses the schedules. Trees, parent lists and node
transforms must be supplied by the caller. There is no renderer, camera
model or image output; the scene types only describe data.