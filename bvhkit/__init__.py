"""Bounding volume hierarchy traversal, leaf collapsing, SAH cost and treelet schedules."""

__version__ = "0.1.0"

__all__ = ["geometry", "intersect", "scene", "scheduler", "soatree", "transforms"]