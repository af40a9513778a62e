"""Schedules of treelet cluster pairs laid out so distance stores coalesce per warp.

Each schedule slot holds up to two pairs, 16 bits each, a pair being packed as
``(i << 8) | j``.
"""

from __future__ import annotations

from collections.abc import Iterator

# The lower schedule's final realignment always spans this many lanes.
_LANE_SPAN = 32


def pair_count(treelet_size: int) -> int:
    """Number of distinct unordered pairs among the treelet's nodes."""
    if treelet_size < 1:
        raise ValueError("treelet size must be positive")
    return treelet_size * (treelet_size - 1) // 2


def _allocate(treelet_size: int, warp_size: int) -> list[int]:
    if warp_size < 1:
        raise ValueError("warp size must be positive")
    elements_per_warp = 2 * warp_size
    iterations = -(-pair_count(treelet_size) // elements_per_warp)
    return [0] * (iterations * warp_size)


def _fill(schedule: list[int], pairs: Iterator[tuple[int, int]], warp_size: int) -> tuple[int, int]:
    count = 0
    half_rounds = 0
    for i, j in pairs:
        index = count + (half_rounds // 2) * warp_size
        schedule[index] = (schedule[index] << 16) | (i << 8) | j
        count += 1
        if count == warp_size:
            half_rounds += 1
            count = 0
    return count, half_rounds


def generate_schedule_upper(treelet_size: int, warp_size: int) -> list[int]:
    """Schedule of pairs (i, j) with i < j."""
    schedule = _allocate(treelet_size, warp_size)
    pairs = ((i, j) for i in range(treelet_size) for j in range(i + 1, treelet_size))
    _fill(schedule, pairs, warp_size)
    return schedule


def generate_schedule_lower(treelet_size: int, warp_size: int) -> list[int]:
    """Schedule of pairs (i, j) with j < i, with a half-filled last row realigned."""
    schedule = _allocate(treelet_size, warp_size)
    pairs = ((i, j) for i in range(treelet_size) for j in range(i))
    count, half_rounds = _fill(schedule, pairs, warp_size)
    if half_rounds % 2:
        base = (half_rounds // 2) * warp_size
        for lane in range(count, _LANE_SPAN):
            index = lane + base
            if index < len(schedule):
                schedule[index] <<= 16
    return schedule