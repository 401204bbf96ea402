"""
Ordering search results by distance from a reference point.
"""

import dataclasses
import heapq
import math
from typing import Any

METRICS = {
    'euclidean': lambda dx, dz: math.hypot(dx, dz),
    'manhattan': lambda dx, dz: abs(dx) + abs(dz),
    'chebyshev': lambda dx, dz: max(abs(dx), abs(dz)),
}


def distance(dx, dz, metric='euclidean'):
    """
    Returns the horizontal distance for the offsets *dx* and *dz*.
    """
    try:
        return METRICS[metric](dx, dz)
    except KeyError:
        raise ValueError(f"Unknown distance metric {metric!r}") from None


@dataclasses.dataclass(frozen=True, order=True)
class RankedMatch:
    """
    A match and its distance from home. Instances sort by distance, then by
    position.
    """
    distance: float
    chunk_x: int
    chunk_z: int
    x: int
    y: int
    z: int
    match: Any = dataclasses.field(compare=False)

    @classmethod
    def of(cls, match, distance):
        return cls(distance, match.chunk_x, match.chunk_z,
                   match.x, match.y, match.z, match)


def rank(matches, home=(0, 0), max_distance=None, metric='euclidean'):
    """
    Yields ``RankedMatch`` objects nearest first. The y co-ordinate plays no
    part in the distance. Matches further than *max_distance* are dropped.
    Results come off a heap, so consumers that stop early never pay for a
    full sort.
    """
    home_x, home_z = home
    heap = []
    for match in matches:
        d = distance(match.x - home_x, match.z - home_z, metric)
        if max_distance is not None and d > max_distance:
            continue
        heap.append(RankedMatch.of(match, d))

    heapq.heapify(heap)
    while heap:
        yield heapq.heappop(heap)
