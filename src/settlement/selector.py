"""Cycling tile selection over a seeded permutation."""

from collections import deque
from typing import Iterable, Iterator

from .rng import shuffle_seeded
from .types import Coord


class CyclingTileSelector(Iterator[Coord]):
    """Rotating queue of tile coords that is never exhausted.

    Each call to next() returns the head of the queue and re-enqueues it at
    the tail, so repeated calls cycle through the seeded permutation.
    """

    def __init__(self, coords: Iterable[Coord], seed: int):
        self._queue: deque[Coord] = deque(shuffle_seeded(seed, coords))

    def __next__(self) -> Coord:
        if not self._queue:
            raise StopIteration
        coord = self._queue.popleft()
        self._queue.append(coord)
        return coord

    def __iter__(self) -> "CyclingTileSelector":
        return self

    def __len__(self) -> int:
        return len(self._queue)
