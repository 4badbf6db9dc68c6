"""Tests for the cycling tile selector."""

import pytest

from settlement.grid import TileGrid
from settlement.selector import CyclingTileSelector


class TestCyclingTileSelector:
    """Tests for CyclingTileSelector."""

    def test_first_cycle_is_permutation(self) -> None:
        coords = list(TileGrid(4, 4).coords())
        selector = CyclingTileSelector(coords, seed=3)
        drawn = [next(selector) for _ in range(len(coords))]
        assert len(set(drawn)) == len(coords)
        assert set(drawn) == set(coords)

    def test_cycles_without_exhausting(self) -> None:
        coords = list(TileGrid(3, 3).coords())
        selector = CyclingTileSelector(coords, seed=3)
        first = [next(selector) for _ in range(9)]
        second = [next(selector) for _ in range(9)]
        assert first == second
        assert len(selector) == 9

    def test_same_seed_same_order(self) -> None:
        coords = list(TileGrid(5, 5).coords())
        a = CyclingTileSelector(coords, seed=11)
        b = CyclingTileSelector(coords, seed=11)
        assert [next(a) for _ in range(25)] == [next(b) for _ in range(25)]

    def test_iterator_protocol(self) -> None:
        coords = list(TileGrid(2, 2).coords())
        selector = CyclingTileSelector(coords, seed=0)
        assert iter(selector) is selector
        drawn = [c for c, _ in zip(selector, range(6))]
        assert drawn[:2] == drawn[4:6]

    def test_empty_selector(self) -> None:
        selector = CyclingTileSelector([], seed=0)
        assert len(selector) == 0
        with pytest.raises(StopIteration):
            next(selector)
