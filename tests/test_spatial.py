"""
Unit tests for spatial utilities (bounded grid math).
"""

import pytest

from ecosim.utils.spatial import (
    DIRECTION_ORDER,
    clamp,
    clamp_to_grid,
    direction_toward,
    in_bounds,
    manhattan,
    midpoint,
    step,
)


class TestClamp:
    def test_clamp(self):
        assert clamp(5, 0, 3) == 3
        assert clamp(-1, 0, 3) == 0
        assert clamp(2, 0, 3) == 2

    def test_clamp_to_grid(self):
        assert clamp_to_grid(-3, 12, 10, 10) == (0, 9)
        assert clamp_to_grid(4, 5, 10, 10) == (4, 5)

    def test_in_bounds(self):
        assert in_bounds(0, 0, 5, 5)
        assert in_bounds(4, 4, 5, 5)
        assert not in_bounds(5, 0, 5, 5)
        assert not in_bounds(0, -1, 5, 5)


class TestStep:
    @pytest.mark.parametrize("direction,expected", [
        ("north", (5, 4)),
        ("east", (6, 5)),
        ("south", (5, 6)),
        ("west", (4, 5)),
    ])
    def test_cardinal_steps(self, direction, expected):
        assert step(5, 5, direction, 10, 10) == expected

    def test_clamped_at_edges(self):
        assert step(0, 0, "north", 10, 10) == (0, 0)
        assert step(0, 0, "west", 10, 10) == (0, 0)
        assert step(9, 9, "south", 10, 10) == (9, 9)
        assert step(9, 9, "east", 10, 10) == (9, 9)

    def test_unknown_direction(self):
        with pytest.raises(KeyError):
            step(0, 0, "up", 10, 10)

    def test_direction_order(self):
        assert DIRECTION_ORDER == ("north", "east", "south", "west")


class TestDistanceAndHeading:
    def test_manhattan(self):
        assert manhattan(0, 0, 3, 4) == 7
        assert manhattan(2, 2, 2, 2) == 0

    def test_larger_axis_first(self):
        assert direction_toward(0, 0, 5, 1) == "east"
        assert direction_toward(5, 0, 0, 1) == "west"
        assert direction_toward(0, 0, 1, 5) == "south"
        assert direction_toward(0, 5, 1, 0) == "north"

    def test_tie_goes_vertical(self):
        assert direction_toward(0, 0, 2, 2) == "south"
        assert direction_toward(2, 2, 0, 0) == "north"

    def test_same_cell(self):
        assert direction_toward(3, 3, 3, 3) == "north"

    def test_midpoint_floors(self):
        assert midpoint((0, 0), (3, 5)) == (1, 2)
        assert midpoint((4, 4), (4, 4)) == (4, 4)
