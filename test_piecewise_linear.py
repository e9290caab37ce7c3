#!/usr/bin/env python3
"""
Unit tests for the piecewise-linear function algebra.

Tests evaluation, in-place updates (monotone and bislope terms), pointwise
minimum, running minimum and shifted sums.
"""

import random
import pytest

from piecewise_linear import PiecewiseLinearFunction


def pwl(*points):
    return PiecewiseLinearFunction.from_points(list(points))


def values_on_grid(func, start, end):
    return [func.value_at(x) for x in range(start, end + 1)]


def random_function(rng, start, end):
    """Random knots on [start, end] joined by integer slopes, often steep."""
    positions = sorted(rng.sample(range(start + 1, end), rng.randint(0, 5)))
    points = [(start, rng.randint(-10, 10))]
    for p in positions + [end]:
        slope = rng.randint(-15, 15)
        points.append((p, points[-1][1] + slope * (p - points[-1][0])))
    return pwl(*points)


def running_min(values):
    ret = []
    for v in values:
        ret.append(v if not ret else min(ret[-1], v))
    return ret


class TestConstruction:
    """Test construction and accessors."""

    def test_zero_function(self):
        f = PiecewiseLinearFunction(0, 10)
        assert f.point_values == [(0, 0), (10, 0)]
        assert f.first_pos == 0
        assert f.last_pos == 10

    def test_degenerate_interval_has_single_knot(self):
        f = PiecewiseLinearFunction(5, 5)
        assert f.point_values == [(5, 0)]
        assert f.value_at(5) == 0

    def test_empty_interval_rejected(self):
        with pytest.raises(ValueError):
            PiecewiseLinearFunction(3, 2)

    def test_from_points_requires_increasing_positions(self):
        with pytest.raises(ValueError):
            pwl((0, 0), (0, 1))
        with pytest.raises(ValueError):
            pwl((5, 0), (2, 1))

    def test_positions_and_values(self):
        f = pwl((0, 3), (4, -1), (10, 5))
        assert f.positions() == [0, 4, 10]
        assert f.values() == [3, -1, 5]
        assert f == pwl((0, 3), (4, -1), (10, 5))
        assert f != pwl((0, 3), (10, 5))


class TestEvaluation:
    """Test value_at and last_before."""

    def test_value_at_knots_and_between(self):
        f = pwl((0, 0), (4, 8), (6, 0))
        assert f.value_at(0) == 0
        assert f.value_at(1) == 2
        assert f.value_at(4) == 8
        assert f.value_at(5) == 4

    def test_value_at_is_lower_rounded(self):
        f = pwl((0, 0), (3, 1))
        assert f.value_at(1) == 0
        assert f.value_at(2) == 0
        g = pwl((0, 0), (3, -1))
        assert g.value_at(1) == -1

    def test_value_at_outside_domain(self):
        f = PiecewiseLinearFunction(0, 10)
        with pytest.raises(ValueError):
            f.value_at(-1)
        with pytest.raises(ValueError):
            f.value_at(11)

    def test_last_before(self):
        f = pwl((0, 0), (5, 1), (10, 0))
        assert f.last_before(7) == 5
        assert f.last_before(5) == 5
        assert f.last_before(42) == 10
        with pytest.raises(ValueError):
            f.last_before(-1)


class TestUpdates:
    """Test add_monotone and add_bislope."""

    def test_add_monotone(self):
        f = PiecewiseLinearFunction(0, 10)
        f.add_monotone(2, 3)
        assert f.point_values == [(0, 6), (10, 26)]

    def test_add_monotone_opposite_slopes_restore_values(self):
        f = pwl((0, 3), (4, -1), (10, 5))
        original = list(f.point_values)
        f.add_monotone(7, 2)
        f.add_monotone(-7, -2)
        assert f.point_values == original

    def test_add_bislope_inserts_knot(self):
        f = PiecewiseLinearFunction(0, 10)
        f.add_bislope(-1, 2, 4)
        assert f.point_values == [(0, 4), (4, 0), (10, 12)]

    def test_add_bislope_on_existing_knot(self):
        f = pwl((0, 0), (4, 0), (10, 0))
        f.add_bislope(-1, 1, 4)
        assert f.point_values == [(0, 4), (4, 0), (10, 6)]

    def test_add_bislope_left_of_domain(self):
        f = PiecewiseLinearFunction(0, 10)
        f.add_bislope(-3, 1, -5)
        assert f.point_values == [(0, 5), (10, 15)]

    def test_add_bislope_right_of_domain(self):
        f = PiecewiseLinearFunction(0, 10)
        f.add_bislope(-1, 3, 20)
        assert f.point_values == [(0, 20), (10, 10)]


class TestMinimum:
    """Test the exact pointwise minimum."""

    def test_minimum_with_itself(self):
        f = pwl((0, 3), (4, -1), (10, 5))
        assert PiecewiseLinearFunction.minimum(f, f) == f

    def test_integral_crossing(self):
        a = pwl((0, 0), (10, 10))
        b = pwl((0, 10), (10, 0))
        m = PiecewiseLinearFunction.minimum(a, b)
        assert m.point_values == [(0, 0), (5, 5), (10, 0)]

    def test_non_integral_crossing_brackets(self):
        # 2x = 5 - x at x = 5/3
        a = pwl((0, 0), (10, 20))
        b = pwl((0, 5), (10, -5))
        m = PiecewiseLinearFunction.minimum(a, b)
        assert m.point_values == [(0, 0), (1, 2), (2, 3), (10, -5)]

    @pytest.mark.parametrize("a_points,b_points", [
        ([(0, 10), (5, 0), (10, 10)], [(0, 3), (10, 3)]),
        ([(0, 0), (10, 20)], [(0, 5), (10, -5)]),
        ([(0, 0), (3, 6), (7, -2), (10, 1)], [(0, 4), (6, -2), (10, 6)]),
        ([(-4, 1), (0, 1), (8, 9)], [(-4, -3), (2, 3), (8, 3)]),
    ])
    def test_pointwise_minimum_on_integers(self, a_points, b_points):
        a = pwl(*a_points)
        b = pwl(*b_points)
        m = PiecewiseLinearFunction.minimum(a, b)
        start, end = a.first_pos, a.last_pos
        expected = [min(va, vb) for va, vb in zip(values_on_grid(a, start, end),
                                                  values_on_grid(b, start, end))]
        assert values_on_grid(m, start, end) == expected

    def test_crossings_between_adjacent_knots(self):
        # a goes above b and back within two unit steps
        a = pwl((0, 0), (1, 10), (2, 0))
        b = pwl((0, 5), (2, 5))
        m = PiecewiseLinearFunction.minimum(a, b)
        assert m.point_values == [(0, 0), (1, 5), (2, 0)]
        assert PiecewiseLinearFunction.minimum(b, a) == m

    @pytest.mark.parametrize("seed", range(10))
    def test_random_functions_match_brute_force(self, seed):
        rng = random.Random(seed)
        for _ in range(50):
            a = random_function(rng, 0, 12)
            b = random_function(rng, 0, 12)
            m = PiecewiseLinearFunction.minimum(a, b)
            expected = [min(va, vb) for va, vb in zip(values_on_grid(a, 0, 12),
                                                      values_on_grid(b, 0, 12))]
            assert values_on_grid(m, 0, 12) == expected, (a, b, m)

    def test_minimum_requires_same_domain(self):
        with pytest.raises(ValueError):
            PiecewiseLinearFunction.minimum(PiecewiseLinearFunction(0, 10),
                                            PiecewiseLinearFunction(0, 9))


class TestPreviousMin:
    """Test the running minimum."""

    def test_flat_part_until_crossing(self):
        f = pwl((0, 5), (3, 2), (6, 8), (10, 0))
        assert f.previous_min().point_values == [(0, 5), (3, 2), (9, 2), (10, 0)]

    def test_flat_tail_covers_domain(self):
        f = pwl((0, 5), (3, 2), (10, 8))
        assert f.previous_min().point_values == [(0, 5), (3, 2), (10, 2)]

    @pytest.mark.parametrize("points", [
        [(0, 5), (3, 2), (6, 8), (10, 0)],
        [(0, 0), (4, 4), (8, -4), (9, 10)],
        [(-3, 7), (0, 7), (2, 1), (5, 1), (7, -9)],
    ])
    def test_values_are_non_increasing(self, points):
        f = pwl(*points)
        p = f.previous_min()
        assert p.first_pos == f.first_pos
        assert p.last_pos == f.last_pos
        values = p.values()
        assert all(v1 >= v2 for v1, v2 in zip(values, values[1:]))
        assert values_on_grid(p, f.first_pos, f.last_pos) == [
            min(values_on_grid(f, f.first_pos, x)) for x in range(f.first_pos, f.last_pos + 1)
        ]

    def test_crossing_between_integers(self):
        # 10 - 3 * (x - 1) reaches 0 at x = 13/3
        f = pwl((0, 0), (1, 10), (7, -8))
        p = f.previous_min()
        assert p.point_values == [(0, 0), (4, 0), (5, -2), (7, -8)]
        assert values_on_grid(p, 0, 7) == [0, 0, 0, 0, 0, -2, -5, -8]

    @pytest.mark.parametrize("seed", range(10))
    def test_random_functions_match_brute_force(self, seed):
        rng = random.Random(seed)
        for _ in range(50):
            f = random_function(rng, 0, 12)
            p = f.previous_min()
            assert values_on_grid(p, 0, 12) == running_min(values_on_grid(f, 0, 12)), (f, p)


class TestSum:
    """Test shifted sums."""

    def test_sum_with_shift(self):
        f = pwl((0, 0), (10, 10))
        other = pwl((5, 1), (15, 1))
        assert f.sum_with(other, -5).point_values == [(5, 1), (15, 11)]

    def test_sum_extends_flat_on_the_right(self):
        f = pwl((0, 0), (4, 4))
        other = PiecewiseLinearFunction(0, 10)
        assert f.sum_with(other, 0).point_values == [(0, 0), (4, 4), (10, 4)]

    def test_sum_drops_left_part(self):
        f = pwl((5, 0), (10, 5))
        other = PiecewiseLinearFunction(0, 10)
        assert f.sum_with(other, 0).point_values == [(5, 0), (10, 5)]

    def test_sum_without_common_interval(self):
        f = pwl((20, 0), (30, 0))
        with pytest.raises(ValueError):
            f.sum_with(PiecewiseLinearFunction(0, 10), 0)

    def test_previous_min_of_sum(self):
        f = pwl((0, 4), (10, -6))
        other = pwl((0, 0), (10, 10))
        # other(x) + f(x) is constant 4
        assert f.previous_min_of_sum(other, 0).point_values == [(0, 4), (10, 4)]
