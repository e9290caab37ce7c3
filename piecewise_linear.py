#!/usr/bin/env python3
"""
Piecewise-linear functions over an integer interval.

A function is an ordered list of (position, value) knots with strictly
increasing positions, linear in between. Positions and values are integers
and every operation stays exact: divisions are floor divisions (the result is
the lower-rounded value) and segment intersections are found by integer
cross-multiplication, never with floating point.

These functions are the cost representation of the ordered single row
solver (see ordered_row.py).
"""

from bisect import bisect_left, bisect_right
from typing import List, Tuple


Knot = Tuple[int, int]


class _Edge:
    """Linear segment between two knots f and s, with f[0] < s[0]."""

    def __init__(self, f: Knot, s: Knot):
        self.f = f
        self.s = s

    def value_at(self, pos: int) -> int:
        """Lower-rounded value of the segment at pos."""
        (fp, fv), (sp, sv) = self.f, self.s
        return (fv * (sp - pos) + sv * (pos - fp)) // (sp - fp)

    def pos_at(self, val: int) -> int:
        """Lower-rounded position where the segment reaches val."""
        (fp, fv), (sp, sv) = self.f, self.s
        return (fp * (sv - val) + sp * (val - fv)) // (sv - fv)

    def reaches_on_integer(self, val: int) -> bool:
        """Whether the segment reaches val at an integer position."""
        (fp, fv), (sp, sv) = self.f, self.s
        return (fp * (sv - val) + sp * (val - fv)) % (sv - fv) == 0


def _intersections(a: _Edge, b: _Edge) -> List[Knot]:
    """
    Knots to insert where two overlapping segments cross.

    Only knots strictly inside the common span are reported, the caller adds
    one at its end. An integral crossing gives one knot. Otherwise the integer
    positions around it give a knot each, with the lower of the two segment
    values, unless they fall on the span ends.
    """
    (a0, av0), (a1, av1) = a.f, a.s
    (b0, bv0), (b1, bv1) = b.f, b.s
    da, dav = a1 - a0, av1 - av0
    db, dbv = b1 - b0, bv1 - bv0

    denom = da * dbv - dav * db
    if denom == 0:
        # Parallel or collinear
        return []

    # Crossing at a0 + da * a_num / denom on a, b0 + db * b_num / denom on b
    a_num = (av0 - bv0) * db - (a0 - b0) * dbv
    b_num = (av0 - bv0) * da - (a0 - b0) * dav

    if denom > 0:
        intersect = 0 < a_num < denom and 0 < b_num < denom
    else:
        intersect = denom < a_num < 0 and denom < b_num < 0
    if not intersect:
        return []

    start = max(a0, b0)
    end = min(a1, b1)
    dist = a_num * da
    knots = []
    if dist % denom == 0:
        pos = a0 + dist // denom
        if start < pos < end:
            knots.append((pos, min(a.value_at(pos), b.value_at(pos))))
    else:
        pos1 = a0 + dist // denom
        for pos in (pos1, pos1 + 1):
            if start < pos < end:
                knots.append((pos, min(a.value_at(pos), b.value_at(pos))))
    return knots


class PiecewiseLinearFunction:
    """
    Piecewise-linear function with integer knots on a fixed interval.

    A new function is zero on [min_def, max_def]. A degenerate interval
    (min_def == max_def) is represented by a single knot.
    """

    def __init__(self, min_def: int, max_def: int):
        if min_def > max_def:
            raise ValueError(f"Empty definition interval [{min_def}, {max_def}]")
        if min_def == max_def:
            self.point_values = [(min_def, 0)]
        else:
            self.point_values = [(min_def, 0), (max_def, 0)]

    @classmethod
    def from_points(cls, points: List[Knot]) -> 'PiecewiseLinearFunction':
        """Build a function from knots given in strictly increasing position order."""
        if not points:
            raise ValueError("A piecewise linear function needs at least one knot")
        for (p1, _), (p2, _) in zip(points, points[1:]):
            if p1 >= p2:
                raise ValueError(f"Knot positions must be strictly increasing ({p1} >= {p2})")
        ret = cls.__new__(cls)
        ret.point_values = [(int(p), int(v)) for p, v in points]
        return ret

    @property
    def first_pos(self) -> int:
        return self.point_values[0][0]

    @property
    def last_pos(self) -> int:
        return self.point_values[-1][0]

    def positions(self) -> List[int]:
        return [p for p, _ in self.point_values]

    def values(self) -> List[int]:
        return [v for _, v in self.point_values]

    def __eq__(self, other):
        if not isinstance(other, PiecewiseLinearFunction):
            return NotImplemented
        return self.point_values == other.point_values

    def __repr__(self):
        return f"PiecewiseLinearFunction({self.point_values})"

    # ------------------------------------------------------------------
    # In-place updates
    # ------------------------------------------------------------------

    def add_monotone(self, slope: int, offset: int):
        """Add slope * (x - first_pos + offset) to the function."""
        first = self.first_pos
        self.point_values = [
            (p, v + slope * (p - first + offset))
            for p, v in self.point_values
        ]

    def add_bislope(self, left_slope: int, right_slope: int, pos: int):
        """
        Add left_slope * (x - pos) left of pos and right_slope * (x - pos) right of it.

        A knot is inserted at pos first if it lies strictly inside the domain
        and is not a knot already.
        """
        positions = self.positions()
        if positions[0] < pos < positions[-1]:
            k = bisect_left(positions, pos)
            if positions[k] != pos:
                edge = _Edge(self.point_values[k - 1], self.point_values[k])
                self.point_values.insert(k, (pos, edge.value_at(pos)))

        updated = []
        for p, v in self.point_values:
            if p < pos:
                v += left_slope * (p - pos)
            elif p > pos:
                v += right_slope * (p - pos)
            updated.append((p, v))
        self.point_values = updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def value_at(self, pos: int) -> int:
        """Exact lower-rounded value at pos."""
        positions = self.positions()
        if pos < positions[0] or pos > positions[-1]:
            raise ValueError(f"Position {pos} outside of [{positions[0]}, {positions[-1]}]")
        k = bisect_left(positions, pos)
        if positions[k] == pos:
            return self.point_values[k][1]
        return _Edge(self.point_values[k - 1], self.point_values[k]).value_at(pos)

    def last_before(self, pos: int) -> int:
        """Position of the last knot at or before pos."""
        positions = self.positions()
        k = bisect_right(positions, pos)
        if k == 0:
            raise ValueError(f"No knot at or before {pos} (function starts at {positions[0]})")
        return positions[k - 1]

    # ------------------------------------------------------------------
    # Constructions
    # ------------------------------------------------------------------

    def previous_min(self) -> 'PiecewiseLinearFunction':
        """
        Running minimum from the left: x -> min(f(y) for y <= x).

        The result has the same domain and non-increasing values.
        """
        pts = self.point_values
        ret = [pts[0]]
        for k in range(1, len(pts)):
            pos, val = pts[k]
            cur_min = ret[-1][1]
            if val < cur_min:
                prev = pts[k - 1]
                # Flat part until the segment crosses the current minimum
                if prev[0] != ret[-1][0]:
                    edge = _Edge(prev, pts[k])
                    cross = edge.pos_at(cur_min)
                    if cross != ret[-1][0] and cross != pos:
                        ret.append((cross, cur_min))
                    # Crossing between two integers: the segment is already
                    # below the minimum at the next one
                    if not edge.reaches_on_integer(cur_min) and cross + 1 < pos:
                        ret.append((cross + 1, edge.value_at(cross + 1)))
                ret.append(pts[k])
        if ret[-1][0] != pts[-1][0]:
            ret.append((pts[-1][0], ret[-1][1]))
        return PiecewiseLinearFunction.from_points(ret)

    def sum_with(self, other: 'PiecewiseLinearFunction', shift: int) -> 'PiecewiseLinearFunction':
        """
        Pointwise sum x -> other(x) + self(x + shift), on other's domain.

        Positions where self is not defined yet (x + shift before its first
        knot) are dropped; after its last knot self is extended flat.
        """
        a_pts = other.point_values
        b_pts = self.point_values
        ret = []
        i = j = 0
        while i < len(a_pts):
            a_pos, a_val = a_pts[i]
            if j == len(b_pts) or a_pos < b_pts[j][0] - shift:
                if j > 0:
                    if j < len(b_pts):
                        value = _Edge(b_pts[j - 1], b_pts[j]).value_at(a_pos + shift)
                    else:
                        value = b_pts[-1][1]
                    ret.append((a_pos, a_val + value))
                i += 1
            elif a_pos > b_pts[j][0] - shift:
                if i > 0:
                    b_pos = b_pts[j][0] - shift
                    value = _Edge(a_pts[i - 1], a_pts[i]).value_at(b_pos)
                    ret.append((b_pos, b_pts[j][1] + value))
                j += 1
            else:
                ret.append((a_pos, a_val + b_pts[j][1]))
                i += 1
                j += 1

        if not ret:
            raise ValueError("Shifted functions have no common definition interval")
        return PiecewiseLinearFunction.from_points(ret)

    def previous_min_of_sum(self, other: 'PiecewiseLinearFunction', shift: int) -> 'PiecewiseLinearFunction':
        """Running minimum of x -> other(x) + self(x + shift)."""
        return self.sum_with(other, shift).previous_min()

    @staticmethod
    def minimum(a: 'PiecewiseLinearFunction', b: 'PiecewiseLinearFunction') -> 'PiecewiseLinearFunction':
        """Exact pointwise minimum of two functions defined on the same interval."""
        if a.first_pos != b.first_pos or a.last_pos != b.last_pos:
            raise ValueError(
                f"Cannot take the minimum of functions on [{a.first_pos}, {a.last_pos}] "
                f"and [{b.first_pos}, {b.last_pos}]"
            )
        a_pts, b_pts = a.point_values, b.point_values
        ret = [(a_pts[0][0], min(a_pts[0][1], b_pts[0][1]))]

        i = j = 0
        while i + 1 < len(a_pts) and j + 1 < len(b_pts):
            a_edge = _Edge(a_pts[i], a_pts[i + 1])
            b_edge = _Edge(b_pts[j], b_pts[j + 1])
            ret.extend(_intersections(a_edge, b_edge))

            # Knot at the end of the segment that finishes first
            if a_edge.s[0] < b_edge.s[0]:
                i += 1
                pos = a_edge.s[0]
                ret.append((pos, min(a_edge.s[1], b_edge.value_at(pos))))
            elif a_edge.s[0] > b_edge.s[0]:
                j += 1
                pos = b_edge.s[0]
                ret.append((pos, min(b_edge.s[1], a_edge.value_at(pos))))
            else:
                ret.append((a_edge.s[0], min(a_edge.s[1], b_edge.s[1])))
                i += 1
                j += 1

        return PiecewiseLinearFunction.from_points(ret)
