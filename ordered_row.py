#!/usr/bin/env python3
"""
Optimal placement of an ordered sequence of cells in a single row.

The cells keep their left-to-right order. Each cell carries a convex cost of
its left-edge position made of a linear term (push_slope) and hinge terms
weight * max(0, pos - x) (push_bound). The optimum is found with the
recursion

    G_i(x) = cost_i(x) + P_{i-1}(x - width_{i-1}),   P_i = previous_min(G_i)

over piecewise-linear functions, then positions are read back from right to
left.
"""

from typing import Dict, List, Any

from piecewise_linear import PiecewiseLinearFunction


def _rightmost_argmin(func: PiecewiseLinearFunction, limit: int) -> int:
    """Right-most position <= limit where func reaches its minimum over [first_pos, limit]."""
    limit = min(limit, func.last_pos)
    best_pos, best_val = limit, func.value_at(limit)
    # A linear piece reaches its minimum on a knot or on the limit itself
    for pos, val in reversed(func.point_values):
        if pos >= limit:
            continue
        if val < best_val:
            best_pos, best_val = pos, val
    return best_pos


class OrderedSingleRow:
    """Accumulates cells left to right and solves for their optimal positions."""

    def __init__(self):
        self.cells: List[Dict[str, Any]] = []

    def push_cell(self, width: int, lower_lim: int, upper_lim: int):
        """Append a cell that must lie within [lower_lim, upper_lim]."""
        self.cells.append({
            'width': width,
            'lower_lim': lower_lim,
            'upper_lim': upper_lim,
            'slope': 0,
            'bounds': [],
        })

    def push_bound(self, pos: int, weight: int):
        """Add weight * max(0, pos - x) to the cost of the last cell."""
        if not self.cells:
            raise ValueError("push_bound called before any cell was pushed")
        self.cells[-1]['bounds'].append((pos, weight))

    def push_slope(self, slope: int):
        """Add slope * x to the cost of the last cell."""
        if not self.cells:
            raise ValueError("push_slope called before any cell was pushed")
        self.cells[-1]['slope'] += slope

    def _position_ranges(self):
        n = len(self.cells)
        lows = [0] * n
        highs = [0] * n
        for i, cell in enumerate(self.cells):
            lows[i] = cell['lower_lim']
            if i > 0:
                lows[i] = max(lows[i], lows[i - 1] + self.cells[i - 1]['width'])
        for i in reversed(range(n)):
            cell = self.cells[i]
            highs[i] = cell['upper_lim'] - cell['width']
            if i + 1 < n:
                highs[i] = min(highs[i], highs[i + 1] - cell['width'])
        for i in range(n):
            if lows[i] > highs[i]:
                raise ValueError(
                    f"Cells do not fit: cell {i} must lie in [{lows[i]}, {highs[i]}]"
                )
        return lows, highs

    def get_placement(self) -> List[int]:
        """Optimal left-edge positions, in the order the cells were pushed."""
        if not self.cells:
            return []
        lows, highs = self._position_ranges()

        sums = []
        prev_min = None
        for i, cell in enumerate(self.cells):
            cost = PiecewiseLinearFunction(lows[i], highs[i])
            cost.add_monotone(cell['slope'], lows[i])
            for pos, weight in cell['bounds']:
                cost.add_bislope(-weight, 0, pos)
            if prev_min is not None:
                cost = prev_min.sum_with(cost, -self.cells[i - 1]['width'])
            sums.append(cost)
            prev_min = cost.previous_min()

        positions = [0] * len(self.cells)
        limit = highs[-1]
        for i in reversed(range(len(self.cells))):
            positions[i] = _rightmost_argmin(sums[i], limit)
            if i > 0:
                limit = positions[i] - self.cells[i - 1]['width']
        return positions
