#!/usr/bin/env python3
"""
Unit tests for the pairwise swap heuristic.
"""

import pytest

from parse_layout import build_layout
from detailed_placement import PlacementInvariantError
from swap_optimizer import try_swap, optimize_swaps
from wirelength import calculate_total_hpwl


def crossed_layout():
    """
    a (row 0) is connected to f1 (row 1) and b (row 1) to f0 (row 0):
    exchanging a and b shortens both nets.
    """
    return build_layout({
        'region': {'min_x': 0, 'max_x': 20, 'row_count': 2, 'row_height': 10},
        'cells': [
            {'name': 'a', 'width': 2, 'row': 0, 'x': 0},
            {'name': 'b', 'width': 2, 'row': 1, 'x': 0},
            {'name': 'f0', 'width': 2, 'row': 0, 'x': 10, 'fixed': True},
            {'name': 'f1', 'width': 2, 'row': 1, 'x': 10, 'fixed': True},
        ],
        'nets': [
            {'name': 'n_a', 'pins': [{'cell': 'a'}, {'cell': 'f1'}]},
            {'name': 'n_b', 'pins': [{'cell': 'b'}, {'cell': 'f0'}]},
        ],
    })


def parallel_layout():
    """a and b are connected within their own rows: swapping them only adds length."""
    return build_layout({
        'region': {'min_x': 0, 'max_x': 20, 'row_count': 2, 'row_height': 10},
        'cells': [
            {'name': 'a', 'width': 2, 'row': 0, 'x': 0},
            {'name': 'b', 'width': 2, 'row': 1, 'x': 3},
            {'name': 'f0', 'width': 2, 'row': 0, 'x': 10, 'fixed': True},
            {'name': 'f1', 'width': 2, 'row': 1, 'x': 10, 'fixed': True},
        ],
        'nets': [
            {'name': 'n_a', 'pins': [{'cell': 'a'}, {'cell': 'f0'}]},
            {'name': 'n_b', 'pins': [{'cell': 'b'}, {'cell': 'f1'}]},
        ],
    })


def snapshot(pl):
    return (
        [(c.x, c.y, c.row) for c in pl.cells],
        [list(n) for n in pl.neighbours],
        list(pl.row_first_cells),
        list(pl.row_last_cells),
    )


class TestTrySwap:
    """Test single swap attempts."""

    def test_improving_swap_is_kept(self):
        circuit, pl, _ = crossed_layout()
        before = calculate_total_hpwl(circuit, pl)
        assert try_swap(circuit, pl, 0, 1)
        a, b = pl.cells[0], pl.cells[1]
        assert (a.row, a.y) == (1, 10)
        assert (b.row, b.y) == (0, 0)
        # Centered in [0, 10 - 2]
        assert a.x == 4
        assert b.x == 4
        assert pl.row_cells(0) == [1, 2]
        assert pl.row_cells(1) == [0, 3]
        assert calculate_total_hpwl(circuit, pl) < before
        pl.selfcheck()

    def test_rejected_swap_leaves_placement_unchanged(self):
        circuit, pl, _ = parallel_layout()
        state = snapshot(pl)
        assert not try_swap(circuit, pl, 0, 1)
        assert snapshot(pl) == state

    def test_swap_without_room(self):
        circuit, pl, _ = build_layout({
            'region': {'min_x': 0, 'max_x': 10, 'row_count': 2, 'row_height': 10},
            'cells': [
                {'name': 'small', 'width': 2, 'row': 0, 'x': 0},
                {'name': 'f0', 'width': 2, 'row': 0, 'x': 2, 'fixed': True},
                {'name': 'big', 'width': 6, 'row': 1, 'x': 0},
            ],
            'nets': [
                {'name': 'n', 'pins': [{'cell': 'big'}, {'cell': 'f0'}]},
            ],
        })
        state = snapshot(pl)
        assert not try_swap(circuit, pl, 0, 2)
        assert snapshot(pl) == state

    def test_same_row_rejected(self):
        circuit, pl, _ = build_layout({
            'region': {'min_x': 0, 'max_x': 20, 'row_count': 1, 'row_height': 10},
            'cells': [
                {'name': 'a', 'width': 2, 'row': 0, 'x': 0},
                {'name': 'b', 'width': 2, 'row': 0, 'x': 5},
            ],
            'nets': [],
        })
        with pytest.raises(PlacementInvariantError):
            try_swap(circuit, pl, 0, 1)

    def test_fixed_cell_rejected(self):
        circuit, pl, _ = crossed_layout()
        with pytest.raises(PlacementInvariantError) as excinfo:
            try_swap(circuit, pl, 0, 3)
        assert any("not movable" in v for v in excinfo.value.violations)

    def test_multi_row_cell_rejected(self):
        circuit, pl, _ = build_layout({
            'region': {'min_x': 0, 'max_x': 20, 'row_count': 3, 'row_height': 10},
            'cells': [
                {'name': 'a', 'width': 2, 'row': 0, 'x': 0},
                {'name': 'm', 'width': 2, 'rows': 2, 'row': 1, 'x': 0},
            ],
            'nets': [],
        })
        with pytest.raises(PlacementInvariantError):
            try_swap(circuit, pl, 0, 1)


class TestOptimizeSwaps:
    """Test the swap pass over all rows."""

    def test_swaps_crossed_cells(self):
        circuit, pl, _ = crossed_layout()
        before = calculate_total_hpwl(circuit, pl)
        assert optimize_swaps(circuit, pl, row_extent=2, cell_extent=4) == 1
        assert pl.cells[0].row == 1
        assert pl.cells[1].row == 0
        assert calculate_total_hpwl(circuit, pl) < before
        pl.selfcheck()

    def test_no_swap_when_nothing_improves(self):
        circuit, pl, _ = parallel_layout()
        state = snapshot(pl)
        assert optimize_swaps(circuit, pl, row_extent=2, cell_extent=4) == 0
        assert snapshot(pl) == state

    def test_zero_row_extent(self):
        circuit, pl, _ = crossed_layout()
        assert optimize_swaps(circuit, pl, row_extent=0, cell_extent=4) == 0
        assert pl.cells[0].row == 0
