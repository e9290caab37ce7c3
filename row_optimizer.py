#!/usr/bin/env python3
"""
Row-local optimization of runs of standard cells.

A run is a maximal sequence of consecutive single-row, horizontally movable
cells of a row. Fixed cells, multi-row cells and the row ends delimit runs.
Within a run the cells are placed optimally for their order
(optimize_single_rows), and small windows of a run are reordered by
exhaustive search over their permutations (swap_in_rows).
"""

import itertools
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from netlist import Netlist
from detailed_placement import DetailedPlacement
from ordered_row import OrderedSingleRow
from wirelength import pin_x_offset, net_x_hpwl


def _is_run_cell(circuit: Netlist, pl: DetailedPlacement, c: int) -> bool:
    return pl.cells[c].height == 1 and circuit.is_x_movable(c)


def _next_run_start(circuit: Netlist, pl: DetailedPlacement, r: int, c: Optional[int]) -> Optional[int]:
    """First cell of row r at or after c that can be part of a run."""
    while c is not None and not _is_run_cell(circuit, pl, c):
        c = pl.neighbours[pl.neighbour_index(c, r)][1]
    return c


def _run_limits(pl: DetailedPlacement, cells: List[int]):
    """External neighbours of a run and the interval available to it."""
    before = pl.neighbours[pl.cells[cells[0]].neighbours_begin][0]
    after = pl.neighbours[pl.cells[cells[-1]].neighbours_begin][1]
    lower_lim = pl.cells[before].x + pl.cells[before].width if before is not None else pl.min_x
    upper_lim = pl.cells[after].x if after is not None else pl.max_x
    return before, after, lower_lim, upper_lim


def optimize_convex_sequence(circuit: Netlist, pl: DetailedPlacement, cells: List[int],
                             lower_lim: int, upper_lim: int) -> Tuple[int, List[int]]:
    """
    Optimal positions of an ordered sequence of single-row cells.

    Pins of cells outside the sequence stay at their current positions. For
    each net, only the first and the last cell of the sequence on that net
    see a cost: a bound towards the external pins if there are some, a unit
    slope towards the other cells of the sequence otherwise.

    Args:
        cells: Cells of the sequence, left to right
        lower_lim, upper_lim: Interval available to the sequence

    Returns:
        (cost, positions): the horizontal wirelength of the nets of the
        sequence once placed, and the x coordinate of each cell
    """
    seq_order: Dict[int, int] = {c: i for i, c in enumerate(cells)}
    row = OrderedSingleRow()

    for i, c in enumerate(cells):
        cell = pl.cells[c]
        row.push_cell(cell.width, lower_lim, upper_lim)

        for n in circuit.cell_nets(c):
            net = circuit.get_net(n)
            ext_pin_min = ext_pin_max = None
            rel_loc_pin_min = rel_loc_pin_max = None
            found_before = found_after = found_external = False

            for p in net.pins:
                k = seq_order.get(p.cell_ind)
                if k is None:
                    # Pin which remains fixed for this round
                    found_external = True
                    pos = pl.cells[p.cell_ind].x + pin_x_offset(pl, p)
                    ext_pin_min = pos if ext_pin_min is None else min(ext_pin_min, pos)
                    ext_pin_max = pos if ext_pin_max is None else max(ext_pin_max, pos)
                elif k < i:
                    found_before = True
                elif k > i:
                    found_after = True
                else:
                    dx = p.offset[0]
                    rel_loc_pin_min = dx if rel_loc_pin_min is None else min(rel_loc_pin_min, dx)
                    rel_loc_pin_max = dx if rel_loc_pin_max is None else max(rel_loc_pin_max, dx)

            # Extreme pins of the cell, relative to its left edge
            half_width = cell.width // 2
            if cell.x_orientation:
                loc_pin_min = half_width + rel_loc_pin_min
                loc_pin_max = half_width + rel_loc_pin_max
            else:
                loc_pin_min = half_width - rel_loc_pin_max
                loc_pin_max = half_width - rel_loc_pin_min

            weight = net.weight
            if not found_before:
                if found_external:
                    row.push_bound(ext_pin_min - loc_pin_min, weight)
                elif found_after:
                    # Only cells of the sequence on this net: pulled to the right
                    row.push_slope(-weight)
            if not found_after:
                if found_external:
                    row.push_slope(weight)
                    row.push_bound(ext_pin_max - loc_pin_max, weight)
                elif found_before:
                    # Pulled to the left
                    row.push_slope(weight)

    positions = row.get_placement()

    new_x = {c: positions[i] for i, c in enumerate(cells)}
    cost = sum(net_x_hpwl(circuit, pl, n, new_x) for n in circuit.nets_of_cells(cells))
    return cost, positions


def optimize_single_rows(circuit: Netlist, pl: DetailedPlacement, verbose: bool = False) -> int:
    """
    Place every run of every row optimally, keeping the cell order.

    Returns:
        Number of runs optimized
    """
    nb_runs = 0
    for r in tqdm(range(pl.row_cnt()), desc="Optimizing rows", disable=not verbose):
        c = _next_run_start(circuit, pl, r, pl.row_first_cells[r])
        while c is not None:
            cells = []
            while c is not None and _is_run_cell(circuit, pl, c):
                cells.append(c)
                c = pl.neighbours[pl.cells[c].neighbours_begin][1]

            _, _, lower_lim, upper_lim = _run_limits(pl, cells)
            _, positions = optimize_convex_sequence(circuit, pl, cells, lower_lim, upper_lim)
            for cell_ind, x in zip(cells, positions):
                pl.cells[cell_ind].x = x
            nb_runs += 1

            c = _next_run_start(circuit, pl, r, c)

    pl.selfcheck()
    return nb_runs


def swap_in_rows(circuit: Netlist, pl: DetailedPlacement, range_: int, verbose: bool = False) -> int:
    """
    Reorder windows of range_ consecutive cells of each run.

    Every permutation of a window is placed with optimize_convex_sequence and
    the cheapest one is kept. Full windows slide by one cell.

    Returns:
        Number of windows whose order changed
    """
    if range_ < 2:
        raise ValueError(f"Reordering window must hold at least 2 cells (got {range_})")

    nb_reordered = 0
    for r in tqdm(range(pl.row_cnt()), desc="Reordering rows", disable=not verbose):
        c = _next_run_start(circuit, pl, r, pl.row_first_cells[r])
        while c is not None:
            cells = []
            while c is not None and _is_run_cell(circuit, pl, c) and len(cells) < range_:
                cells.append(c)
                c = pl.neighbours[pl.cells[c].neighbours_begin][1]

            before, after, lower_lim, upper_lim = _run_limits(pl, cells)

            best_cost = None
            best_permutation = cells
            best_positions = None
            # Check every possible permutation of the cells
            for permutation in itertools.permutations(sorted(cells)):
                permutation = list(permutation)
                cur_cost, positions = optimize_convex_sequence(
                    circuit, pl, permutation, lower_lim, upper_lim
                )
                if best_cost is None or cur_cost < best_cost:
                    best_cost = cur_cost
                    best_permutation = permutation
                    best_positions = positions

            if best_permutation != cells:
                nb_reordered += 1
            cells = best_permutation
            for cell_ind, x in zip(cells, best_positions):
                pl.cells[cell_ind].x = x
            pl.reorder_run(r, cells, before, after)

            if c is not None:
                if not _is_run_cell(circuit, pl, c):
                    # End of the run: go to the next one
                    c = _next_run_start(circuit, pl, r, c)
                else:
                    # Full window: advance one cell and optimize again
                    c = cells[1]

    pl.selfcheck()
    return nb_reordered
