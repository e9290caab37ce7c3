#!/usr/bin/env python3
"""
Pairwise swap heuristic between cells of nearby rows.

Two movable single-row cells in different rows exchange their row-slots: each
one is centered in the free interval left by the other. The swap is kept
only if the wirelength of the nets touching either cell strictly decreases,
evaluated with the current positions of all the other cells.
"""

from tqdm import tqdm

from netlist import Netlist
from detailed_placement import DetailedPlacement, PlacementInvariantError
from wirelength import nets_cost


def _free_interval(pl: DetailedPlacement, c: int):
    """Space between the neighbours of a single-row cell (or the region bounds)."""
    before, after = pl.neighbours[pl.cells[c].neighbours_begin]
    lower = pl.cells[before].x + pl.cells[before].width if before is not None else pl.min_x
    upper = pl.cells[after].x if after is not None else pl.max_x
    return lower, upper


def _is_swappable(circuit: Netlist, c: int) -> bool:
    return circuit.is_x_movable(c) and circuit.is_y_movable(c)


def try_swap(circuit: Netlist, pl: DetailedPlacement, c1: int, c2: int) -> bool:
    """
    Try to exchange two cells; keep the swap only if it reduces the wirelength.

    Returns:
        True if the cells were swapped, False if the placement is unchanged
    """
    cell1, cell2 = pl.cells[c1], pl.cells[c2]
    errors = []
    if cell1.height != 1 or cell2.height != 1:
        errors.append(f"Swapped cells must span a single row ({c1}: {cell1.height}, {c2}: {cell2.height})")
    if circuit.get_cell(c1).size[1] != circuit.get_cell(c2).size[1]:
        errors.append(f"Swapped cells {c1} and {c2} have different heights")
    if cell1.row == cell2.row:
        errors.append(f"Swapped cells {c1} and {c2} are in the same row")
    for c in (c1, c2):
        if not (circuit.is_x_movable(c) and circuit.is_y_movable(c)):
            errors.append(f"Swapped cell {c} is not movable")
    if errors:
        raise PlacementInvariantError(errors)

    c1_l, c1_u = _free_interval(pl, c1)
    c2_l, c2_u = _free_interval(pl, c2)

    # Positions available to each cell in the other's slot
    swp_min_c1, swp_max_c1 = c2_l, c2_u - cell1.width
    swp_min_c2, swp_max_c2 = c1_l, c1_u - cell2.width
    if swp_max_c1 < swp_min_c1 or swp_max_c2 < swp_min_c2:
        # Cannot swap without pushing other cells
        return False

    involved_nets = circuit.nets_of_cells((c1, c2))
    old_cost = nets_cost(circuit, pl, involved_nets)

    c1_x, c1_y = cell1.x, cell1.y
    c2_x, c2_y = cell2.x, cell2.y

    cell1.x = (swp_min_c1 + swp_max_c1) // 2
    cell2.x = (swp_min_c2 + swp_max_c2) // 2
    cell1.y, cell2.y = c2_y, c1_y

    swp_cost = nets_cost(circuit, pl, involved_nets)
    if swp_cost < old_cost:
        pl.swap_cells(c1, c2)
        return True

    cell1.x, cell1.y = c1_x, c1_y
    cell2.x, cell2.y = c2_x, c2_y
    return False


def optimize_swaps(circuit: Netlist, pl: DetailedPlacement,
                   row_extent: int, cell_extent: int, verbose: bool = False) -> int:
    """
    Try swaps between each row and the row_extent rows above it.

    For a cell of the main row, candidates in the other row are scanned from a
    sliding first candidate until more than cell_extent of them lie entirely
    right of the cell's neighbourhood; the first candidate skips cells lying
    more than cell_extent positions left of it.

    Returns:
        Number of swaps performed
    """
    nb_swaps = 0
    for main_row in tqdm(range(pl.row_cnt()), desc="Swapping cells", disable=not verbose):
        for other_row in range(main_row + 1, min(pl.row_cnt() - 1, main_row + row_extent) + 1):

            first_oc = pl.first_cell_on_row(other_row)
            c = pl.first_cell_on_row(main_row)
            while c is not None:
                if not _is_swappable(circuit, c):
                    # Don't touch fixed cells
                    c = pl.next_cell_on_row(c)
                    continue

                nb_after = 0
                nb_before = 0
                pos_low = pl.cells[c].x - pl.cells[c].width
                pos_hgh = pl.cells[c].x + 2 * pl.cells[c].width

                oc = first_oc
                while oc is not None and nb_after <= cell_extent:
                    if _is_swappable(circuit, oc) \
                            and circuit.get_cell(c).size[1] == circuit.get_cell(oc).size[1]:
                        if pl.cells[oc].x >= pos_hgh:
                            nb_after += 1
                        if pl.cells[oc].x + pl.cells[oc].width <= pos_low:
                            nb_before += 1

                        if try_swap(circuit, pl, c, oc):
                            nb_swaps += 1
                            # Follow the cells: c is now the one in the main row
                            c, oc = oc, c
                            if c == first_oc:
                                first_oc = oc
                    oc = pl.next_cell_on_row(oc)

                while nb_before > cell_extent and first_oc is not None:
                    nb_before -= 1
                    first_oc = pl.next_cell_on_row(first_oc)

                c = pl.next_cell_on_row(c)

    pl.selfcheck()
    return nb_swaps
