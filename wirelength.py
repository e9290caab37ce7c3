#!/usr/bin/env python3
"""
Pin geometry and Half-Perimeter Wirelength (HPWL) of a detailed placement.

Pin positions are integral: a pin sits at the cell origin plus half the cell
size (floor division) plus its offset, mirrored by the cell orientation.
"""

from typing import Dict, List, Tuple, Optional, Iterable

from netlist import Netlist, Pin
from detailed_placement import DetailedPlacement


def pin_x_offset(pl: DetailedPlacement, pin: Pin) -> int:
    """Offset of a pin from the left edge of its cell."""
    cell = pl.cells[pin.cell_ind]
    dx = pin.offset[0]
    return cell.width // 2 + (dx if cell.x_orientation else -dx)


def pin_y_offset(circuit: Netlist, pl: DetailedPlacement, pin: Pin) -> int:
    """Offset of a pin from the bottom edge of its cell."""
    cell = pl.cells[pin.cell_ind]
    dy = pin.offset[1]
    return circuit.get_cell(pin.cell_ind).size[1] // 2 + (dy if cell.y_orientation else -dy)


def pin_position(circuit: Netlist, pl: DetailedPlacement, pin: Pin) -> Tuple[int, int]:
    cell = pl.cells[pin.cell_ind]
    return cell.x + pin_x_offset(pl, pin), cell.y + pin_y_offset(circuit, pl, pin)


def calculate_hpwl(positions: List[Tuple[int, int]]) -> int:
    """
    Calculate Half-Perimeter Wirelength (HPWL) for a single net.

    Formula: HPWL = (max_x - min_x) + (max_y - min_y)
    """
    if len(positions) <= 1:
        return 0

    x_coords = [x for x, y in positions]
    y_coords = [y for x, y in positions]
    return (max(x_coords) - min(x_coords)) + (max(y_coords) - min(y_coords))


def net_hpwl(circuit: Netlist, pl: DetailedPlacement, net_ind: int) -> int:
    positions = [pin_position(circuit, pl, p) for p in circuit.get_net(net_ind).pins]
    return calculate_hpwl(positions)


def net_x_hpwl(circuit: Netlist, pl: DetailedPlacement, net_ind: int,
               x_override: Optional[Dict[int, int]] = None) -> int:
    """
    Horizontal extent of a net.

    Args:
        x_override: Optional cell_index -> x used instead of the recorded position
    """
    pins = circuit.get_net(net_ind).pins
    if not pins:
        return 0
    xs = []
    for p in pins:
        x = pl.cells[p.cell_ind].x
        if x_override is not None and p.cell_ind in x_override:
            x = x_override[p.cell_ind]
        xs.append(x + pin_x_offset(pl, p))
    return max(xs) - min(xs)


def nets_cost(circuit: Netlist, pl: DetailedPlacement, involved_nets: Iterable[int]) -> int:
    """HPWL (x + y) summed over the given nets, zero-pin nets skipped."""
    cost = 0
    for n in involved_nets:
        if circuit.get_net(n).pin_cnt == 0:
            continue
        cost += net_hpwl(circuit, pl, n)
    return cost


def calculate_total_hpwl(circuit: Netlist, pl: DetailedPlacement) -> int:
    """Total HPWL of the design."""
    return nets_cost(circuit, pl, range(circuit.net_cnt()))


def calculate_total_x_hpwl(circuit: Netlist, pl: DetailedPlacement) -> int:
    """Total horizontal wirelength, the quantity minimized by the flow optimizer."""
    return sum(net_x_hpwl(circuit, pl, n) for n in range(circuit.net_cnt()))


def calculate_net_hpwls(circuit: Netlist, pl: DetailedPlacement) -> List[int]:
    """HPWL of every net, in net order."""
    return [net_hpwl(circuit, pl, n) for n in range(circuit.net_cnt())]
