#!/usr/bin/env python3
"""
Read-only netlist model used by the detailed placement passes.

Cells are addressed by integer index, nets as well. A pin ties a cell to a
net with an integer offset (dx, dy) from the cell center; the offset is
mirrored by the cell orientation held in the placement.
"""

from typing import Dict, List, Tuple, Optional


# Movability attributes (bit flags)
X_MOVABLE = 1
Y_MOVABLE = 2
MOVABLE = X_MOVABLE | Y_MOVABLE


class Pin:
    """Connection of a cell to a net."""

    def __init__(self, cell_ind: int, net_ind: int, offset: Tuple[int, int]):
        self.cell_ind = cell_ind
        self.net_ind = net_ind
        self.offset = offset

    def __repr__(self):
        return f"Pin(cell={self.cell_ind}, net={self.net_ind}, offset={self.offset})"


class CellInfo:
    """Netlist view of a cell: size in coordinate units and movability."""

    def __init__(self, name: str, size: Tuple[int, int], attributes: int):
        self.name = name
        self.size = size
        self.attributes = attributes
        self.pins: List[Pin] = []


class NetInfo:
    def __init__(self, name: str, weight: int):
        self.name = name
        self.weight = weight
        self.pins: List[Pin] = []

    @property
    def pin_cnt(self) -> int:
        return len(self.pins)


class Netlist:
    """
    Cells, nets and pins of a design.

    The netlist is built once (add_cell / add_net) and only queried by the
    placement algorithms.
    """

    def __init__(self):
        self.cells: List[CellInfo] = []
        self.nets: List[NetInfo] = []
        self._cell_index: Dict[str, int] = {}

    def add_cell(self, name: str, width: int, height: int, attributes: int = MOVABLE) -> int:
        """Register a cell and return its index."""
        if name in self._cell_index:
            raise ValueError(f"Duplicate cell name: {name}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Cell {name} has a non-positive size ({width} x {height})")
        self.cells.append(CellInfo(name, (width, height), attributes))
        self._cell_index[name] = len(self.cells) - 1
        return len(self.cells) - 1

    def add_net(self, pins: List[Tuple[int, int, int]], weight: int = 1,
                name: Optional[str] = None) -> int:
        """
        Register a net and return its index.

        Args:
            pins: List of (cell_index, dx, dy), offsets relative to the cell center
            weight: Net weight
            name: Optional net name (defaults to n<index>)
        """
        net_ind = len(self.nets)
        net = NetInfo(name if name is not None else f"n{net_ind}", weight)
        for cell_ind, dx, dy in pins:
            if not 0 <= cell_ind < len(self.cells):
                raise ValueError(f"Net {net.name} references unknown cell index {cell_ind}")
            pin = Pin(cell_ind, net_ind, (dx, dy))
            net.pins.append(pin)
            self.cells[cell_ind].pins.append(pin)
        self.nets.append(net)
        return net_ind

    def cell_cnt(self) -> int:
        return len(self.cells)

    def net_cnt(self) -> int:
        return len(self.nets)

    def get_cell(self, cell_ind: int) -> CellInfo:
        return self.cells[cell_ind]

    def get_net(self, net_ind: int) -> NetInfo:
        return self.nets[net_ind]

    def cell_index(self, name: str) -> int:
        if name not in self._cell_index:
            raise ValueError(f"Unknown cell: {name}")
        return self._cell_index[name]

    def is_x_movable(self, cell_ind: int) -> bool:
        return (self.cells[cell_ind].attributes & X_MOVABLE) != 0

    def is_y_movable(self, cell_ind: int) -> bool:
        return (self.cells[cell_ind].attributes & Y_MOVABLE) != 0

    def cell_nets(self, cell_ind: int) -> List[int]:
        """Sorted unique nets connected to a cell."""
        return sorted({p.net_ind for p in self.cells[cell_ind].pins})

    def nets_of_cells(self, cell_inds) -> List[int]:
        """Sorted unique nets connected to any of the cells."""
        nets = set()
        for c in cell_inds:
            nets.update(p.net_ind for p in self.cells[c].pins)
        return sorted(nets)
