#!/usr/bin/env python3
"""
Parser for detailed placement layout files (layout.yaml).

A layout holds the placement region, the cells with their legal row
assignment, and the nets. It creates the netlist and the row-linked
placement structure, and converts a placement back to a JSON-ready dict.
"""

import json
import yaml
from collections import defaultdict
from typing import Dict, List, Tuple, Any, Optional

from netlist import Netlist, X_MOVABLE, Y_MOVABLE, MOVABLE
from detailed_placement import DetailedPlacement, PlacementCell


# DEF orientation -> (x_orientation, y_orientation); False means mirrored
ORIENTATIONS = {
    'N': (True, True),
    'FN': (False, True),
    'S': (False, False),
    'FS': (True, False),
}


def orientation_name(x_orientation: bool, y_orientation: bool) -> str:
    for name, flags in ORIENTATIONS.items():
        if flags == (x_orientation, y_orientation):
            return name
    return 'N'


def _movability(cell_name: str, fixed: Any) -> int:
    """
    Movability attributes from the 'fixed' key of a cell.

    fixed: false (default) | true | 'x' | 'y'
    """
    if fixed is None or fixed is False:
        return MOVABLE
    if fixed is True:
        return 0
    if fixed == 'x':
        return Y_MOVABLE
    if fixed == 'y':
        return X_MOVABLE
    raise ValueError(f"Cell {cell_name}: invalid 'fixed' value {fixed!r} (expected true, false, x or y)")


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise ValueError(f"Missing '{key}' in {where}")
    return data[key]


def build_layout(data: Dict[str, Any],
                 placement: Optional[Dict[str, Dict[str, Any]]] = None
                 ) -> Tuple[Netlist, DetailedPlacement, List[str]]:
    """
    Build the netlist and the placement from a parsed layout.

    Args:
        data: Parsed layout
        placement: Optional {cell_name: {x, row, orient}} (as written by
                   save_placement) overriding the layout coordinates. Rows
                   are then rebuilt from the x order of the cells.

    Returns:
        circuit: Netlist
        pl: DetailedPlacement
        names: Cell names, by cell index
    """
    region = _require(data, 'region', 'layout')
    min_x = int(_require(region, 'min_x', 'region'))
    max_x = int(_require(region, 'max_x', 'region'))
    y_origin = int(region.get('y_origin', 0))
    row_count = int(_require(region, 'row_count', 'region'))
    row_height = int(_require(region, 'row_height', 'region'))

    circuit = Netlist()
    cells = []
    names = []

    for cell_data in data.get('cells', []) or []:
        name = str(_require(cell_data, 'name', 'cell'))
        width = int(_require(cell_data, 'width', f"cell {name}"))
        nb_rows = int(cell_data.get('rows', 1))
        row = int(_require(cell_data, 'row', f"cell {name}"))
        x = int(_require(cell_data, 'x', f"cell {name}"))
        orient = cell_data.get('orient', 'N')
        if placement is not None and name in placement:
            entry = placement[name]
            row = int(entry.get('row', row))
            x = int(_require(entry, 'x', f"placement of cell {name}"))
            orient = entry.get('orient', orient)
        if orient not in ORIENTATIONS:
            raise ValueError(f"Cell {name}: unknown orientation {orient!r}")
        x_orientation, y_orientation = ORIENTATIONS[orient]

        circuit.add_cell(name, width, nb_rows * row_height,
                         _movability(name, cell_data.get('fixed', False)))
        cells.append(PlacementCell(width, nb_rows, row, x, y_origin + row * row_height,
                                   x_orientation, y_orientation))
        names.append(name)

    if placement is not None:
        unknown = sorted(set(placement) - set(names))
        if unknown:
            raise ValueError(f"Placement references unknown cells: {', '.join(unknown)}")

    for net_data in data.get('nets', []) or []:
        net_name = net_data.get('name')
        pins = []
        for pin_data in net_data.get('pins', []) or []:
            cell_ind = circuit.cell_index(str(_require(pin_data, 'cell', f"pin of net {net_name}")))
            pins.append((cell_ind, int(pin_data.get('dx', 0)), int(pin_data.get('dy', 0))))
        circuit.add_net(pins, weight=int(net_data.get('weight', 1)), name=net_name)

    if 'rows' in data and placement is None:
        rows = [[circuit.cell_index(str(n)) for n in row] for row in data['rows']]
    else:
        # Cells ordered by x in every row they span
        by_row = defaultdict(list)
        for i, cell in enumerate(cells):
            for r in range(cell.row, cell.row + cell.height):
                by_row[r].append(i)
        rows = [sorted(by_row.get(r, []), key=lambda c: (cells[c].x, c)) for r in range(row_count)]

    pl = DetailedPlacement(cells, rows, min_x, max_x, y_origin, row_count, row_height)
    return circuit, pl, names


def parse_layout(layout_path: str, placement_path: Optional[str] = None
                 ) -> Tuple[Netlist, DetailedPlacement, List[str]]:
    """Parse a layout.yaml file, optionally with a placement JSON over it (see build_layout)."""
    with open(layout_path, 'r') as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Layout file {layout_path} does not contain a mapping")

    placement = None
    if placement_path is not None:
        with open(placement_path, 'r') as f:
            placement = json.load(f)
    return build_layout(data, placement)


def placement_to_dict(circuit: Netlist, pl: DetailedPlacement, names: List[str]) -> Dict[str, Dict[str, Any]]:
    """Placement as {cell_name: {x, y, row, orient}}."""
    placement = {}
    for i, cell in enumerate(pl.cells):
        placement[names[i]] = {
            'x': cell.x,
            'y': cell.y,
            'row': cell.row,
            'orient': orientation_name(cell.x_orientation, cell.y_orientation),
        }
    return placement


def save_placement(circuit: Netlist, pl: DetailedPlacement, names: List[str], output_path: str):
    """Save placement results to a JSON file."""
    with open(output_path, 'w') as f:
        json.dump(placement_to_dict(circuit, pl, names), f, indent=2)
    print(f"\nPlacement saved to {output_path}")


if __name__ == '__main__':
    import sys

    circuit, pl, names = parse_layout(sys.argv[1] if len(sys.argv) > 1 else 'designs/example_layout.yaml')

    print("Layout Summary:")
    print(f"  Region: [{pl.min_x}, {pl.max_x}] x {pl.row_cnt()} rows of height {pl.row_height}")
    print(f"  Cells: {circuit.cell_cnt()}")
    print(f"  Nets: {circuit.net_cnt()}")
