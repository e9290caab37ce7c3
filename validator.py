#!/usr/bin/env python3
"""
Validator: Checks that a detailed placement is legal.
Exits with error code 1 if cells overlap, leave the region or the row links are broken.
Prints a row utilization report.
"""

import sys
import argparse

from netlist import Netlist
from detailed_placement import DetailedPlacement, PlacementInvariantError
from parse_layout import parse_layout
from wirelength import calculate_total_hpwl, calculate_total_x_hpwl


def validate_placement(circuit: Netlist, pl: DetailedPlacement) -> bool:
    """
    Validate a placement against the row invariants.

    Returns:
        True if the placement is legal, False otherwise
    """
    row_width = pl.max_x - pl.min_x

    print("=" * 60)
    print("Row Utilization Report")
    print("=" * 60)

    is_valid = True
    for r in range(pl.row_cnt()):
        try:
            cells = pl.row_cells(r)
        except PlacementInvariantError as e:
            for violation in e.violations:
                print(f"ERROR: {violation}")
            is_valid = False
            continue
        used = sum(pl.cells[c].width for c in cells)
        utilization = (used / row_width) * 100
        print(f"Row {r}: {len(cells)} cells, {used}/{row_width} used ({utilization:.1f}%)")

    violations = pl.check_invariants()
    for violation in violations:
        print(f"ERROR: {violation}")
    if violations:
        is_valid = False

    print("=" * 60)
    print(f"Total HPWL: {calculate_total_hpwl(circuit, pl)}")
    print(f"Total x wirelength: {calculate_total_x_hpwl(circuit, pl)}")

    if not is_valid:
        print("\nVALIDATION FAILED: Placement is not legal.")
        return False
    else:
        print("\nVALIDATION PASSED: Placement is legal.")
        return True


def main():
    parser = argparse.ArgumentParser(description='Validate a detailed placement')
    parser.add_argument('--layout', required=True,
                        help='Path to layout.yaml')
    parser.add_argument('--placement', default=None,
                        help='Optional placement JSON to load over the layout')

    args = parser.parse_args()

    try:
        circuit, pl, _ = parse_layout(args.layout, args.placement)
    except (ValueError, PlacementInvariantError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    is_valid = validate_placement(circuit, pl)
    sys.exit(0 if is_valid else 1)


if __name__ == '__main__':
    main()
