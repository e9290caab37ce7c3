#!/usr/bin/env python3
"""
Detailed placer: Refine a legal row placement to reduce wirelength.

Runs the configured optimization passes (global min-cost flow positioning,
cell swaps between rows, per-row convex placement and window reordering)
for a number of iterations, then writes the final placement as JSON.
"""

import os
import sys
import copy
import argparse
from typing import Dict, Any, Optional

import yaml
from tqdm import tqdm

from netlist import Netlist
from detailed_placement import DetailedPlacement, PlacementInvariantError
from parse_layout import parse_layout, save_placement
from flow_optimizer import optimize_positions, FlowSolveError
from swap_optimizer import optimize_swaps
from row_optimizer import optimize_single_rows, swap_in_rows
from wirelength import calculate_total_hpwl, calculate_total_x_hpwl


DEFAULT_CONFIG: Dict[str, Any] = {
    'iterations': 2,
    'passes': ['optimize_positions', 'optimize_swaps', 'optimize_single_rows', 'swap_in_rows'],
    'swaps': {'row_extent': 2, 'cell_extent': 4},
    'swap_in_rows': {'range': 3},
}


# ============================================================================
# Configuration
# ============================================================================

def merge_config(overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge user settings over DEFAULT_CONFIG.

    Raises:
        ValueError: unknown key, unknown pass or invalid value
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (overrides or {}).items():
        if key not in config:
            raise ValueError(f"Unknown configuration key: {key}")
        if isinstance(config[key], dict):
            if not isinstance(value, dict):
                raise ValueError(f"Configuration key '{key}' must be a mapping")
            for sub_key, sub_value in value.items():
                if sub_key not in config[key]:
                    raise ValueError(f"Unknown configuration key: {key}.{sub_key}")
                config[key][sub_key] = sub_value
        else:
            config[key] = value

    unknown = [p for p in config['passes'] if p not in PASSES]
    if unknown:
        raise ValueError(f"Unknown passes: {', '.join(map(str, unknown))} "
                         f"(available: {', '.join(PASSES)})")
    if int(config['iterations']) < 0:
        raise ValueError(f"Iteration count must be non-negative (got {config['iterations']})")
    if int(config['swap_in_rows']['range']) < 2:
        raise ValueError(f"swap_in_rows.range must be at least 2 (got {config['swap_in_rows']['range']})")
    return config


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load a YAML configuration file; None gives the defaults."""
    if config_path is None:
        return merge_config(None)
    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Configuration file {config_path} does not contain a mapping")
    return merge_config(data)


# ============================================================================
# Passes
# ============================================================================

def _run_optimize_positions(circuit, pl, config, verbose):
    return {'x_wirelength': optimize_positions(circuit, pl, verbose=verbose)}


def _run_optimize_swaps(circuit, pl, config, verbose):
    swaps = config['swaps']
    return {'swaps': optimize_swaps(circuit, pl, int(swaps['row_extent']),
                                    int(swaps['cell_extent']), verbose=verbose)}


def _run_optimize_single_rows(circuit, pl, config, verbose):
    return {'runs': optimize_single_rows(circuit, pl, verbose=verbose)}


def _run_swap_in_rows(circuit, pl, config, verbose):
    return {'reordered': swap_in_rows(circuit, pl, int(config['swap_in_rows']['range']),
                                      verbose=verbose)}


PASSES = {
    'optimize_positions': _run_optimize_positions,
    'optimize_swaps': _run_optimize_swaps,
    'optimize_single_rows': _run_optimize_single_rows,
    'swap_in_rows': _run_swap_in_rows,
}


def run_detailed_placement(circuit: Netlist, pl: DetailedPlacement,
                           config: Optional[Dict[str, Any]] = None,
                           verbose: bool = False) -> Dict[str, Any]:
    """
    Run the configured passes over the placement, in place.

    Args:
        circuit: Netlist
        pl: Legal placement, modified in place
        config: Merged configuration (defaults if None)
        verbose: Print per-pass progress

    Returns:
        report: {initial_hpwl, final_hpwl, initial_x_wirelength,
                 final_x_wirelength, passes: [{iteration, name, hpwl, ...}]}
    """
    if config is None:
        config = merge_config(None)

    report = {
        'initial_hpwl': calculate_total_hpwl(circuit, pl),
        'initial_x_wirelength': calculate_total_x_hpwl(circuit, pl),
        'passes': [],
    }

    steps = [(it, name) for it in range(int(config['iterations'])) for name in config['passes']]
    for it, name in tqdm(steps, desc="Detailed placement", disable=not verbose):
        stats = PASSES[name](circuit, pl, config, verbose)
        stats.update({'iteration': it, 'name': name, 'hpwl': calculate_total_hpwl(circuit, pl)})
        report['passes'].append(stats)
        if verbose:
            print(f"Iteration {it}, {name}: HPWL = {stats['hpwl']}")

    report['final_hpwl'] = calculate_total_hpwl(circuit, pl)
    report['final_x_wirelength'] = calculate_total_x_hpwl(circuit, pl)
    return report


def main():
    parser = argparse.ArgumentParser(
        description='Detailed placer: Refine a legal row placement to reduce wirelength'
    )
    parser.add_argument('--layout', default='designs/example_layout.yaml',
                        help='Path to layout.yaml')
    parser.add_argument('--config', default=None,
                        help='Path to configuration YAML (default: built-in settings)')
    parser.add_argument('--output', default=None,
                        help='Output JSON file (default: build/[layout_name]_placement.json)')
    parser.add_argument('--iterations', type=int, default=None,
                        help='Override the number of iterations')
    parser.add_argument('--verbose', action='store_true',
                        help='Show progress of each pass')

    args = parser.parse_args()

    layout_name = os.path.splitext(os.path.basename(args.layout))[0]
    output_path = args.output or f'build/{layout_name}_placement.json'

    try:
        config = load_config(args.config)
        if args.iterations is not None:
            config = merge_config({**config, 'iterations': args.iterations})

        print(f"Loading layout from {args.layout}...")
        circuit, pl, names = parse_layout(args.layout)
        print(f"  {circuit.cell_cnt()} cells, {circuit.net_cnt()} nets, {pl.row_cnt()} rows")

        report = run_detailed_placement(circuit, pl, config, verbose=args.verbose)
    except (ValueError, PlacementInvariantError, FlowSolveError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    save_placement(circuit, pl, names, output_path)

    initial, final = report['initial_hpwl'], report['final_hpwl']
    improvement = (initial - final) / initial * 100 if initial > 0 else 0.0

    print("\n" + "="*60)
    print("Detailed Placement Summary")
    print("="*60)
    print(f"Initial Total HPWL: {initial}")
    print(f"Final Total HPWL: {final} ({improvement:.1f}% improvement)")
    print(f"Passes run: {len(report['passes'])}")
    print("="*60)
    print("\nDetailed placement completed successfully!")
    print(f"JSON file: {output_path}")


if __name__ == '__main__':
    main()
