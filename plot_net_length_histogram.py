#!/usr/bin/env python3
"""
Generate a histogram showing the distribution of net Half-Perimeter Wire Length (HPWL).

Takes a layout.yaml file, optionally with a placement.json produced by the
detailed placer loaded over it, calculates the HPWL of each net, then creates
a histogram visualization.
"""

import argparse
import os
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from typing import List, Optional

from parse_layout import parse_layout
from wirelength import calculate_net_hpwls


def load_net_hpwls(layout_path: str, placement_path: Optional[str] = None) -> List[int]:
    """
    HPWL of every net of a layout.

    Args:
        layout_path: Path to layout.yaml
        placement_path: Optional placement JSON applied over the layout coordinates
    """
    print(f"Loading layout from {layout_path}...")
    if placement_path is not None:
        print(f"Loading placement from {placement_path}...")
    circuit, pl, _ = parse_layout(layout_path, placement_path)

    print("Calculating HPWL for each net...")
    return calculate_net_hpwls(circuit, pl)


def plot_net_length_histogram(layout_path: str,
                              output_path: str,
                              placement_path: Optional[str] = None,
                              bins: int = 50,
                              log_scale: bool = False,
                              placement_name: str = None):
    """
    Generate a histogram of net HPWL values.

    Args:
        layout_path: Path to layout.yaml
        output_path: Output PNG file path
        placement_path: Optional placement JSON
        bins: Number of histogram bins
        log_scale: Whether to use log scale for x-axis
        placement_name: Name to display for the placement (defaults to filename if not provided)

    Returns:
        Dict of statistics, or None if there is nothing to plot
    """
    hpwl_values = load_net_hpwls(layout_path, placement_path)

    # Filter out zero-length nets (single-pin nets)
    hpwl_values = [hpwl for hpwl in hpwl_values if hpwl > 0]

    if not hpwl_values:
        print("WARNING: No nets with non-zero HPWL found!")
        return None

    stats = {
        'nets': len(hpwl_values),
        'total': int(np.sum(hpwl_values)),
        'mean': float(np.mean(hpwl_values)),
        'median': float(np.median(hpwl_values)),
        'min': int(np.min(hpwl_values)),
        'max': int(np.max(hpwl_values)),
    }

    if placement_name is None:
        placement_name = os.path.basename(placement_path or layout_path)

    print(f"HPWL of {stats['nets']} nets: total {stats['total']}, mean {stats['mean']:.2f}, "
          f"median {stats['median']:.2f}, range [{stats['min']}, {stats['max']}]")

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.hist(hpwl_values, bins=bins, color='steelblue', edgecolor='black')
    ax.axvline(stats['mean'], color='red', linestyle='--', label=f"Mean: {stats['mean']:.2f}")
    ax.axvline(stats['median'], color='green', linestyle=':', label=f"Median: {stats['median']:.2f}")
    if log_scale:
        ax.set_xscale('log')
    ax.set_xlabel('Net HPWL' + (' (log scale)' if log_scale else ''))
    ax.set_ylabel('Nets')
    ax.set_title(f"{placement_name}: total HPWL {stats['total']}")
    ax.legend()

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    print(f"Histogram saved to {output_path}")

    return stats


def main():
    parser = argparse.ArgumentParser(
        description='Generate a histogram of net Half-Perimeter Wire Length (HPWL)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Initial placement of a layout
  python plot_net_length_histogram.py designs/example_layout.yaml output.png

  # After detailed placement, with custom bins and log scale
  python plot_net_length_histogram.py designs/example_layout.yaml output.png --placement build/example_layout_placement.json --bins 100 --log-scale
        """
    )

    parser.add_argument('layout', help='Path to layout.yaml')
    parser.add_argument('output', help='Output PNG file path')
    parser.add_argument('--placement', default=None,
                        help='Placement JSON to load over the layout')
    parser.add_argument('--bins', type=int, default=50,
                        help='Number of histogram bins (default: 50)')
    parser.add_argument('--log-scale', action='store_true', default=False,
                        help='Use logarithmic scale for x-axis')
    parser.add_argument('--placement-name', type=str, default=None,
                        help='Name to display for the placement (defaults to filename if not provided)')

    args = parser.parse_args()

    plot_net_length_histogram(
        args.layout,
        args.output,
        placement_path=args.placement,
        bins=args.bins,
        log_scale=args.log_scale,
        placement_name=args.placement_name
    )


if __name__ == '__main__':
    main()
