#!/usr/bin/env python3
"""
Acceptance tests for the detailed placement flow.

Runs the command-line scripts on the example layout and validates the output:
- detailed_placer.py writes a placement JSON for every cell
- Fixed cells keep their coordinates
- validator.py accepts the refined placement
- Total HPWL reported in the summary matches the written placement
"""

import pytest
import subprocess
import sys
import json
import re
from pathlib import Path

from parse_layout import parse_layout
from wirelength import calculate_total_hpwl


REPO_DIR = Path(__file__).parent
EXAMPLE_LAYOUT = REPO_DIR / 'designs' / 'example_layout.yaml'


def run_script(*args):
    return subprocess.run(
        [sys.executable, *args],
        capture_output=True,
        text=True,
        timeout=120,
        cwd=REPO_DIR
    )


@pytest.fixture
def placed(tmp_path):
    """Run the detailed placer on the example layout."""
    if not EXAMPLE_LAYOUT.exists():
        pytest.skip(f"Layout file not found: {EXAMPLE_LAYOUT}")

    output = tmp_path / "placement.json"
    result = run_script('detailed_placer.py', '--layout', str(EXAMPLE_LAYOUT),
                        '--output', str(output), '--iterations', '1')
    assert result.returncode == 0, f"Detailed placer failed:\n{result.stdout}\n{result.stderr}"
    return output, result.stdout


def test_placement_json_written(placed):
    """Test that every cell of the layout appears in the placement JSON."""
    output, _ = placed
    placement = json.loads(output.read_text())

    circuit, _, names = parse_layout(str(EXAMPLE_LAYOUT))
    assert set(placement.keys()) == set(names)
    for entry in placement.values():
        assert set(entry.keys()) == {'x', 'y', 'row', 'orient'}


def test_fixed_cells_keep_position(placed):
    """Test that fixed cells are where the layout put them."""
    output, _ = placed
    placement = json.loads(output.read_text())

    circuit, pl, names = parse_layout(str(EXAMPLE_LAYOUT))
    for i, name in enumerate(names):
        if not circuit.is_x_movable(i):
            assert placement[name]['x'] == pl.cells[i].x
            assert placement[name]['y'] == pl.cells[i].y


def test_summary_matches_placement(placed):
    """Test that the reported final HPWL is the HPWL of the written placement."""
    output, stdout = placed
    match = re.search(r'Final Total HPWL: (\d+)', stdout)
    assert match, f"No final HPWL in output:\n{stdout}"

    circuit, pl, _ = parse_layout(str(EXAMPLE_LAYOUT), str(output))
    pl.selfcheck()
    assert calculate_total_hpwl(circuit, pl) == int(match.group(1))


def test_validator_accepts_layout():
    """Test that the validator exits with 0 on the example layout."""
    if not EXAMPLE_LAYOUT.exists():
        pytest.skip(f"Layout file not found: {EXAMPLE_LAYOUT}")

    result = run_script('validator.py', '--layout', str(EXAMPLE_LAYOUT))
    assert result.returncode == 0, f"Validation failed:\n{result.stdout}"
    assert "VALIDATION PASSED" in result.stdout


def test_placer_rejects_bad_config(tmp_path):
    """Test that an unknown pass name is a fatal error."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("passes: [anneal]\n")

    result = run_script('detailed_placer.py', '--layout', str(EXAMPLE_LAYOUT),
                        '--config', str(config_file), '--output', str(tmp_path / "out.json"))
    assert result.returncode == 1
    assert "ERROR:" in result.stdout
