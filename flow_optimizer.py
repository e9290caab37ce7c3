#!/usr/bin/env python3
"""
Fixed-topology coordinate optimization with a minimum-cost flow.

With the row order of every cell fixed, finding the x coordinates that
minimize the horizontal wirelength is a linear program whose constraints
are all differences of two variables. Its dual is a minimum-cost flow
problem: the cells and the lower/upper bound of every net become nodes,
each constraint x_v <= x_u + c becomes an arc u -> v of cost c, and each net
sends one unit of flow from its upper bound node to its lower bound node.
The optimal coordinates are the node potentials of the optimal flow,
relative to a reference node standing for x = 0.
"""

from typing import Dict, Tuple

import networkx as nx

from netlist import Netlist
from detailed_placement import DetailedPlacement
from wirelength import pin_x_offset


FIXED = 'fixed'


class FlowSolveError(RuntimeError):
    """The flow network has no optimal solution: the placement model is inconsistent."""


def _cell_node(c: int) -> Tuple[str, int]:
    return ('cell', c)


def _lower_node(n: int) -> Tuple[str, int]:
    return ('lower', n)


def _upper_node(n: int) -> Tuple[str, int]:
    return ('upper', n)


def build_flow_network(circuit: Netlist, pl: DetailedPlacement) -> nx.MultiDiGraph:
    """
    Build the min-cost flow network of the placement.

    Node demands follow the networkx convention (negative demand = supply).
    Arcs are uncapacitated and carry their cost in the 'weight' attribute.
    """
    graph = nx.MultiDiGraph()
    graph.add_node(FIXED)

    for c in range(circuit.cell_cnt()):
        if circuit.is_x_movable(c):
            graph.add_node(_cell_node(c))

    # Ordering constraints between neighbours, in every row-slot
    for i, cell in enumerate(pl.cells):
        for l in range(cell.neighbours_begin, cell.neighbours_begin + cell.height):
            oi = pl.neighbours[l][1]
            if oi is None:
                continue
            other = pl.cells[oi]
            i_movable = circuit.is_x_movable(i)
            oi_movable = circuit.is_x_movable(oi)
            if i_movable and oi_movable:
                graph.add_edge(_cell_node(oi), _cell_node(i), weight=-cell.width)
            elif i_movable:
                # Constrained on the right by a fixed cell
                graph.add_edge(FIXED, _cell_node(i), weight=other.x - cell.width)
            elif oi_movable:
                # Constrained on the left by a fixed cell
                graph.add_edge(_cell_node(oi), FIXED, weight=-cell.x - cell.width)

    # Region boundaries
    for r in range(pl.row_cnt()):
        first = pl.row_first_cells[r]
        if first is not None and circuit.is_x_movable(first):
            graph.add_edge(_cell_node(first), FIXED, weight=-pl.min_x)
        last = pl.row_last_cells[r]
        if last is not None and circuit.is_x_movable(last):
            graph.add_edge(FIXED, _cell_node(last), weight=pl.max_x - pl.cells[last].width)

    # Pins tie the cells to the bounds of their nets
    for n in range(circuit.net_cnt()):
        net = circuit.get_net(n)
        if net.pin_cnt == 0:
            continue
        # One unit of flow per net: net weights are not taken into account here
        graph.add_node(_upper_node(n), demand=-1)
        graph.add_node(_lower_node(n), demand=1)
        for p in net.pins:
            c = p.cell_ind
            pin_offs = pin_x_offset(pl, p)
            if circuit.is_x_movable(c):
                graph.add_edge(_cell_node(c), _lower_node(n), weight=pin_offs)
                graph.add_edge(_upper_node(n), _cell_node(c), weight=-pin_offs)
            else:
                pos = pl.cells[c].x + pin_offs
                graph.add_edge(FIXED, _lower_node(n), weight=pos)
                graph.add_edge(_upper_node(n), FIXED, weight=-pos)

    return graph


def solve_potentials(graph: nx.MultiDiGraph) -> Tuple[int, Dict]:
    """
    Solve the flow problem and return (flow_cost, potentials).

    Potentials satisfy potential[v] <= potential[u] + cost for every arc u -> v,
    with equality on arcs carrying flow, and potential[FIXED] == 0. They are
    the shortest distances to FIXED in the residual graph of the optimal flow,
    negated, which gives the smallest optimal coordinates.

    Raises:
        FlowSolveError: the network is infeasible or unbounded
    """
    try:
        flow_cost, flow_dict = nx.network_simplex(graph)
    except (nx.NetworkXUnfeasible, nx.NetworkXUnbounded) as e:
        raise FlowSolveError(f"Min-cost flow has no optimal solution: {e}") from e

    residual = nx.DiGraph()
    residual.add_nodes_from(graph.nodes)

    def add_arc(u, v, weight):
        if residual.has_edge(u, v):
            residual[u][v]['weight'] = min(residual[u][v]['weight'], weight)
        else:
            residual.add_edge(u, v, weight=weight)

    for u, v, key, data in graph.edges(keys=True, data=True):
        add_arc(u, v, data['weight'])
        if flow_dict[u][v][key] > 0:
            add_arc(v, u, -data['weight'])

    try:
        distances = nx.single_source_bellman_ford_path_length(
            residual.reverse(copy=False), FIXED, weight='weight'
        )
    except nx.NetworkXUnbounded as e:
        raise FlowSolveError(f"Residual graph of the optimal flow has a negative cycle: {e}") from e

    missing = [v for v in graph.nodes if v not in distances]
    if missing:
        raise FlowSolveError(f"{len(missing)} flow nodes are not constrained by the reference node")

    return flow_cost, {v: -d for v, d in distances.items()}


def optimize_positions(circuit: Netlist, pl: DetailedPlacement, verbose: bool = False) -> int:
    """
    Optimize the x coordinates of all movable cells at fixed topology.

    Returns:
        The optimal total horizontal wirelength (unit net weights)
    """
    graph = build_flow_network(circuit, pl)
    flow_cost, potentials = solve_potentials(graph)

    if verbose:
        print(f"Min-cost flow: {graph.number_of_nodes()} nodes, "
              f"{graph.number_of_edges()} arcs, x wirelength {-flow_cost}")

    for c in range(circuit.cell_cnt()):
        if circuit.is_x_movable(c):
            pl.cells[c].x = potentials[_cell_node(c)] - potentials[FIXED]

    pl.selfcheck()
    return -flow_cost
