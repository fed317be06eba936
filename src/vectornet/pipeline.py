"""
Region computation for a graph snapshot.

Stages:
1. Minimum cycle basis (unordered edge sets)
2. Closed-walk ordering of each set into a directed Cycle
3. Nesting of cycles into Regions
"""

from vectornet.config import GraphConfig
from vectornet.cycles.closed_walk import MIN_EDGES_FOR_CYCLE, extract_cycle
from vectornet.cycles.mcb import minimum_cycle_basis
from vectornet.regions.nesting import build_regions
from vectornet.tracer import get_tracer, trace


def compute_cycles(graph, config=None):
    """
    Directed cycles of the minimum cycle basis.

    Basis cycles shorter than a closed walk allows (self-loops and two-edge
    lenses) are skipped with a warning.
    """
    tracer = get_tracer()
    config = config or GraphConfig()

    with tracer.span("minimum_cycle_basis_stage", module="pipeline"):
        raw_cycles = minimum_cycle_basis(graph, config)

    cycles = []
    with tracer.span("closed_walk_stage", module="pipeline", raw=len(raw_cycles)):
        for edge_set in raw_cycles:
            if len(edge_set) < MIN_EDGES_FOR_CYCLE:
                tracer.event(
                    "Skipping cycle too small for a closed walk",
                    level="WARN",
                    edges=sorted(edge_set),
                )
                continue
            cycles.append(extract_cycle(graph, edge_set))

    return cycles


@trace(label="compute_regions", arg_names=["graph"])
def compute_regions(graph, config=None):
    """
    Derive fillable regions from the current graph.

    Raises EmptyGraph for a graph without edges and TraversalLimit when the
    cycle search exceeds its budget. The graph is not modified.
    """
    tracer = get_tracer()
    config = config or GraphConfig()

    cycles = compute_cycles(graph, config)

    with tracer.span("region_stage", module="pipeline", cycles=len(cycles)):
        regions = build_regions(graph, cycles, config)

    return regions
