"""
Closed-walk extraction.

Orders an unordered set of edges that form one loop into a directed chain,
flipping edges logically (Edge.directed_from) so each one leaves the node
the previous one arrived at. Stored edges are never modified.
"""

from vectornet.errors import ClosedWalkDeadEnd, ClosedWalkTooSmall
from vectornet.models import Cycle
from vectornet.tracer import get_tracer, trace

MIN_EDGES_FOR_CYCLE = 3


def _resolve_edges(graph, edge_indices):
    """Look up every edge and both its endpoints, failing on the first gap."""
    edges = {}
    for idx in sorted(set(edge_indices)):
        edge = graph.edge(idx)
        graph.node(edge.start)
        graph.node(edge.end)
        edges[idx] = edge
    return edges


@trace(label="order_closed_walk", arg_names=["edge_indices"])
def order_closed_walk(graph, edge_indices):
    """
    Order edges into a closed walk.

    The walk starts at the lowest edge index in its stored direction and
    always continues with the lowest-indexed usable edge, preferring edges
    that do not return to the origin while others remain. The result depends
    only on the set of edges, never on the input order.

    Returns a list of (edge index, directed edge) pairs.

    Raises:
        MissingEdge, MissingNode: an index does not resolve.
        ClosedWalkTooSmall: fewer than 3 edges, or the chain does not close.
        ClosedWalkDeadEnd: no remaining edge continues the chain.
    """
    edges = _resolve_edges(graph, edge_indices)
    if len(edges) < MIN_EDGES_FOR_CYCLE:
        raise ClosedWalkTooSmall(len(edges))

    ordered = sorted(edges)
    first_idx = ordered[0]
    first_edge = edges[first_idx]

    walk = [(first_idx, first_edge)]
    origin = first_edge.start
    trailing = first_edge.end
    remaining = set(ordered[1:])

    while remaining:
        candidates = sorted(idx for idx in remaining if edges[idx].contains_node(trailing))
        if not candidates:
            raise ClosedWalkDeadEnd(trailing, remaining)

        if len(remaining) > 1:
            # closing the loop early would strand the rest of the edges
            open_candidates = [
                idx for idx in candidates if edges[idx].other_node(trailing) != origin
            ]
            if open_candidates:
                candidates = open_candidates

        idx = candidates[0]
        directed = edges[idx].directed_from(trailing)
        walk.append((idx, directed))
        remaining.discard(idx)
        trailing = directed.end

    if trailing != origin:
        raise ClosedWalkTooSmall(len(walk))

    get_tracer().event(f"Ordered closed walk of {len(walk)} edges", level="DEBUG")
    return walk


def extract_cycle(graph, edge_indices):
    """Closed walk over edge_indices as a Cycle."""
    walk = order_closed_walk(graph, edge_indices)
    return Cycle(
        edges=[idx for idx, _ in walk],
        nodes=[directed.start for _, directed in walk],
    )


def reverse_cycle(cycle):
    """
    The same walk traversed backwards.

    Children are kept as they are; only this cycle's direction changes.
    """
    n = len(cycle.edges)
    return cycle.model_copy(update={
        "edges": cycle.edges[::-1],
        "nodes": [cycle.nodes[(j + 1) % n] for j in reversed(range(n))],
    })


def is_closed_walk(graph, cycle):
    """Check that consecutive edges of a cycle meet end to start."""
    n = len(cycle.edges)
    if n == 0 or len(cycle.nodes) != n:
        return False
    for i in range(n):
        edge = graph.edge(cycle.edges[i])
        if not edge.contains_node(cycle.nodes[i]):
            return False
        if edge.other_node(cycle.nodes[i]) != cycle.nodes[(i + 1) % n]:
            return False
    return True
