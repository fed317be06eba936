"""
Minimum cycle basis of a vector network.

Each connected component contributes E - V + 1 elementary cycles. Candidates
come from Horton's construction: for every root node a shortest path tree
(fewest edges, then shortest geometric length) and, for every edge outside
that tree, the loop closed through the root. Candidates are sorted by
(edge count, length, edge indices) and accepted greedily while they stay
independent over GF(2), with edge sets packed into int bitmasks.
"""

import heapq

from vectornet.config import GraphConfig
from vectornet.curves.adapter import edge_length
from vectornet.errors import EmptyGraph, TraversalLimit
from vectornet.tracer import get_tracer, trace

# Digits kept when comparing geometric lengths, so float noise cannot
# reorder candidates of equal length
LENGTH_PRECISION = 9


class _StepBudget:
    """Counts search work for one component and trips TraversalLimit."""

    def __init__(self, limit, edges):
        self.limit = limit
        self.edges = edges
        self.steps = 0

    def step(self, count=1):
        self.steps += count
        if self.steps > self.limit:
            raise TraversalLimit(self.edges, self.steps)


def cycle_rank(graph):
    """Total number of independent cycles: sum of E - V + 1 over components."""
    total = 0
    for component in graph.connected_components():
        nodes = {n for idx in component for n in (graph.edge(idx).start, graph.edge(idx).end)}
        total += len(component) - len(nodes) + 1
    return total


@trace(label="minimum_cycle_basis")
def minimum_cycle_basis(graph, config=None):
    """
    Compute a minimum cycle basis.

    Returns a list of frozensets of edge indices. Components appear in order
    of their lowest edge index, cycles within one in acceptance order
    (shortest first).

    Raises:
        EmptyGraph: the graph has no edges.
        TraversalLimit: a component needed more than
            config.mcb.max_traversal_steps units of work.
    """
    tracer = get_tracer()
    config = config or GraphConfig()

    if graph.edge_count == 0:
        raise EmptyGraph()

    lengths = {
        idx: edge_length(graph, idx, config.curve.length_samples)
        for idx in graph.edge_indices()
    }

    basis = []
    for component in graph.connected_components():
        budget = _StepBudget(config.mcb.max_traversal_steps, component)
        cycles = _component_basis(graph, component, lengths, budget)
        tracer.event(
            f"Component e#{component[0]}: {len(cycles)} cycles",
            level="DEBUG",
            edges=len(component),
            steps=budget.steps,
        )
        basis.extend(cycles)

    tracer.event(f"Minimum cycle basis has {len(basis)} cycles")
    return basis


def _component_basis(graph, component, lengths, budget):
    edges = {idx: graph.edge(idx) for idx in component}
    adjacency = {}
    for idx in component:
        edge = edges[idx]
        adjacency.setdefault(edge.start, []).append(idx)
        if not edge.is_loop:
            adjacency.setdefault(edge.end, []).append(idx)

    rank = len(edges) - len(adjacency) + 1
    if rank == 0:
        return []

    candidates = _horton_candidates(edges, adjacency, lengths, budget)
    ranked = sorted(
        candidates,
        key=lambda c: (
            len(c),
            round(sum(lengths[idx] for idx in c), LENGTH_PRECISION),
            tuple(sorted(c)),
        ),
    )

    selected = _select_independent(ranked, component, rank, budget)
    if len(selected) < rank:
        raise RuntimeError(
            f"cycle candidates span rank {len(selected)} of {rank} for component e#{component[0]}"
        )
    return selected


def _shortest_path_tree(root, edges, adjacency, lengths, budget):
    """
    Dijkstra over (hops, length) from root.

    Returns {node: (edge index, parent node)}, with None for the root.
    Adjacent edges are relaxed in index order so ties resolve to the lowest
    edge index.
    """
    best = {root: (0, 0.0)}
    parent = {root: None}
    done = set()
    heap = [(0, 0.0, root)]

    while heap:
        hops, length, node = heapq.heappop(heap)
        if node in done:
            continue
        done.add(node)
        budget.step()

        for idx in sorted(adjacency[node]):
            budget.step()
            edge = edges[idx]
            if edge.is_loop:
                continue
            other = edge.other_node(node)
            weight = (hops + 1, length + lengths[idx])
            if other not in best or weight < best[other]:
                best[other] = weight
                parent[other] = (idx, node)
                heapq.heappush(heap, (weight[0], weight[1], other))

    return parent


def _path_to_root(node, parent):
    """Edge indices and node set along the tree path from node to the root."""
    path_edges = []
    path_nodes = {node}
    while parent[node] is not None:
        idx, node = parent[node]
        path_edges.append(idx)
        path_nodes.add(node)
    return path_edges, path_nodes


def _horton_candidates(edges, adjacency, lengths, budget):
    """Distinct simple cycles from every root's shortest path tree."""
    candidates = {}

    for root in sorted(adjacency):
        parent = _shortest_path_tree(root, edges, adjacency, lengths, budget)
        tree_edges = {link[0] for link in parent.values() if link is not None}

        for idx in sorted(edges):
            if idx in tree_edges:
                continue
            budget.step()
            edge = edges[idx]

            if edge.is_loop:
                candidates.setdefault(frozenset([idx]), None)
                continue

            start_edges, start_nodes = _path_to_root(edge.start, parent)
            end_edges, end_nodes = _path_to_root(edge.end, parent)
            budget.step(len(start_edges) + len(end_edges))

            # both paths must meet only at the root for the loop to be simple
            if start_nodes & end_nodes != {root}:
                continue

            cycle = frozenset(start_edges) | frozenset(end_edges) | {idx}
            candidates.setdefault(cycle, None)

    return list(candidates)


def _select_independent(ranked, component, rank, budget):
    """Greedy GF(2) elimination; keeps candidates that extend the span."""
    bit_of = {idx: i for i, idx in enumerate(component)}
    pivots = {}
    selected = []

    for cycle in ranked:
        budget.step()
        vector = 0
        for idx in cycle:
            vector |= 1 << bit_of[idx]

        while vector:
            top = vector.bit_length() - 1
            if top not in pivots:
                pivots[top] = vector
                selected.append(cycle)
                break
            vector ^= pivots[top]
            budget.step()

        if len(selected) == rank:
            break

    return selected
