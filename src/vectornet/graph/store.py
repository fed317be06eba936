"""
Arena-backed node/edge store for the vector network.

Nodes and edges live in dicts keyed by integer indices drawn from two
monotonically increasing counters. Removing an item drops its key and the
index is never handed out again. Every mutation keeps node adjacency in
sync with the edges, and validates its inputs before touching any state so a
failed call leaves the graph exactly as it was.
"""

import numbers

import networkx as nx
import numpy as np

from vectornet.curves.bezier import compute_bezier_bbox, split_bezier, split_quadratic
from vectornet.curves.adapter import edge_start_tangent, edge_to_bezier
from vectornet.curves.intersect import curve_intersections
from vectornet.errors import ClosedWalkDeadEnd, MissingEdge, MissingNode
from vectornet.models import Edge, EdgeKind, Node
from vectornet.tracer import get_tracer


def _cross(a, b):
    return a[0] * b[1] - a[1] * b[0]


def _boxes_overlap(a, b):
    return a[0] <= b[2] and b[0] <= a[2] and a[1] <= b[3] and b[1] <= a[3]


class Graph:
    """
    Planar vector network of anchor nodes joined by curve edges.

    Lookups return the stored models; treat them as read-only and mutate
    through the Graph methods.
    """

    def __init__(self):
        self._nodes = {}
        self._edges = {}
        self._next_node = 0
        self._next_edge = 0

    def __repr__(self):
        return f"Graph(nodes={len(self._nodes)}, edges={len(self._edges)})"

    # Lookups

    @property
    def node_count(self):
        return len(self._nodes)

    @property
    def edge_count(self):
        return len(self._edges)

    @property
    def next_node_index(self):
        return self._next_node

    @property
    def next_edge_index(self):
        return self._next_edge

    def has_node(self, idx):
        return idx in self._nodes

    def has_edge(self, idx):
        return idx in self._edges

    def node(self, idx):
        try:
            return self._nodes[idx]
        except KeyError:
            raise MissingNode(idx) from None

    def edge(self, idx):
        try:
            return self._edges[idx]
        except KeyError:
            raise MissingEdge(idx) from None

    def node_indices(self):
        return sorted(self._nodes)

    def edge_indices(self):
        return sorted(self._edges)

    def nodes(self):
        """(index, node) pairs in index order."""
        return [(idx, self._nodes[idx]) for idx in sorted(self._nodes)]

    def edges(self):
        """(index, edge) pairs in index order."""
        return [(idx, self._edges[idx]) for idx in sorted(self._edges)]

    def edge_positions(self, idx):
        edge = self.edge(idx)
        return self.node(edge.start).position, self.node(edge.end).position

    def degree(self, idx):
        """Number of edge ends at a node; a self-loop counts twice."""
        node = self.node(idx)
        return sum(2 if self._edges[e].is_loop else 1 for e in node.adjacents)

    # Primitive mutations

    def add_node(self, position):
        node = Node(position=[float(position[0]), float(position[1])])
        idx = self._next_node
        self._next_node += 1
        self._nodes[idx] = node
        return idx

    def add_edge(self, kind, start, end, controls=()):
        """
        Add an edge between two existing nodes.

        Raises MissingNode if either endpoint is absent; nothing is added.
        """
        self.node(start)
        self.node(end)
        edge = Edge(
            kind=EdgeKind(kind),
            start=start,
            end=end,
            controls=[[float(c[0]), float(c[1])] for c in controls],
        )
        return self._insert_edge(edge)

    def _insert_edge(self, edge):
        idx = self._next_edge
        self._next_edge += 1
        self._edges[idx] = edge
        self._nodes[edge.start].adjacents.append(idx)
        if not edge.is_loop:
            self._nodes[edge.end].adjacents.append(idx)
        return idx

    def remove_edge(self, idx):
        """Remove an edge and unlink it from its endpoints. Returns the edge."""
        edge = self.edge(idx)
        del self._edges[idx]
        self._nodes[edge.start].adjacents.remove(idx)
        if not edge.is_loop:
            self._nodes[edge.end].adjacents.remove(idx)
        return edge

    def remove_node(self, idx):
        """Remove a node and every edge incident to it."""
        node = self.node(idx)
        for edge_idx in list(node.adjacents):
            self.remove_edge(edge_idx)
        del self._nodes[idx]
        return node

    def move_node(self, idx, position):
        node = self.node(idx)
        node.position = [float(position[0]), float(position[1])]

    def move_edge(self, idx, offset):
        """Translate an edge's endpoints and control points by offset."""
        edge = self.edge(idx)
        dx, dy = offset
        for node_idx in {edge.start, edge.end}:
            pos = self._nodes[node_idx].position
            self._nodes[node_idx].position = [pos[0] + dx, pos[1] + dy]
        self._edges[idx] = edge.translated(offset)

    def translate(self, offset):
        """Translate the whole graph."""
        dx, dy = offset
        for node in self._nodes.values():
            node.position = [node.position[0] + dx, node.position[1] + dy]
        for idx, edge in self._edges.items():
            self._edges[idx] = edge.translated(offset)

    # Builders

    def _build(self, kind, start, end, controls):
        """
        Shared builder: start/end are node indices (any integral type, numpy
        included) or fresh positions.

        Node indices are checked before any node is created.
        """
        start_is_node = isinstance(start, numbers.Integral)
        end_is_node = isinstance(end, numbers.Integral)
        if start_is_node:
            self.node(int(start))
        if end_is_node:
            self.node(int(end))

        start_idx = int(start) if start_is_node else self.add_node(start)
        end_idx = int(end) if end_is_node else self.add_node(end)
        edge_idx = self.add_edge(kind, start_idx, end_idx, controls)
        return edge_idx, self._edges[edge_idx]

    def line(self, start_pos, end_pos):
        """Line between two new nodes. Returns (edge index, edge)."""
        return self._build(EdgeKind.LINE, list(start_pos), list(end_pos), ())

    def line_from(self, start_node, end_pos):
        """Line from an existing node to a new one."""
        return self._build(EdgeKind.LINE, start_node, list(end_pos), ())

    def line_to(self, start_pos, end_node):
        """Line from a new node to an existing one."""
        return self._build(EdgeKind.LINE, list(start_pos), end_node, ())

    def line_from_to(self, start_node, end_node):
        return self._build(EdgeKind.LINE, start_node, end_node, ())

    def quadratic(self, start_pos, ctrl, end_pos):
        return self._build(EdgeKind.QUADRATIC, list(start_pos), list(end_pos), (ctrl,))

    def quadratic_from(self, start_node, ctrl, end_pos):
        return self._build(EdgeKind.QUADRATIC, start_node, list(end_pos), (ctrl,))

    def quadratic_to(self, start_pos, ctrl, end_node):
        return self._build(EdgeKind.QUADRATIC, list(start_pos), end_node, (ctrl,))

    def quadratic_from_to(self, start_node, ctrl, end_node):
        return self._build(EdgeKind.QUADRATIC, start_node, end_node, (ctrl,))

    def cubic(self, start_pos, ctrl1, ctrl2, end_pos):
        return self._build(EdgeKind.CUBIC, list(start_pos), list(end_pos), (ctrl1, ctrl2))

    def cubic_from(self, start_node, ctrl1, ctrl2, end_pos):
        return self._build(EdgeKind.CUBIC, start_node, list(end_pos), (ctrl1, ctrl2))

    def cubic_to(self, start_pos, ctrl1, ctrl2, end_node):
        return self._build(EdgeKind.CUBIC, list(start_pos), end_node, (ctrl1, ctrl2))

    def cubic_from_to(self, start_node, ctrl1, ctrl2, end_node):
        return self._build(EdgeKind.CUBIC, start_node, end_node, (ctrl1, ctrl2))

    def polyline(self, points, closed=False):
        """
        Chain of lines through points, optionally closed back to the first.

        Returns the list of new edge indices.
        """
        if len(points) < 2:
            raise ValueError(f"polyline needs at least 2 points, got {len(points)}")

        first_edge, edge = self.line(points[0], points[1])
        edge_indices = [first_edge]
        first_node = edge.start
        last_node = edge.end

        for point in points[2:]:
            edge_idx, edge = self.line_from(last_node, point)
            edge_indices.append(edge_idx)
            last_node = edge.end

        if closed:
            edge_idx, _ = self.line_from_to(last_node, first_node)
            edge_indices.append(edge_idx)

        return edge_indices

    # Structure

    def copy(self):
        """Independent deep copy with the same indices and counters."""
        other = Graph()
        other._nodes = {idx: node.model_copy(deep=True) for idx, node in self._nodes.items()}
        other._edges = {idx: edge.model_copy(deep=True) for idx, edge in self._edges.items()}
        other._next_node = self._next_node
        other._next_edge = self._next_edge
        return other

    def to_networkx(self):
        """MultiGraph view keyed by edge index, for topology queries."""
        G = nx.MultiGraph()
        for idx, node in self._nodes.items():
            G.add_node(idx, position=tuple(node.position))
        for idx, edge in self._edges.items():
            G.add_edge(edge.start, edge.end, key=idx, kind=edge.kind.value)
        return G

    def connected_components(self):
        """
        Edge sets of every connected component that has edges.

        Each list is sorted; components are ordered by their lowest edge index.
        """
        G = self.to_networkx()
        components = []
        for nodes in nx.connected_components(G):
            edge_indices = sorted(
                key for _, _, key in G.subgraph(nodes).edges(keys=True)
            )
            if edge_indices:
                components.append(edge_indices)
        components.sort(key=lambda c: c[0])
        return components

    def subgraph(self, edge_indices):
        """
        Detached graph holding only the given edges and their endpoints.

        Indices are preserved and counters are carried over, so items added
        to the subgraph never collide with indices of this graph.
        """
        edges = {idx: self.edge(idx) for idx in edge_indices}

        other = Graph()
        other._next_node = self._next_node
        other._next_edge = self._next_edge
        for idx in sorted({n for e in edges.values() for n in (e.start, e.end)}):
            other._nodes[idx] = Node(position=list(self.node(idx).position))
        for idx in sorted(edges):
            edge = edges[idx]
            other._edges[idx] = edge
            other._nodes[edge.start].adjacents.append(idx)
            if not edge.is_loop:
                other._nodes[edge.end].adjacents.append(idx)
        return other

    def remove_filaments(self):
        """
        Prune dead-end paths.

        Repeatedly removes degree-1 nodes with their edge, plus any node left
        with no edges by that pruning. Returns the number of nodes removed.
        """
        tracer = get_tracer()

        pending = [idx for idx in sorted(self._nodes) if self.degree(idx) == 1]
        removed = 0

        while pending:
            idx = pending.pop(0)
            if idx not in self._nodes or self.degree(idx) != 1:
                continue
            edge = self._edges[self._nodes[idx].adjacents[0]]
            neighbour = edge.other_node(idx)
            self.remove_node(idx)
            removed += 1

            neighbour_degree = self.degree(neighbour)
            if neighbour_degree == 1:
                pending.append(neighbour)
            elif neighbour_degree == 0:
                self.remove_node(neighbour)
                removed += 1

        if removed:
            tracer.event(f"Removed {removed} filament nodes")
        return removed

    def subdivide_edge(self, idx, t=0.5):
        """
        Split an edge at parameter t with a new node on the curve.

        Both halves keep the original edge kind. Returns
        (new node index, (first half index, second half index)).
        """
        if not 0.0 < t < 1.0:
            raise ValueError(f"subdivision parameter must be in (0, 1), got {t}")

        edge = self.edge(idx)
        start_pos, end_pos = self.edge_positions(idx)

        if edge.kind == EdgeKind.LINE:
            mid = [start_pos[i] + (end_pos[i] - start_pos[i]) * t for i in range(2)]
            first_controls, second_controls = (), ()
        elif edge.kind == EdgeKind.QUADRATIC:
            left_ctrl, mid, right_ctrl = split_quadratic(start_pos, edge.controls[0], end_pos, t)
            first_controls, second_controls = (left_ctrl,), (right_ctrl,)
        else:
            left, right = split_bezier(edge_to_bezier(edge, start_pos, end_pos), t)
            mid = left.p3
            first_controls, second_controls = (left.p1, left.p2), (right.p1, right.p2)

        self.remove_edge(idx)
        mid_idx = self.add_node(mid)
        first = self.add_edge(edge.kind, edge.start, mid_idx, first_controls)
        second = self.add_edge(edge.kind, mid_idx, edge.end, second_controls)

        get_tracer().event(f"Subdivided e#{idx} at t={t:.3f}", level="DEBUG")
        return mid_idx, (first, second)

    def merge_nodes(self, keep, drop):
        """
        Re-point every edge of `drop` at `keep`, then remove `drop`.

        An edge that joined the two nodes becomes a self-loop on `keep`.
        Edge indices are unchanged. Returns `keep`.
        """
        self.node(keep)
        dropped = self.node(drop)
        if keep == drop:
            return keep

        kept_adjacents = self._nodes[keep].adjacents
        for edge_idx in dropped.adjacents:
            edge = self._edges[edge_idx]
            self._edges[edge_idx] = edge.model_copy(update={
                "start": keep if edge.start == drop else edge.start,
                "end": keep if edge.end == drop else edge.end,
            })
            if edge_idx not in kept_adjacents:
                kept_adjacents.append(edge_idx)
        del self._nodes[drop]
        return keep

    def expand_intersections(self, samples=64, tolerance=1e-6):
        """
        Split crossing edges and join them at one shared node per crossing.

        Every pair of edges is tested once. Each crossing edge is subdivided
        at its hit parameters, then the new nodes that sit on the same
        crossing are merged and placed at their mean position. Touches at an
        existing endpoint are left alone.

        Returns the sorted indices of the shared crossing nodes.
        """
        tracer = get_tracer()

        beziers = {}
        boxes = {}
        for idx, edge in self._edges.items():
            beziers[idx] = edge_to_bezier(edge, *self.edge_positions(idx))
            boxes[idx] = compute_bezier_bbox([beziers[idx]])

        points = []
        cuts = {}
        order = sorted(beziers)
        for pos, a in enumerate(order):
            for b in order[pos + 1:]:
                if not _boxes_overlap(boxes[a], boxes[b]):
                    continue
                for ta, tb, point in curve_intersections(beziers[a], beziers[b], samples):
                    hit = len(points)
                    points.append(point)
                    cuts.setdefault(a, []).append((ta, hit))
                    cuts.setdefault(b, []).append((tb, hit))

        if not points:
            return []

        # Several hits at one point on the same edge share a single cut
        hit_nodes = [[] for _ in points]
        for edge_idx in sorted(cuts):
            current = edge_idx
            done = 0.0
            last_node = None
            last_t = None
            last_point = None
            for t, hit in sorted(cuts[edge_idx]):
                if last_node is not None and (
                    t - last_t < 1e-9
                    or np.hypot(*np.subtract(points[hit], last_point)) <= tolerance
                ):
                    hit_nodes[hit].append(last_node)
                    continue
                last_node, (_, current) = self.subdivide_edge(current, (t - done) / (1.0 - done))
                done = t
                last_t = t
                last_point = points[hit]
                hit_nodes[hit].append(last_node)

        groups = nx.Graph()
        for nodes in hit_nodes:
            groups.add_nodes_from(nodes)
            nx.add_path(groups, nodes)

        shared = []
        for component in nx.connected_components(groups):
            members = sorted(component)
            centre = np.mean([self._nodes[n].position for n in members], axis=0)
            keep = members[0]
            for drop in members[1:]:
                self.merge_nodes(keep, drop)
            self.move_node(keep, centre.tolist())
            shared.append(keep)

        tracer.event(f"Expanded {len(points)} crossings into {len(shared)} shared nodes")
        return sorted(shared)

    # Traversal helpers

    def left_most_node(self):
        """Node with the smallest x, ties broken by smaller y; None when empty."""
        if not self._nodes:
            return None
        return min(
            self._nodes,
            key=lambda idx: (self._nodes[idx].position[0], self._nodes[idx].position[1], idx),
        )

    def _turn_edge(self, node_idx, direction, prev_edge, clockwise):
        node = self.node(node_idx)
        candidates = [e for e in node.adjacents if e != prev_edge]
        if not candidates:
            raise ClosedWalkDeadEnd(node_idx, [])
        if len(candidates) == 1:
            return candidates[0]

        def turns(a, b):
            # b lies on the wanted side of a
            cross = _cross(a, b)
            return cross < 0 if clockwise else cross > 0

        def reflex(a, b):
            cross = _cross(a, b)
            return cross > 0 if clockwise else cross < 0

        best_idx = candidates[0]
        best_dir = edge_start_tangent(self, best_idx, from_node=node_idx)
        for edge_idx in candidates[1:]:
            tangent = edge_start_tangent(self, edge_idx, from_node=node_idx)
            off_current = turns(direction, tangent)
            off_best = turns(best_dir, tangent)
            if reflex(direction, best_dir):
                better = off_current or off_best
            else:
                better = off_current and off_best
            if better:
                best_idx, best_dir = edge_idx, tangent
        return best_idx

    def cw_edge_of_node(self, node_idx, direction, prev_edge=None):
        """
        Most clockwise edge leaving `node_idx` for a walk heading `direction`.

        `prev_edge` (the edge just arrived on) is excluded. Edges are compared
        by the sign of the cross product of their start tangents. Raises
        ClosedWalkDeadEnd when nothing else leaves the node.
        """
        return self._turn_edge(node_idx, direction, prev_edge, clockwise=True)

    def ccw_edge_of_node(self, node_idx, direction, prev_edge=None):
        """Most counter-clockwise counterpart of cw_edge_of_node."""
        return self._turn_edge(node_idx, direction, prev_edge, clockwise=False)
