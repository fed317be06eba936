"""
Curve adapter: the single place where edge kinds become geometry.

Everything downstream (length weights, polygon flattening, SVG output)
works on the CubicBezier returned here.
"""

from vectornet.curves.bezier import (
    bezier_length,
    bezier_tangent,
    bezier_to_svg_path,
    evaluate_bezier,
    line_to_bezier,
    quadratic_to_bezier,
    sample_bezier,
)
from vectornet.models import CubicBezier, EdgeKind


def edge_to_bezier(edge, start_pos, end_pos):
    """
    Lift an edge to a cubic given its endpoint positions.

    Lines get control points at 1/3 and 2/3, quadratics are degree-elevated
    and cubics pass through unchanged.
    """
    if edge.kind == EdgeKind.LINE:
        return line_to_bezier(start_pos, end_pos)
    if edge.kind == EdgeKind.QUADRATIC:
        return quadratic_to_bezier(start_pos, edge.controls[0], end_pos)
    return CubicBezier(
        p0=list(start_pos),
        p1=list(edge.controls[0]),
        p2=list(edge.controls[1]),
        p3=list(end_pos),
    )


def graph_edge_bezier(graph, edge_idx, from_node=None):
    """
    Cubic for a stored edge, optionally oriented to leave `from_node`.

    Raises MissingEdge / MissingNode through the graph lookups.
    """
    edge = graph.edge(edge_idx)
    if from_node is not None:
        edge = edge.directed_from(from_node)
    return edge_to_bezier(edge, graph.node(edge.start).position, graph.node(edge.end).position)


def edge_length(graph, edge_idx, samples=32):
    """Approximate geometric length of a stored edge."""
    return bezier_length(graph_edge_bezier(graph, edge_idx), samples)


def directed_beziers(graph, cycle):
    """Cubics of a cycle's edges, each oriented along the walk."""
    return [
        graph_edge_bezier(graph, edge_idx, from_node=node)
        for edge_idx, node in zip(cycle.edges, cycle.nodes)
    ]


def cycle_polyline(graph, cycle, samples_per_edge=16):
    """Flatten a cycle to an open ring of points (first point not repeated)."""
    points = []
    for bez in directed_beziers(graph, cycle):
        points.extend(sample_bezier(bez, samples_per_edge, include_end=False))
    return points


def cycle_to_svg_path(graph, cycle):
    """SVG path data for a closed cycle."""
    return bezier_to_svg_path(directed_beziers(graph, cycle), close=True)


def edge_point_at(graph, edge_idx, t, from_node=None):
    """Point at parameter t along a stored edge (t=0 is its start)."""
    return evaluate_bezier(graph_edge_bezier(graph, edge_idx, from_node), t)


def _nonzero_direction(candidates):
    for vec in candidates:
        if vec[0] != 0.0 or vec[1] != 0.0:
            return vec
    return [0.0, 0.0]


def edge_start_tangent(graph, edge_idx, from_node=None):
    """
    Direction the edge leaves its start node.

    Falls back to the next control point (and then the chord) when a control
    point coincides with the start, so a cusp still has a direction.
    """
    bez = graph_edge_bezier(graph, edge_idx, from_node)
    return _nonzero_direction([
        bezier_tangent(bez, 0.0),
        [bez.p2[0] - bez.p0[0], bez.p2[1] - bez.p0[1]],
        [bez.p3[0] - bez.p0[0], bez.p3[1] - bez.p0[1]],
    ])


def edge_end_tangent(graph, edge_idx, from_node=None):
    """Direction the edge arrives at its end node."""
    bez = graph_edge_bezier(graph, edge_idx, from_node)
    return _nonzero_direction([
        bezier_tangent(bez, 1.0),
        [bez.p3[0] - bez.p1[0], bez.p3[1] - bez.p1[1]],
        [bez.p3[0] - bez.p0[0], bez.p3[1] - bez.p0[1]],
    ])
