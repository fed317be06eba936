"""
Region building: nest cycles into outer boundaries and holes.

Cycles are flattened through the curve adapter into shapely polygons. A
cycle's parent is the smallest-area cycle that encloses it; cycles without a
parent become the roots of regions. Fill alternates with nesting depth and,
when orientation is on, filled cycles wind counter-clockwise (positive
signed area) and holes clockwise so a non-zero fill leaves holes empty.
"""

import numpy as np
from shapely.geometry import LineString, Point, Polygon

from vectornet.config import GraphConfig
from vectornet.curves.adapter import cycle_polyline
from vectornet.cycles.closed_walk import reverse_cycle
from vectornet.models import Region, WindingRule
from vectornet.tracer import get_tracer, trace


def signed_area(points):
    """Shoelace area of a ring; positive when counter-clockwise (y up)."""
    if len(points) < 3:
        return 0.0
    pts = np.asarray(points, dtype=float)
    x = pts[:, 0]
    y = pts[:, 1]
    return float(0.5 * (np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)))


class _Outline:
    """Flattened geometry of one cycle used for containment tests."""

    def __init__(self, points, area_epsilon):
        self.points = points
        self.signed_area = signed_area(points)
        self.degenerate = abs(self.signed_area) <= area_epsilon

        if self.degenerate:
            self.geometry = LineString(points + points[:1]) if len(points) > 1 else Point(points[0])
            self.area = 0.0
            self.rep_point = Point(points[0])
            return

        polygon = Polygon(points)
        if not polygon.is_valid:
            polygon = polygon.buffer(0)
        self.geometry = polygon
        self.area = polygon.area
        self.rep_point = polygon.representative_point()


def _encloses(outer, inner, area_epsilon):
    """
    Whether `outer` strictly encloses `inner` by area.

    Returns True, False, or None when the two coincide (equal area and
    covering each other), which callers resolve by order.
    """
    if outer.degenerate:
        return False
    if not outer.geometry.covers(inner.geometry):
        return False
    if outer.area - inner.area > area_epsilon:
        return inner.degenerate or outer.geometry.contains(inner.rep_point)
    if abs(outer.area - inner.area) <= area_epsilon and inner.geometry.covers(outer.geometry):
        return None
    return False


def find_parents(outlines, area_epsilon=1e-9):
    """
    Parent index for every outline, or None for roots.

    Coincident outlines nest in insertion order: the earlier one becomes the
    parent of the later one. Both cases of ambiguity are reported through
    the tracer.
    """
    tracer = get_tracer()
    parents = [None] * len(outlines)

    for i, inner in enumerate(outlines):
        if inner.degenerate:
            tracer.event("Ambiguous containment: zero-area cycle", level="WARN", cycle=i)

        best = None
        for j, outer in enumerate(outlines):
            if i == j:
                continue
            enclosed = _encloses(outer, inner, area_epsilon)
            if enclosed is None:
                tracer.event(
                    "Ambiguous containment: coincident cycles",
                    level="WARN",
                    cycle=i,
                    other=j,
                )
                enclosed = j < i
            if not enclosed:
                continue
            if best is None or outlines[j].area < outlines[best].area - area_epsilon:
                best = j

        parents[i] = best

    return parents


@trace(label="build_regions", arg_names=["cycles"])
def build_regions(graph, cycles, config=None):
    """
    Nest cycles into regions.

    Returns one Region per root cycle, in the order the roots were given,
    each carrying the configured winding rule. Children of the input cycles
    are ignored and rebuilt from geometry.
    """
    tracer = get_tracer()
    config = config or GraphConfig()
    region_config = config.region
    winding_rule = WindingRule(region_config.winding_rule)

    outlines = [
        _Outline(cycle_polyline(graph, c, region_config.samples_per_edge), region_config.area_epsilon)
        for c in cycles
    ]
    parents = find_parents(outlines, region_config.area_epsilon)

    children = {i: [] for i in range(len(cycles))}
    for i, parent in enumerate(parents):
        if parent is not None:
            children[parent].append(i)

    def build(i, depth):
        filled = depth % 2 == 0
        cycle = cycles[i]
        if region_config.orient_cycles and not outlines[i].degenerate:
            if (outlines[i].signed_area > 0) != filled:
                cycle = reverse_cycle(cycle)
        return cycle.model_copy(update={
            "filled": filled,
            "children": [build(c, depth + 1) for c in children[i]],
        })

    regions = [
        Region(winding_rule=winding_rule, cycles=[build(i, 0)])
        for i, parent in enumerate(parents)
        if parent is None
    ]

    holes = sum(region.hole_count for region in regions)
    tracer.event(f"Built {len(regions)} regions with {holes} holes from {len(cycles)} cycles")

    return regions
