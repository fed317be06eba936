"""
Curve/curve intersection for cubic edges.

Candidate crossings come from shapely on the flattened curves. Each one is
mapped back to Bezier parameters and polished with Newton steps on the two
cubics, so straight lines come out exact and curves to within float noise.
"""

import numpy as np
from shapely.geometry import LineString

from vectornet.curves.bezier import bezier_tangent, evaluate_bezier, sample_bezier

# Hits this close to t=0 or t=1 touch an endpoint and are not crossings
END_TOLERANCE = 1e-4


def _points_of(geometry):
    """Point parts of a shapely intersection; overlapping stretches are dropped."""
    if geometry.is_empty:
        return []
    if geometry.geom_type == "Point":
        return [geometry]
    if hasattr(geometry, "geoms"):
        points = []
        for part in geometry.geoms:
            points.extend(_points_of(part))
        return points
    return []


def _parameter_at(line, point, samples):
    """Map a point on a flattened curve back to its Bezier parameter."""
    coords = np.asarray(line.coords)
    seg_lengths = np.linalg.norm(np.diff(coords, axis=0), axis=1)
    cumulative = np.concatenate([[0.0], np.cumsum(seg_lengths)])

    distance = line.project(point)
    k = int(np.searchsorted(cumulative, distance, side="right")) - 1
    k = min(max(k, 0), len(seg_lengths) - 1)

    frac = 0.0
    if seg_lengths[k] > 0:
        frac = (distance - cumulative[k]) / seg_lengths[k]
    return min(max((k + frac) / samples, 0.0), 1.0)


def _gap(bez_a, bez_b, ta, tb):
    return np.subtract(evaluate_bezier(bez_a, ta), evaluate_bezier(bez_b, tb))


def _refine(bez_a, bez_b, ta, tb, iterations=8):
    """Newton iteration on B_a(ta) - B_b(tb) = 0; keeps the start if it gets worse."""
    start_error = np.linalg.norm(_gap(bez_a, bez_b, ta, tb))
    a, b = ta, tb

    for _ in range(iterations):
        delta = _gap(bez_a, bez_b, a, b)
        if np.linalg.norm(delta) < 1e-12:
            break
        jacobian = np.column_stack([
            bezier_tangent(bez_a, a),
            np.negative(bezier_tangent(bez_b, b)),
        ])
        try:
            step = np.linalg.solve(jacobian, -delta)
        except np.linalg.LinAlgError:
            break
        a = min(max(a + step[0], 0.0), 1.0)
        b = min(max(b + step[1], 0.0), 1.0)

    if np.linalg.norm(_gap(bez_a, bez_b, a, b)) <= start_error:
        return float(a), float(b)
    return ta, tb


def _near_end(t):
    return t < END_TOLERANCE or t > 1.0 - END_TOLERANCE


def curve_intersections(bez_a, bez_b, samples=64):
    """
    Interior crossings of two cubics.

    Returns (t_a, t_b, point) triples sorted by t_a. Hits at either curve's
    endpoints are skipped, as are collinear overlaps.
    """
    line_a = LineString(sample_bezier(bez_a, samples))
    line_b = LineString(sample_bezier(bez_b, samples))
    if line_a.length == 0 or line_b.length == 0:
        return []

    hits = []
    for point in _points_of(line_a.intersection(line_b)):
        ta = _parameter_at(line_a, point, samples)
        tb = _parameter_at(line_b, point, samples)
        ta, tb = _refine(bez_a, bez_b, ta, tb)
        if _near_end(ta) or _near_end(tb):
            continue
        hits.append((ta, tb, evaluate_bezier(bez_a, ta)))

    hits.sort(key=lambda hit: hit[0])
    return hits
