"""
Cubic Bezier math for the vector network.

Every edge kind is lifted to a cubic before any geometry is computed, so
these helpers only ever deal with CubicBezier.
"""

import numpy as np

from vectornet.models import CubicBezier


def _bernstein(i, t):
    """Compute Bernstein basis polynomial value B_i,3(t)."""
    if i == 0:
        return (1 - t) ** 3
    elif i == 1:
        return 3 * (1 - t) ** 2 * t
    elif i == 2:
        return 3 * (1 - t) * t ** 2
    else:
        return t ** 3


def _control_array(bezier):
    return np.array([bezier.p0, bezier.p1, bezier.p2, bezier.p3], dtype=float)


def _from_array(points):
    return CubicBezier(
        p0=points[0].tolist(),
        p1=points[1].tolist(),
        p2=points[2].tolist(),
        p3=points[3].tolist(),
    )


def line_to_bezier(p0, p1):
    """Create a degenerate Bezier for a straight line segment."""
    p0 = np.array(p0, dtype=float)
    p1 = np.array(p1, dtype=float)

    # Control points at 1/3 and 2/3 along the line
    c1 = p0 + (p1 - p0) / 3
    c2 = p0 + 2 * (p1 - p0) / 3

    return _from_array([p0, c1, c2, p1])


def quadratic_to_bezier(p0, ctrl, p1):
    """Degree-elevate a quadratic to the identical cubic."""
    p0 = np.array(p0, dtype=float)
    ctrl = np.array(ctrl, dtype=float)
    p1 = np.array(p1, dtype=float)

    c1 = p0 + 2 * (ctrl - p0) / 3
    c2 = p1 + 2 * (ctrl - p1) / 3

    return _from_array([p0, c1, c2, p1])


def evaluate_bezier(bezier, t):
    """Evaluate a cubic Bezier at parameter t."""
    p0, p1, p2, p3 = _control_array(bezier)

    b0 = _bernstein(0, t)
    b1 = _bernstein(1, t)
    b2 = _bernstein(2, t)
    b3 = _bernstein(3, t)

    return (b0 * p0 + b1 * p1 + b2 * p2 + b3 * p3).tolist()


def bezier_tangent(bezier, t):
    """First derivative of a cubic Bezier at parameter t."""
    p0, p1, p2, p3 = _control_array(bezier)

    d = (
        3 * (1 - t) ** 2 * (p1 - p0)
        + 6 * (1 - t) * t * (p2 - p1)
        + 3 * t ** 2 * (p3 - p2)
    )
    return d.tolist()


def split_bezier(bezier, t):
    """
    Split a cubic at parameter t with de Casteljau's algorithm.

    Returns (left, right); left ends and right starts at the split point.
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"split parameter must be in [0, 1], got {t}")

    p0, p1, p2, p3 = _control_array(bezier)

    p01 = p0 + (p1 - p0) * t
    p12 = p1 + (p2 - p1) * t
    p23 = p2 + (p3 - p2) * t
    p012 = p01 + (p12 - p01) * t
    p123 = p12 + (p23 - p12) * t
    mid = p012 + (p123 - p012) * t

    return _from_array([p0, p01, p012, mid]), _from_array([mid, p123, p23, p3])


def split_quadratic(p0, ctrl, p1, t):
    """
    Split a quadratic at t.

    Returns (left_ctrl, mid, right_ctrl) as lists.
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"split parameter must be in [0, 1], got {t}")

    p0 = np.array(p0, dtype=float)
    ctrl = np.array(ctrl, dtype=float)
    p1 = np.array(p1, dtype=float)

    left = p0 + (ctrl - p0) * t
    right = ctrl + (p1 - ctrl) * t
    mid = left + (right - left) * t

    return left.tolist(), mid.tolist(), right.tolist()


def sample_bezier(bezier, samples, include_end=True):
    """
    Sample points evenly in parameter space.

    Returns samples + 1 points when include_end is set, otherwise samples
    points (the end point is left for the next segment in a chain).
    """
    samples = max(1, int(samples))
    count = samples + 1 if include_end else samples
    ts = np.arange(count) / samples

    ctrl = _control_array(bezier)
    basis = np.stack([_bernstein(i, ts) for i in range(4)], axis=1)

    return (basis @ ctrl).tolist()


def bezier_length(bezier, samples=32):
    """Approximate arc length by summing chords over evenly spaced samples."""
    points = np.array(sample_bezier(bezier, samples))
    return float(np.linalg.norm(np.diff(points, axis=0), axis=1).sum())


def bezier_to_svg_path(beziers, close=False):
    """
    Convert a list of CubicBezier objects to SVG path d attribute.

    Assumes beziers are connected (end of one = start of next).
    """
    if not beziers:
        return ""

    parts = []

    p0 = beziers[0].p0
    parts.append(f"M {p0[0]:.2f} {p0[1]:.2f}")

    for bez in beziers:
        parts.append(f"C {bez.p1[0]:.2f} {bez.p1[1]:.2f} {bez.p2[0]:.2f} {bez.p2[1]:.2f} {bez.p3[0]:.2f} {bez.p3[1]:.2f}")

    if close:
        parts.append("Z")

    return " ".join(parts)


def compute_bezier_bbox(beziers):
    """Bounding box of the control hulls of a list of Bezier curves."""
    if not beziers:
        return [0.0, 0.0, 0.0, 0.0]

    points = np.concatenate([_control_array(bez) for bez in beziers])
    mins = points.min(axis=0)
    maxs = points.max(axis=0)

    return [float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])]
