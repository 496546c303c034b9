"""
Geometry engine - pure functions over point sequences in pixel space.

Nothing here mutates its inputs or knows about sessions. Real-unit conversion
takes the Scale explicitly; when it is uncalibrated the pixel value is returned
unchanged and callers check scale.calibrated to warn the user.
"""

import numpy as np

from .errors import Uncalibrated
from .models import Point


def _as_array(points):
    if len(points) == 0:
        return np.zeros((0, 2), dtype=float)
    return np.asarray([(p[0], p[1]) for p in points], dtype=float)


def distance(p1, p2):
    """Euclidean distance between two points in pixels"""
    return float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))


def segment_lengths(points):
    """
    Length of each consecutive segment of an open chain.

    Returns:
        list of floats, one fewer than the number of points (empty for n < 2)
    """
    pts = _as_array(points)
    if len(pts) < 2:
        return []
    deltas = np.diff(pts, axis=0)
    return [float(d) for d in np.hypot(deltas[:, 0], deltas[:, 1])]


def polyline_length(points):
    """Total length of an open chain in pixels; 0 for fewer than 2 points"""
    return float(sum(segment_lengths(points)))


def polygon_perimeter(points):
    """Length of the closed loop through the points (last joins first)"""
    if len(points) < 3:
        return polyline_length(points)
    return polyline_length(list(points) + [points[0]])


def polygon_area(points):
    """
    Area of the polygon through the points using the shoelace formula.

    The loop is closed implicitly, so callers should not repeat the first
    point. Orientation does not matter since the absolute value is taken.

    Returns:
        float: area in square pixels, 0 for fewer than 3 points
    """
    pts = _as_array(points)
    if len(pts) < 3:
        return 0.0
    x = pts[:, 0]
    y = pts[:, 1]
    cross = x * np.roll(y, -1) - np.roll(x, -1) * y
    return float(0.5 * abs(cross.sum()))


def to_real_units(value, scale, dimensions=1):
    """
    Convert a pixel quantity to real units.

    Args:
        value: Pixel length (dimensions=1) or pixel area (dimensions=2)
        scale: Active Scale
        dimensions: Power of the unit carried by value

    Returns:
        float: value / pixels_per_unit**dimensions when calibrated, otherwise
        value unchanged
    """
    if not scale.calibrated:
        return float(value)
    return float(value) / (scale.pixels_per_unit ** dimensions)


def nearest_point_distance(points, x, y):
    """Distance from (x, y) to the closest vertex in points, or None if empty"""
    pts = _as_array(points)
    if len(pts) == 0:
        return None
    d = np.hypot(pts[:, 0] - x, pts[:, 1] - y)
    return float(d.min())


def centroid(points):
    """Mean of the vertices, used to place labels"""
    pts = _as_array(points)
    if len(pts) == 0:
        return None
    cx, cy = pts.mean(axis=0)
    return Point(float(cx), float(cy))


def require_calibrated(scale):
    """
    Raise Uncalibrated unless scale converts pixels to real units.

    For callers (pricing, exports) that must not treat pixel counts as feet.
    """
    if not scale.calibrated:
        raise Uncalibrated("Scale is not calibrated; values are in pixels")
