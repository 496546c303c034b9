"""
PointChain - the in-progress sequence of points with linear undo/redo.
"""

import logging

from .errors import InsufficientPoints
from .geometry import distance, polyline_length
from .models import Point

logger = logging.getLogger(__name__)


class PointChain:
    """
    Ordered points placed by the user but not yet committed as a measurement.

    Every committing change (add, move) pushes the previous state onto the
    undo stack and clears the redo stack. The preview point follows the
    pointer between clicks and is never part of the committed points.
    """

    def __init__(self):
        self._points = ()
        self._undo = []
        self._redo = []
        self.preview = None

    def __len__(self):
        return len(self._points)

    def __bool__(self):
        return bool(self._points)

    @property
    def points(self):
        """Committed points as an immutable tuple"""
        return self._points

    def _commit(self, points):
        self._undo.append(self._points)
        self._redo.clear()
        self._points = tuple(points)

    def add_point(self, point):
        self._commit(self._points + (Point.of(point[0], point[1]),))
        logger.debug("Chain point %d at (%.1f, %.1f)", len(self._points), point[0], point[1])

    def update_last_point(self, point):
        """Move the live preview of the next point; commits nothing"""
        self.preview = Point.of(point[0], point[1])

    def move_point(self, index, point):
        """
        Move a committed point (vertex drag).

        Returns:
            bool: True if the index was valid
        """
        if not 0 <= index < len(self._points):
            return False
        points = list(self._points)
        points[index] = Point.of(point[0], point[1])
        self._commit(points)
        return True

    def can_undo(self):
        return bool(self._undo)

    def can_redo(self):
        return bool(self._redo)

    def undo(self):
        """Step back one committed state. Returns False if nothing to undo."""
        if not self._undo:
            return False
        self._redo.append(self._points)
        self._points = self._undo.pop()
        return True

    def redo(self):
        """Re-apply the last undone state. Returns False if nothing to redo."""
        if not self._redo:
            return False
        self._undo.append(self._points)
        self._points = self._redo.pop()
        return True

    def preview_length(self):
        """Pixel length of the segment from the last point to the preview"""
        if not self._points or self.preview is None:
            return 0.0
        return distance(self._points[-1], self.preview)

    def pixel_length(self):
        return polyline_length(self._points)

    def finish(self):
        """
        Take the committed points and reset the chain.

        Returns:
            tuple of Point

        Raises:
            InsufficientPoints: If fewer than two points are committed; the
                chain is left untouched
        """
        if len(self._points) < 2:
            raise InsufficientPoints(
                f"Need at least 2 points to finish a measurement, have {len(self._points)}")
        points = self._points
        self.reset()
        return points

    def cancel(self):
        """Discard the chain without producing a measurement"""
        if self._points:
            logger.debug("Chain of %d points cancelled", len(self._points))
        self.reset()

    def reset(self):
        self._points = ()
        self._undo.clear()
        self._redo.clear()
        self.preview = None
