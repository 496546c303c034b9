"""
InteractionController - turns pointer events and toolbar commands into
session operations.
"""

import logging
import time
from enum import Enum

from .errors import MeasurementError
from .geometry import to_real_units
from .models import Point
from .view_transform import ViewTransform

logger = logging.getLogger(__name__)


class Mode(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    CALIBRATING = "calibrating"


class Tool(Enum):
    MEASURE = "measure"
    ERASE = "erase"
    PENCIL = "pencil"


class InteractionController:
    """
    State machine between the UI and a MeasurementSession.

    Pointer coordinates arrive in canvas space and are mapped to image pixels
    through the view transform, so zooming never changes measured values.
    Errors from the session are caught here: the session keeps its previous
    state and the error text becomes the status message.
    """

    def __init__(self, session, view=None, clock=time.monotonic):
        self.session = session
        self.config = session.config
        self.view = view or ViewTransform(self.config.zoom_step,
                                          self.config.min_zoom,
                                          self.config.max_zoom)
        self.clock = clock
        self.tool = Tool.MEASURE
        self.message = ""
        self._last_click = None
        self._stroke = None

    @property
    def mode(self):
        if self.session.calibrator.is_active():
            return Mode.CALIBRATING
        if len(self.session.chain) > 0:
            return Mode.DRAWING
        return Mode.IDLE

    @property
    def uncalibrated(self):
        return not self.session.scale.calibrated

    def _image_point(self, x, y):
        return Point.of(*self.view.canvas_to_image_coords(x, y))

    def _report(self, error):
        self.message = str(error)
        logger.warning("%s: %s", type(error).__name__, error)

    def _run(self, operation, *args, **kwargs):
        try:
            return operation(*args, **kwargs)
        except MeasurementError as e:
            self._report(e)
            return None

    # ------------------------------------------------------------------
    # Pointer events

    def click(self, x, y, timestamp=None):
        """
        Handle a click at canvas position (x, y).

        Returns:
            The Measurement finished by a double-click, the Scale produced by
            a completed calibration, the entity removed by the eraser, or None
        """
        now = self.clock() if timestamp is None else timestamp
        point = self._image_point(x, y)

        if self.mode is Mode.CALIBRATING:
            self._last_click = None
            try:
                scale = self.session.add_calibration_point(point)
            except MeasurementError as e:
                self._report(e)
                return None
            if scale is None:
                self.message = self.session.calibrator.status_message()
            else:
                self.message = f"Scale set: {scale.pixels_per_unit:.2f} pixels per {scale.unit}"
            return scale

        if self.tool is Tool.ERASE:
            return self.erase_at(x, y)
        if self.tool is Tool.PENCIL:
            return None

        last, self._last_click = self._last_click, now
        is_double = last is not None and (now - last) * 1000.0 < self.config.double_click_ms
        if self.mode is Mode.DRAWING and is_double and len(self.session.chain) >= 2:
            self._last_click = None
            return self.finish()

        self.session.add_point(point)
        self.message = f"Point {len(self.session.chain)} added"
        return None

    def move(self, x, y):
        """Pointer moved: update the live preview segment"""
        if self.mode is Mode.DRAWING:
            self.session.update_preview(self._image_point(x, y))

    def press(self, x, y):
        if self.tool is Tool.PENCIL:
            self._stroke = [self._image_point(x, y)]

    def drag(self, x, y):
        if self.tool is Tool.PENCIL and self._stroke is not None:
            self._stroke.append(self._image_point(x, y))

    def release(self, x=None, y=None):
        """Finish a pencil stroke. Returns the Stroke or None."""
        stroke, self._stroke = self._stroke, None
        if self.tool is not Tool.PENCIL or stroke is None:
            return None
        if x is not None and y is not None:
            stroke.append(self._image_point(x, y))
        if len(stroke) < 2:
            return None
        return self._run(self.session.add_stroke, stroke)

    # ------------------------------------------------------------------
    # Commands

    def set_tool(self, tool):
        self.tool = Tool(tool)
        self._stroke = None
        self._last_click = None

    def finish(self, label=None, area=None):
        try:
            measurement = self.session.finish_chain(label=label, area=area)
        except MeasurementError as e:
            self._report(e)
            return None
        if measurement is None:
            self.message = "Measurement too small, discarded"
        else:
            self.message = f"{measurement.label}: {measurement.value:.2f} {measurement.unit}"
        return measurement

    def cancel(self):
        if self.mode is Mode.CALIBRATING:
            self.cancel_calibration()
        else:
            self.session.cancel_chain()
            self.message = "Measurement cancelled"

    def undo(self):
        if not self.session.undo_point():
            self.message = "Nothing to undo"
            return False
        return True

    def redo(self):
        if not self.session.redo_point():
            self.message = "Nothing to redo"
            return False
        return True

    def erase_at(self, x, y):
        """Erase the nearest measurement or stroke around canvas point (x, y)"""
        point = self._image_point(x, y)
        removed = self.session.erase_at(point.x, point.y)
        if removed is None:
            self.message = "Nothing to erase here"
        else:
            self.message = f"Erased {getattr(removed, 'label', 'stroke')}"
        return removed

    def delete(self, measurement_id):
        return self._run(self.session.delete_measurement, measurement_id)

    def clear_all(self):
        self.session.clear_all()
        self._last_click = None
        self._stroke = None
        self.message = "All measurements cleared"

    def begin_calibration(self, known_length):
        """
        Start calibrating. Returns True if calibration mode was entered; on
        invalid input the scale and mode are unchanged.
        """
        try:
            self.session.begin_calibration(known_length)
        except MeasurementError as e:
            self._report(e)
            return False
        self._last_click = None
        self.message = self.session.calibrator.status_message()
        return True

    def cancel_calibration(self):
        self.session.cancel_calibration()
        self.message = "Calibration cancelled"

    def set_zoom(self, zoom_level, center_x=0.0, center_y=0.0):
        return self.view.set_zoom(zoom_level, center_x, center_y)

    def zoom_in(self, center_x=0.0, center_y=0.0):
        return self.view.zoom_in(center_x, center_y)

    def zoom_out(self, center_x=0.0, center_y=0.0):
        return self.view.zoom_out(center_x, center_y)

    # ------------------------------------------------------------------
    # Status

    def status_message(self):
        """Status bar text for the current state"""
        session = self.session
        if self.mode is Mode.CALIBRATING:
            return session.calibrator.status_message()
        if self.mode is Mode.DRAWING:
            chain = session.chain
            length = to_real_units(chain.pixel_length() + chain.preview_length(), session.scale)
            return (f"Drawing: {len(chain)} points, {length:.2f} {session.scale.display_unit}"
                    " - double-click to finish")
        return session.calibrator.status_message(session.scale)
