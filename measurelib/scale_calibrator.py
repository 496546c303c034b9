"""
ScaleCalibrator - Manages the scale calibration workflow for measurements.
"""

import logging
import math
from enum import Enum

from .errors import DegenerateCalibration, InvalidCalibrationInput
from .geometry import distance
from .models import Point, Scale

logger = logging.getLogger(__name__)


class CalibrationState(Enum):
    IDLE = "idle"
    AWAITING_FIRST_POINT = "awaiting_first_point"
    AWAITING_SECOND_POINT = "awaiting_second_point"


class ScaleCalibrator:
    """
    Derives a pixels-per-unit scale from a reference segment of known length.

    The user enters the real length first, then clicks the two ends of
    something with that length (a ruler, a door, a property line). The two
    reference points are never turned into a measurement.
    """

    # Reference points closer than this are treated as the same point
    DEGENERATE_DISTANCE = 1e-6

    def __init__(self, unit="ft"):
        self.unit = unit
        self.state = CalibrationState.IDLE
        self.points = []
        self.known_length = None

    def is_active(self):
        """Check if calibration is currently in progress"""
        return self.state is not CalibrationState.IDLE

    def begin(self, known_length):
        """
        Start calibration against a known real-world length.

        Args:
            known_length: Real length of the reference segment in self.unit

        Raises:
            InvalidCalibrationInput: If the length is not a positive number
        """
        try:
            length = float(known_length)
        except (TypeError, ValueError):
            raise InvalidCalibrationInput(f"Invalid reference length: {known_length!r}") from None
        if not math.isfinite(length) or length <= 0:
            raise InvalidCalibrationInput("Reference length must be positive")

        self.known_length = length
        self.points = []
        self.state = CalibrationState.AWAITING_FIRST_POINT
        logger.debug("Calibration started for %s %s", length, self.unit)

    def add_point(self, point):
        """
        Place the next reference point.

        Returns:
            Scale: The new scale once the second point completes calibration,
            None after the first point (or when not calibrating)

        Raises:
            DegenerateCalibration: If the second point coincides with the
                first. The second point is discarded so it can be re-picked.
        """
        if not self.is_active():
            return None

        point = Point.of(point[0], point[1])
        if self.state is CalibrationState.AWAITING_FIRST_POINT:
            self.points = [point]
            self.state = CalibrationState.AWAITING_SECOND_POINT
            return None

        pixel_distance = distance(self.points[0], point)
        if pixel_distance < self.DEGENERATE_DISTANCE:
            raise DegenerateCalibration(
                "Calibration points coincide; pick two distinct points")

        scale = Scale(pixel_distance / self.known_length, self.unit)
        logger.info("Scale set: %.1f pixels = %s %s (%.4f px/%s)",
                    pixel_distance, self.known_length, self.unit,
                    scale.pixels_per_unit, self.unit)
        self.state = CalibrationState.IDLE
        self.points = []
        self.known_length = None
        return scale

    def cancel(self):
        """Cancel the current calibration"""
        if self.is_active():
            logger.debug("Calibration cancelled")
        self.state = CalibrationState.IDLE
        self.points = []
        self.known_length = None

    def status_message(self, scale=None):
        """
        Get a status message describing current calibration state.

        Args:
            scale: Active scale, used to describe the idle state

        Returns:
            str: Human-readable status message
        """
        if not self.is_active():
            if scale is not None and scale.calibrated:
                return f"Scale: {scale.pixels_per_unit:.2f} pixels per {scale.unit}"
            return "Not calibrated - values shown in pixels"

        if self.state is CalibrationState.AWAITING_FIRST_POINT:
            return f"Calibration: click the first end of the {self.known_length:g} {self.unit} reference"
        return "Calibration: click the second end of the reference"
