"""
Exceptions raised by the measurement core.

All of them derive from ValueError so callers that only know about bad input
values keep working; the interaction controller catches MeasurementError and
turns it into a status message.
"""


class MeasurementError(ValueError):
    """Base class for recoverable measurement errors"""


class InvalidCalibrationInput(MeasurementError):
    """Known reference length is missing, zero, negative or not finite"""


class DegenerateCalibration(MeasurementError):
    """The two calibration points coincide, so no scale can be derived"""


class InsufficientPoints(MeasurementError):
    """A chain was finished with fewer than two points"""


class Uncalibrated(MeasurementError):
    """A real-unit value was required but no valid scale is active"""


class UnknownMeasurement(MeasurementError):
    """No measurement with the requested id exists in the session"""


class InvalidSessionData(MeasurementError):
    """Serialized session data is malformed or inconsistent with its scale"""
