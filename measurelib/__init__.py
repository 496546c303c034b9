"""
Measurement library - scale calibration, geometry and measurement sessions
for on-canvas measuring tools.
"""

from .config import MeasureConfig
from .errors import (
    DegenerateCalibration,
    InsufficientPoints,
    InvalidCalibrationInput,
    InvalidSessionData,
    MeasurementError,
    Uncalibrated,
    UnknownMeasurement,
)
from .interaction import InteractionController, Mode, Tool
from .models import Measurement, MeasurementKind, Point, Scale, Stroke
from .point_chain import PointChain
from .scale_calibrator import CalibrationState, ScaleCalibrator
from .session import MeasurementSession
from .unit_converter import UnitConverter
from .view_transform import ViewTransform

__all__ = [
    'MeasureConfig',
    'MeasurementError',
    'InvalidCalibrationInput',
    'DegenerateCalibration',
    'InsufficientPoints',
    'Uncalibrated',
    'UnknownMeasurement',
    'InvalidSessionData',
    'InteractionController',
    'Mode',
    'Tool',
    'Measurement',
    'MeasurementKind',
    'Point',
    'Scale',
    'Stroke',
    'PointChain',
    'CalibrationState',
    'ScaleCalibrator',
    'MeasurementSession',
    'UnitConverter',
    'ViewTransform',
]
