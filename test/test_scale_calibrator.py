import math

import pytest

from measurelib import (
    CalibrationState,
    DegenerateCalibration,
    InvalidCalibrationInput,
    Scale,
    ScaleCalibrator,
)


def test_two_points_produce_scale():
    calibrator = ScaleCalibrator(unit="ft")
    calibrator.begin(10)
    assert calibrator.state is CalibrationState.AWAITING_FIRST_POINT
    assert calibrator.add_point((0, 0)) is None
    assert calibrator.state is CalibrationState.AWAITING_SECOND_POINT

    scale = calibrator.add_point((100, 0))
    assert scale == Scale(10.0, "ft")
    assert calibrator.state is CalibrationState.IDLE
    assert calibrator.points == []


@pytest.mark.parametrize("length", [0, -1, "abc", None, math.nan, math.inf])
def test_invalid_length_rejected(length):
    calibrator = ScaleCalibrator()
    with pytest.raises(InvalidCalibrationInput):
        calibrator.begin(length)
    assert not calibrator.is_active()


def test_numeric_string_length_accepted():
    calibrator = ScaleCalibrator()
    calibrator.begin("2.5")
    assert calibrator.known_length == 2.5


def test_coincident_points_are_degenerate_and_can_be_repicked():
    calibrator = ScaleCalibrator()
    calibrator.begin(5)
    calibrator.add_point((20, 20))
    with pytest.raises(DegenerateCalibration):
        calibrator.add_point((20, 20))
    assert calibrator.state is CalibrationState.AWAITING_SECOND_POINT
    assert len(calibrator.points) == 1

    scale = calibrator.add_point((20, 70))
    assert scale.pixels_per_unit == pytest.approx(10.0)


def test_add_point_when_idle_is_ignored():
    calibrator = ScaleCalibrator()
    assert calibrator.add_point((1, 1)) is None
    assert calibrator.points == []


def test_cancel_discards_reference():
    calibrator = ScaleCalibrator()
    calibrator.begin(3)
    calibrator.add_point((0, 0))
    calibrator.cancel()
    assert not calibrator.is_active()
    assert calibrator.points == []
    assert calibrator.known_length is None


def test_status_messages():
    calibrator = ScaleCalibrator(unit="m")
    assert "Not calibrated" in calibrator.status_message()
    assert "2.00 pixels per m" in calibrator.status_message(Scale(2.0, "m"))
    calibrator.begin(4)
    assert "first end of the 4 m" in calibrator.status_message()
    calibrator.add_point((0, 0))
    assert "second end" in calibrator.status_message()
