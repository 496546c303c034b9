import threading

import pytest

from measurelib import (
    DegenerateCalibration,
    InsufficientPoints,
    InvalidCalibrationInput,
    MeasureConfig,
    MeasurementKind,
    MeasurementSession,
    Point,
    Scale,
    Stroke,
    UnknownMeasurement,
)


def draw(session, *points):
    for p in points:
        session.add_point(p)


def calibrate(session, known_length, p1, p2):
    session.begin_calibration(known_length)
    session.add_calibration_point(p1)
    return session.add_calibration_point(p2)


def test_calibration_then_triangle_area():
    session = MeasurementSession(service_unit="sqft")
    scale = calibrate(session, 10, (0, 0), (100, 0))
    assert scale.pixels_per_unit == pytest.approx(10)
    assert session.measurements == ()

    draw(session, (0, 0), (40, 0), (0, 30))
    m = session.finish_chain()
    assert m.kind is MeasurementKind.AREA
    assert m.value == pytest.approx(6.0)
    assert m.unit == "ft²"
    assert m.points == (Point(0, 0), Point(40, 0), Point(0, 30))


def test_linear_session_measures_polyline(calibrated_session):
    draw(calibrated_session, (0, 0), (40, 0), (0, 30))
    m = calibrated_session.finish_chain(label="Fence")
    assert m.kind is MeasurementKind.LINEAR
    assert m.label == "Fence"
    assert m.value == pytest.approx(9.0)
    assert m.unit == "ft"


def test_area_override_on_linear_session(calibrated_session):
    draw(calibrated_session, (0, 0), (40, 0), (0, 30))
    assert calibrated_session.finish_chain(area=True).kind is MeasurementKind.AREA


def test_two_points_always_linear(area_session):
    draw(area_session, (0, 0), (50, 0))
    m = area_session.finish_chain()
    assert m.kind is MeasurementKind.LINEAR
    assert m.value == pytest.approx(5.0)


def test_tiny_measurement_is_discarded(calibrated_session, recorder):
    calibrated_session.subscribe(recorder)
    draw(calibrated_session, (10, 10), (10.5, 10))
    assert calibrated_session.finish_chain() is None
    assert calibrated_session.measurements == ()
    assert len(calibrated_session.chain) == 0
    assert recorder.calls == []


def test_finish_with_one_point_leaves_chain(session):
    draw(session, (1, 2))
    with pytest.raises(InsufficientPoints):
        session.finish_chain()
    assert session.chain.points == (Point(1, 2),)
    assert session.measurements == ()


def test_uncalibrated_values_are_pixels(session):
    draw(session, (0, 0), (30, 40))
    m = session.finish_chain()
    assert m.value == pytest.approx(50)
    assert m.unit == "px"


def test_default_labels_count_up(calibrated_session):
    first = calibrated_session.add_measurement([(0, 0), (10, 0)])
    second = calibrated_session.add_measurement([(0, 0), (20, 0)])
    assert first.label == "Measurement 1"
    assert second.label == "Measurement 2"
    assert first.id != second.id


def test_add_measurement_requires_two_points(session):
    with pytest.raises(InsufficientPoints):
        session.add_measurement([(0, 0)])


def test_recalibration_reprojects_existing_measurements(calibrated_session):
    line = calibrated_session.add_measurement([(0, 0), (100, 0)])
    area = calibrated_session.add_measurement([(0, 0), (40, 0), (0, 30)], area=True)
    assert line.value == pytest.approx(10)

    calibrate(calibrated_session, 4, (0, 0), (0, 20))  # 5 px/ft
    new_line, new_area = calibrated_session.measurements
    ratio = 10.0 / 5.0
    assert new_line.value == pytest.approx(line.value * ratio)
    assert new_area.value == pytest.approx(area.value * ratio ** 2)
    assert new_line.points == line.points
    assert new_area.points == area.points
    assert new_line.id == line.id


def test_calibrating_from_pixels_reprojects(session):
    session.add_measurement([(0, 0), (100, 0)])
    assert session.measurements[0].unit == "px"
    calibrate(session, 10, (0, 0), (50, 0))
    assert session.measurements[0].value == pytest.approx(20)
    assert session.measurements[0].unit == "ft"


def test_invalid_calibration_keeps_scale(calibrated_session):
    before = calibrated_session.scale
    with pytest.raises(InvalidCalibrationInput):
        calibrated_session.begin_calibration(0)
    assert calibrated_session.scale == before
    assert not calibrated_session.calibrator.is_active()


def test_degenerate_calibration_keeps_scale(calibrated_session):
    calibrated_session.add_measurement([(0, 0), (100, 0)])
    calibrated_session.begin_calibration(3)
    calibrated_session.add_calibration_point((7, 7))
    with pytest.raises(DegenerateCalibration):
        calibrated_session.add_calibration_point((7, 7))
    assert calibrated_session.scale == Scale(10.0, "ft")
    assert calibrated_session.measurements[0].value == pytest.approx(10)


def test_begin_calibration_discards_chain(calibrated_session):
    draw(calibrated_session, (0, 0), (10, 0))
    calibrated_session.begin_calibration(1)
    assert len(calibrated_session.chain) == 0


def test_cancel_calibration(calibrated_session):
    calibrated_session.begin_calibration(2)
    calibrated_session.add_calibration_point((0, 0))
    calibrated_session.cancel_calibration()
    assert not calibrated_session.calibrator.is_active()
    assert calibrated_session.scale == Scale(10.0, "ft")


def test_delete_and_unknown_id(calibrated_session):
    m = calibrated_session.add_measurement([(0, 0), (10, 0)])
    assert calibrated_session.delete_measurement(m.id) == m
    assert calibrated_session.measurements == ()
    with pytest.raises(UnknownMeasurement):
        calibrated_session.delete_measurement(m.id)


def test_relabel_keeps_value(calibrated_session):
    m = calibrated_session.add_measurement([(0, 0), (10, 0)])
    renamed = calibrated_session.relabel(m.id, "Gutter")
    assert renamed.label == "Gutter"
    assert renamed.value == m.value


def test_total_real_value(area_session):
    area_session.add_measurement([(0, 0), (100, 0)])
    area_session.add_measurement([(0, 0), (40, 0), (0, 30)], area=True)
    assert area_session.total_real_value() == pytest.approx(16)
    assert area_session.total_real_value(MeasurementKind.AREA) == pytest.approx(6)
    assert area_session.total_real_value(MeasurementKind.LINEAR) == pytest.approx(10)


def test_clear_all(calibrated_session):
    calibrated_session.add_measurement([(0, 0), (10, 0)])
    calibrated_session.add_stroke([(0, 0), (1, 1)])
    draw(calibrated_session, (5, 5))
    calibrated_session.clear_all()
    assert calibrated_session.measurements == ()
    assert calibrated_session.strokes == ()
    assert len(calibrated_session.chain) == 0
    assert calibrated_session.scale.calibrated


def test_every_mutation_notifies(calibrated_session, recorder):
    calibrated_session.subscribe(recorder)
    m = calibrated_session.add_measurement([(0, 0), (10, 0)])
    assert recorder.calls[-1][0] == (m,)
    calibrated_session.set_scale(Scale(5.0, "ft"))
    assert recorder.calls[-1][1] == Scale(5.0, "ft")
    assert recorder.calls[-1][0][0].value == pytest.approx(2)
    calibrated_session.delete_measurement(m.id)
    assert recorder.calls[-1][0] == ()
    calibrated_session.clear_all()
    assert len(recorder.calls) == 4


def test_unsubscribe(session, recorder):
    unsubscribe = session.subscribe(recorder)
    unsubscribe()
    unsubscribe()
    session.add_measurement([(0, 0), (10, 0)])
    assert recorder.calls == []


def test_listener_sees_committed_state(session):
    seen = []
    session.subscribe(lambda ms, scale: seen.append(len(session.measurements)))
    session.add_measurement([(0, 0), (10, 0)])
    assert seen == [1]


def test_erase_removes_only_the_nearest(calibrated_session):
    near = calibrated_session.add_measurement([(0, 0), (100, 0)], label="near")
    far = calibrated_session.add_measurement([(12, 0), (12, 100)], label="far")
    removed = calibrated_session.erase_at(5, 0, radius=10)
    assert removed == near
    assert calibrated_session.measurements == (far,)


def test_erase_considers_strokes(calibrated_session):
    calibrated_session.add_measurement([(0, 0), (100, 0)])
    stroke = calibrated_session.add_stroke([(50, 50), (60, 60)])
    assert isinstance(stroke, Stroke)
    assert calibrated_session.erase_at(58, 59) == stroke
    assert calibrated_session.strokes == ()
    assert len(calibrated_session.measurements) == 1


def test_erase_outside_radius(calibrated_session, recorder):
    calibrated_session.add_measurement([(0, 0), (100, 0)])
    calibrated_session.subscribe(recorder)
    assert calibrated_session.erase_at(50, 50) is None
    assert len(calibrated_session.measurements) == 1
    assert recorder.calls == []


def test_erase_uses_configured_radius():
    session = MeasurementSession(config=MeasureConfig(erase_radius_px=30))
    session.add_measurement([(0, 0), (100, 0)])
    assert session.erase_at(20, 0) is not None


def test_set_unit_converts_scale(calibrated_session):
    calibrated_session.add_measurement([(0, 0), (120, 0)])
    calibrated_session.set_unit("in")
    assert calibrated_session.scale.unit == "in"
    assert calibrated_session.scale.pixels_per_unit == pytest.approx(10 / 12)
    m = calibrated_session.measurements[0]
    assert m.value == pytest.approx(144)
    assert m.unit == "in"


def test_chain_wrappers(session):
    draw(session, (0, 0), (10, 0))
    session.update_preview((10, 10))
    assert session.chain.preview == Point(10, 10)
    assert session.undo_point()
    assert session.redo_point()
    assert session.move_chain_point(0, (1, 1))
    session.cancel_chain()
    assert len(session.chain) == 0


def test_concurrent_adds_are_serialized(calibrated_session):
    def worker():
        for _ in range(50):
            calibrated_session.add_measurement([(0, 0), (10, 0)])

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(calibrated_session.measurements) == 200
    assert calibrated_session.total_real_value() == pytest.approx(200)


def test_default_labels_stay_unique_after_delete(calibrated_session):
    first = calibrated_session.add_measurement([(0, 0), (10, 0)])
    calibrated_session.add_measurement([(0, 0), (20, 0)])
    calibrated_session.delete_measurement(first.id)
    third = calibrated_session.add_measurement([(0, 0), (30, 0)])
    labels = [m.label for m in calibrated_session.measurements]
    assert labels == ["Measurement 2", "Measurement 3"]
    assert third.label == "Measurement 3"


def test_set_unit_rejects_unknown_unit(calibrated_session):
    with pytest.raises(ValueError):
        calibrated_session.set_unit("furlong")
    assert calibrated_session.scale == Scale(10.0, "ft")
