import pytest

from measurelib import Point, Scale, Uncalibrated
from measurelib.pricing import estimate_cost, estimate_total, fence_materials


@pytest.fixture
def fence(calibrated_session):
    return calibrated_session.add_measurement([(0, 0), (100, 0)], label="Back fence")


@pytest.fixture
def roof(area_session):
    return area_session.add_measurement([(0, 0), (40, 0), (0, 30)], area=True, label="Roof")


def test_fencing_estimate(fence):
    est = estimate_cost(fence, "fencing")
    assert est.quantity == pytest.approx(10)
    assert est.base_cost == pytest.approx(250)
    assert est.material_cost == pytest.approx(250)
    assert est.labor_cost == pytest.approx(75)
    assert est.total == pytest.approx(325)


def test_material_and_labor_options(fence):
    assert estimate_cost(fence, "fencing", material="premium").total == pytest.approx(450)
    assert estimate_cost(fence, "fencing", labor_method="fixed").labor_cost == pytest.approx(250)
    by_measurement = estimate_cost(fence, "fencing", labor_method="by_measurement", labor_factor=0.5)
    assert by_measurement.labor_cost == pytest.approx(125)


def test_area_estimate(roof):
    est = estimate_cost(roof, "roofing")
    assert est.quantity == pytest.approx(6)
    assert est.base_cost == pytest.approx(2100)


def test_metric_measurement_is_converted(calibrated_session):
    calibrated_session.set_unit("m")
    m = calibrated_session.add_measurement([(0, 0), (100, 0)])
    assert estimate_cost(m, "gutters").quantity == pytest.approx(10)


@pytest.mark.parametrize("kwargs", [
    {"service": "plumbing"},
    {"service": "fencing", "material": "gold"},
    {"service": "fencing", "labor_method": "hourly"},
    {"service": "roofing"},
])
def test_invalid_requests(fence, kwargs):
    with pytest.raises(ValueError):
        estimate_cost(fence, **kwargs)


def test_pixel_measurement_cannot_be_priced(session):
    m = session.add_measurement([(0, 0), (100, 0)])
    with pytest.raises(Uncalibrated):
        estimate_cost(m, "fencing")


def test_estimate_total_skips_other_kind(area_session):
    area_session.add_measurement([(0, 0), (100, 0)])
    area_session.add_measurement([(0, 0), (40, 0), (0, 30)], area=True)
    area_session.add_measurement([(0, 0), (40, 0), (40, 30), (0, 30)], area=True)
    total, lines = estimate_total(area_session.measurements, "decking")
    assert len(lines) == 2
    assert total == pytest.approx((6 + 12) * 30 * 1.3)


def test_fence_materials():
    points = [Point(0, 0), Point(160, 0), Point(160, 80)]
    materials = fence_materials(points, Scale(10.0, "ft"), gates=1)
    assert materials.length == pytest.approx(24)
    assert materials.posts == 4
    assert materials.panels == 3
    assert [kind for _, kind in materials.post_positions] == ["corner", "line", "corner", "corner"]
    assert materials.post_positions[1][0] == Point(80, 0)
    assert "1 gate hinges" in materials.hardware


def test_fence_materials_requires_scale():
    with pytest.raises(Uncalibrated):
        fence_materials([Point(0, 0), Point(10, 0)], Scale.uncalibrated())
