import pytest

from measurelib import MeasurementKind, UnitConverter
from measurelib.unit_converter import is_area_unit, linear_unit_for


@pytest.mark.parametrize("unit", ["sqft", "sq ft", "SQ  FT", "m2", "sq m"])
def test_area_units(unit):
    assert is_area_unit(unit)


@pytest.mark.parametrize("unit", ["ft", "linear ft", "m", "", None])
def test_linear_units(unit):
    assert not is_area_unit(unit)


def test_linear_unit_for():
    assert linear_unit_for("sqft") == "ft"
    assert linear_unit_for("sq m") == "m"
    assert linear_unit_for("linear ft") == "ft"
    assert linear_unit_for("meters") == "m"
    assert linear_unit_for(None) == "ft"


def test_convert_length_and_area():
    converter = UnitConverter("ft")
    assert converter.convert_length(12, "in") == pytest.approx(1.0)
    assert converter.convert_length(1, "m", "cm") == pytest.approx(100.0)
    assert converter.convert_area(1, "yd", "ft") == pytest.approx(9.0)


def test_convert_scale_keeps_real_size():
    converter = UnitConverter()
    # 10 px per foot is 10/12 px per inch
    assert converter.convert_scale(10.0, "ft", "in") == pytest.approx(10.0 / 12)


def test_convert_unknown_unit_raises():
    with pytest.raises(ValueError):
        UnitConverter().convert_length(1, "furlong", "ft")


def test_labels():
    converter = UnitConverter("sqft")
    assert converter.units == "ft"
    assert converter.get_unit_label() == "ft"
    assert converter.get_unit_label(kind=MeasurementKind.AREA) == "ft²"
    assert converter.get_unit_label("px", MeasurementKind.AREA) == "px²"
    assert converter.format_value(12.5) == "12.50 ft"


def test_is_supported():
    converter = UnitConverter("m")
    assert converter.is_supported()
    assert converter.is_supported("inches")
    assert not converter.is_supported("px")
    assert not converter.is_supported("furlong")
