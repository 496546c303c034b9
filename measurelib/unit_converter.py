"""
Unit handling for measurements: service units, labels and conversions between
real-world length units.
"""

from .models import MeasurementKind


# Service units that ask for area measurements (roofing, siding, decking...)
AREA_UNITS = {
    "sqft": "ft",
    "sq ft": "ft",
    "ft2": "ft",
    "ft²": "ft",
    "sqyd": "yd",
    "sq yd": "yd",
    "sqm": "m",
    "sq m": "m",
    "m2": "m",
    "m²": "m",
}

# Aliases for linear service units ("linear ft" for fencing and gutters)
LINEAR_ALIASES = {
    "linear ft": "ft",
    "lin ft": "ft",
    "feet": "ft",
    "foot": "ft",
    "inches": "in",
    "inch": "in",
    "yards": "yd",
    "meters": "m",
    "metres": "m",
    "millimeters": "mm",
    "centimeters": "cm",
}


def _normalize(unit):
    return " ".join(str(unit).strip().lower().split())


def is_area_unit(service_unit):
    """True when the service unit is priced per square unit"""
    if service_unit is None:
        return False
    return _normalize(service_unit) in AREA_UNITS


def linear_unit_for(service_unit, default="ft"):
    """
    Linear unit that a service unit is measured in.

    'sqft' -> 'ft', 'linear ft' -> 'ft', 'm' -> 'm'.
    """
    if not service_unit:
        return default
    key = _normalize(service_unit)
    if key in AREA_UNITS:
        return AREA_UNITS[key]
    return LINEAR_ALIASES.get(key, key)


class UnitConverter:
    """
    Converts lengths and areas between real-world units and builds display
    labels.

    Supported linear units: mm, cm, m, in, ft, yd. Pixel values are only
    labelled, never converted.
    """

    # Metres per unit
    METERS_PER_UNIT = {
        "mm": 0.001,
        "cm": 0.01,
        "m": 1.0,
        "in": 0.0254,
        "ft": 0.3048,
        "yd": 0.9144,
    }

    def __init__(self, units="ft"):
        self.units = linear_unit_for(units)

    def set_units(self, units):
        """Change the current unit type"""
        self.units = linear_unit_for(units)

    def is_supported(self, units=None):
        if units is None:
            units = self.units
        return linear_unit_for(units) in self.METERS_PER_UNIT

    def convert_length(self, value, from_units, to_units=None):
        """
        Convert a length between units.

        Args:
            value: Length in from_units
            from_units: Source unit
            to_units: Target unit (current units if not specified)

        Returns:
            float length in to_units

        Raises:
            ValueError: If either unit is unknown
        """
        if to_units is None:
            to_units = self.units
        src = linear_unit_for(from_units)
        dst = linear_unit_for(to_units)
        if src not in self.METERS_PER_UNIT or dst not in self.METERS_PER_UNIT:
            raise ValueError(f"Cannot convert {from_units!r} to {to_units!r}")
        return float(value) * self.METERS_PER_UNIT[src] / self.METERS_PER_UNIT[dst]

    def convert_area(self, value, from_units, to_units=None):
        """Convert an area given in square from_units to square to_units"""
        factor = self.convert_length(1.0, from_units, to_units)
        return float(value) * factor * factor

    def convert_scale(self, pixels_per_unit, from_units, to_units=None):
        """Re-express a pixels-per-unit factor in another unit"""
        return float(pixels_per_unit) / self.convert_length(1.0, from_units, to_units)

    def get_unit_label(self, units=None, kind=MeasurementKind.LINEAR):
        """
        Get display label for a unit and measurement kind.

        Returns:
            String label such as "ft", "ft²", "px" or "px²"
        """
        if units is None:
            units = self.units
        label = linear_unit_for(units)
        if label in ("pixels", "pixel"):
            label = "px"
        if kind is MeasurementKind.AREA:
            return f"{label}²"
        return label

    def format_value(self, value, units=None, kind=MeasurementKind.LINEAR, places=2):
        """Human readable value with its unit label, e.g. '12.50 ft'"""
        return f"{value:.{places}f} {self.get_unit_label(units, kind)}"
