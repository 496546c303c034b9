"""
Quantity take-off: turn measurements into cost estimates and fence material
lists.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Tuple

from .errors import Uncalibrated
from .geometry import require_calibrated, segment_lengths, to_real_units
from .models import MeasurementKind, Point
from .unit_converter import UnitConverter, is_area_unit, linear_unit_for

logger = logging.getLogger(__name__)


# rate per unit, unit, label
SERVICE_RATES = {
    "roofing": {"rate": 350.0, "unit": "sq ft", "label": "Roofing"},
    "siding": {"rate": 12.0, "unit": "sq ft", "label": "Siding"},
    "fencing": {"rate": 25.0, "unit": "linear ft", "label": "Fencing"},
    "decking": {"rate": 30.0, "unit": "sq ft", "label": "Decking"},
    "windows": {"rate": 40.0, "unit": "sq ft", "label": "Windows"},
    "gutters": {"rate": 10.0, "unit": "linear ft", "label": "Gutters"},
}

MATERIAL_MULTIPLIERS = {
    "economy": 0.8,
    "standard": 1.0,
    "premium": 1.5,
}

LABOR_METHODS = ("default", "by_measurement", "fixed")
DEFAULT_LABOR_RATIO = 0.3
DEFAULT_FIXED_LABOR = 250.0


@dataclass(frozen=True)
class CostEstimate:
    quantity: float
    unit: str
    base_cost: float
    material_cost: float
    labor_cost: float

    @property
    def total(self):
        return self.material_cost + self.labor_cost


@dataclass
class FenceMaterials:
    length: float
    posts: int
    panels: int
    gates: int
    post_positions: List[Tuple[Point, str]] = field(default_factory=list)

    @property
    def hardware(self):
        return [
            f"{self.posts} post anchors",
            f"{self.panels} panel brackets",
            f"{self.gates} gate hinges",
            f"{self.gates} gate latches",
        ]


def _quantity_in(measurement, service_unit, converter):
    """Measurement value expressed in the service's unit"""
    unit = measurement.unit.rstrip("²")
    if unit == "px":
        raise Uncalibrated(f"{measurement.label} is measured in pixels; calibrate the scale first")
    target = linear_unit_for(service_unit)
    if measurement.kind is MeasurementKind.AREA:
        return converter.convert_area(measurement.value, unit, target)
    return converter.convert_length(measurement.value, unit, target)


def estimate_cost(measurement, service, material="standard", labor_method="default",
                  labor_factor=None, rates=None):
    """
    Estimate the cost of one measurement for a service.

    Args:
        measurement: Calibrated Measurement
        service: Key into rates (e.g. "fencing")
        material: "economy", "standard" or "premium"
        labor_method: "default" (30% of base), "by_measurement" (base times
            labor_factor) or "fixed" (labor_factor as a flat fee)
        labor_factor: Ratio or fee for the labor method
        rates: Service rate table, SERVICE_RATES by default

    Raises:
        Uncalibrated: If the measurement is still in pixels
        ValueError: For an unknown service, material or labor method, or a
            measurement kind that does not match the service unit
    """
    rates = SERVICE_RATES if rates is None else rates
    if service not in rates:
        raise ValueError(f"Unknown service: {service!r}")
    if material not in MATERIAL_MULTIPLIERS:
        raise ValueError(f"Unknown material: {material!r}")
    if labor_method not in LABOR_METHODS:
        raise ValueError(f"Unknown labor method: {labor_method!r}")

    rate = rates[service]
    service_unit = rate["unit"]
    wants_area = is_area_unit(service_unit)
    if wants_area != (measurement.kind is MeasurementKind.AREA):
        raise ValueError(
            f"{rate.get('label', service)} is priced per {service_unit}; "
            f"{measurement.label} is a {measurement.kind.value} measurement")

    quantity = _quantity_in(measurement, service_unit, UnitConverter())
    base = rate["rate"] * quantity
    material_cost = base * MATERIAL_MULTIPLIERS[material]

    if labor_method == "by_measurement":
        labor = base * (DEFAULT_LABOR_RATIO if labor_factor is None else labor_factor)
    elif labor_method == "fixed":
        labor = DEFAULT_FIXED_LABOR if labor_factor is None else float(labor_factor)
    else:
        labor = base * DEFAULT_LABOR_RATIO

    return CostEstimate(quantity, service_unit, base, material_cost, labor)


def estimate_total(measurements, service, **kwargs):
    """
    Sum estimates for every measurement matching the service's kind.

    Measurements of the other kind (lengths on an area job) are skipped.

    Returns:
        tuple of (total, list of (measurement, CostEstimate))
    """
    rates = kwargs.get("rates") or SERVICE_RATES
    if service not in rates:
        raise ValueError(f"Unknown service: {service!r}")
    want = MeasurementKind.AREA if is_area_unit(rates[service]["unit"]) else MeasurementKind.LINEAR

    lines = []
    for m in measurements:
        if m.kind is not want:
            logger.debug("Skipping %s for %s", m.label, service)
            continue
        lines.append((m, estimate_cost(m, service, **kwargs)))
    return sum(e.total for _, e in lines), lines


def fence_materials(points, scale, post_spacing=8.0, panel_length=8.0, gates=0):
    """
    Posts, panels and hardware for a fence run along points.

    Each segment gets evenly spaced posts no further apart than post_spacing;
    posts at shared corners are counted once.

    Args:
        points: Fence line vertices in image pixels
        scale: Calibrated Scale
        post_spacing: Maximum real distance between posts
        panel_length: Real length of one fence panel
        gates: Number of gates along the run

    Raises:
        Uncalibrated: If the scale is not calibrated
        ValueError: For non-positive spacing or panel length
    """
    require_calibrated(scale)
    if post_spacing <= 0 or panel_length <= 0:
        raise ValueError("Post spacing and panel length must be positive")

    positions = []
    total = 0.0
    for i, pixel_length in enumerate(segment_lengths(points)):
        start, end = points[i], points[i + 1]
        length = to_real_units(pixel_length, scale)
        total += length
        count = max(2, math.ceil(length / post_spacing) + 1)
        first = 0 if i == 0 else 1
        for j in range(first, count):
            ratio = j / (count - 1)
            post = Point(start[0] + (end[0] - start[0]) * ratio,
                         start[1] + (end[1] - start[1]) * ratio)
            kind = "corner" if j in (0, count - 1) else "line"
            positions.append((post, kind))

    panels = math.ceil(total / panel_length) if total > 0 else 0
    return FenceMaterials(total, len(positions), panels, int(gates), positions)
