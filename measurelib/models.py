"""
Plain data types shared by the measurement core.
"""

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Tuple


class Point(NamedTuple):
    """A position in image pixel space (zoom and pan already removed)"""
    x: float
    y: float

    @classmethod
    def of(cls, x, y):
        return cls(float(x), float(y))


class MeasurementKind(Enum):
    LINEAR = "linear"
    AREA = "area"


def new_id(prefix="m"):
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Scale:
    """
    Pixels per real-world unit.

    A non-positive (or non-finite) pixels_per_unit means the session is
    uncalibrated; conversions then fall back to pixel values.
    """
    pixels_per_unit: float = 0.0
    unit: str = "ft"

    @classmethod
    def uncalibrated(cls, unit="ft"):
        return cls(0.0, unit)

    @property
    def calibrated(self):
        return math.isfinite(self.pixels_per_unit) and self.pixels_per_unit > 0

    @property
    def display_unit(self):
        """Unit that values are actually expressed in ('px' until calibrated)"""
        return self.unit if self.calibrated else "px"

    def to_dict(self):
        return {
            "pixels_per_unit": self.pixels_per_unit,
            "unit": self.unit,
            "calibrated": self.calibrated,
        }


@dataclass(frozen=True)
class Measurement:
    """
    A finished measurement.

    `value` is the real-unit projection of the pixel geometry under the scale
    in force; the session recomputes it whenever the scale changes.
    """
    id: str
    label: str
    points: Tuple[Point, ...]
    kind: MeasurementKind
    value: float
    unit: str

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "points": [{"x": p.x, "y": p.y} for p in self.points],
            "kind": self.kind.value,
            "value_real_units": self.value,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class Stroke:
    """Freehand annotation; erasable but never measured"""
    points: Tuple[Point, ...]
    id: str = field(default_factory=lambda: new_id("s"))

    def to_dict(self):
        return {"id": self.id, "points": [{"x": p.x, "y": p.y} for p in self.points]}
