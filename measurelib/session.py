"""
MeasurementSession - owns the scale, the finished measurements, freehand
strokes and the in-progress chain, and tells listeners about every change.
"""

import json
import logging
import math
import threading

from .config import MeasureConfig
from .errors import InsufficientPoints, InvalidSessionData, UnknownMeasurement
from .geometry import nearest_point_distance, polygon_area, polyline_length, to_real_units
from .models import Measurement, MeasurementKind, Point, Scale, Stroke, new_id
from .point_chain import PointChain
from .scale_calibrator import ScaleCalibrator
from .unit_converter import UnitConverter, is_area_unit, linear_unit_for

logger = logging.getLogger(__name__)

# Stored values may have been rounded for display before being saved
VALUE_TOLERANCE = 0.005


class MeasurementSession:
    """
    State of one measuring canvas.

    All mutations go through this object. Each one is applied under a lock
    and then reported synchronously to every subscribed listener as
    ``listener(measurements, scale)``.
    """

    def __init__(self, unit=None, service_unit=None, config=None):
        self.config = config or MeasureConfig()
        if service_unit is None:
            service_unit = self.config.service_unit
        if unit is None:
            unit = self.config.unit if config is not None else linear_unit_for(service_unit)

        self.service_unit = service_unit
        self.converter = UnitConverter(unit)
        self.chain = PointChain()
        self.calibrator = ScaleCalibrator(unit=self.converter.units)

        self._scale = Scale.uncalibrated(self.converter.units)
        self._measurements = []
        self._strokes = []
        self._label_count = 0
        self._listeners = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read access

    @property
    def scale(self):
        return self._scale

    @property
    def unit(self):
        return self._scale.unit

    @property
    def measurements(self):
        with self._lock:
            return tuple(self._measurements)

    @property
    def strokes(self):
        with self._lock:
            return tuple(self._strokes)

    @property
    def area_intent(self):
        """True when the service unit calls for area measurements"""
        return is_area_unit(self.service_unit)

    def get(self, measurement_id):
        with self._lock:
            for m in self._measurements:
                if m.id == measurement_id:
                    return m
        raise UnknownMeasurement(f"No measurement with id {measurement_id!r}")

    def total_real_value(self, kind=None):
        """
        Sum of all measurement values.

        Kinds are mixed unless a kind is given; lengths and areas only add up
        meaningfully when filtered.
        """
        with self._lock:
            return float(sum(m.value for m in self._measurements
                             if kind is None or m.kind is kind))

    # ------------------------------------------------------------------
    # Listeners

    def subscribe(self, listener):
        """
        Register a callable notified after every mutation.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        snapshot = tuple(self._measurements)
        scale = self._scale
        for listener in list(self._listeners):
            listener(snapshot, scale)

    # ------------------------------------------------------------------
    # Projection

    def _classify(self, points, area):
        if area and len(points) >= 3:
            return MeasurementKind.AREA
        return MeasurementKind.LINEAR

    def _project(self, points, kind, scale=None):
        """Real value and unit label for points under a scale"""
        if scale is None:
            scale = self._scale
        if kind is MeasurementKind.AREA:
            value = to_real_units(polygon_area(points), scale, dimensions=2)
        else:
            value = to_real_units(polyline_length(points), scale)
        return value, self.converter.get_unit_label(scale.display_unit, kind)

    def _default_label(self, label):
        """Given label, or the next 'Measurement N'; N never repeats after deletions"""
        self._label_count += 1
        return label if label else f"Measurement {self._label_count}"

    def _build(self, points, kind, label, measurement_id=None):
        value, unit = self._project(points, kind)
        return Measurement(
            id=measurement_id or new_id(),
            label=label,
            points=tuple(points),
            kind=kind,
            value=value,
            unit=unit,
        )

    # ------------------------------------------------------------------
    # Measurements

    def add_measurement(self, points, area=False, label=None):
        """
        Store a finished point sequence as a measurement.

        Args:
            points: Two or more points in image pixels
            area: Measure as an area when there are at least 3 points
            label: Display label (defaults to "Measurement N")

        Raises:
            InsufficientPoints: If fewer than two points are given
        """
        points = tuple(Point.of(p[0], p[1]) for p in points)
        if len(points) < 2:
            raise InsufficientPoints("A measurement needs at least 2 points")
        with self._lock:
            kind = self._classify(points, area)
            measurement = self._build(points, kind, self._default_label(label))
            self._measurements.append(measurement)
            logger.info("Added %s: %.2f %s", measurement.label, measurement.value, measurement.unit)
            self._notify()
        return measurement

    def finish_chain(self, label=None, area=None):
        """
        Turn the in-progress chain into a measurement.

        Args:
            label: Optional label
            area: Area intent; defaults to the session's service unit

        Returns:
            Measurement, or None when the chain was too short to keep (a
            stray double-click) and has been discarded

        Raises:
            InsufficientPoints: If the chain has fewer than 2 points; the
                chain is left as it was
        """
        if area is None:
            area = self.area_intent
        with self._lock:
            if len(self.chain) < 2:
                raise InsufficientPoints(
                    f"Need at least 2 points to finish a measurement, have {len(self.chain)}")
            real_length = to_real_units(self.chain.pixel_length(), self._scale)
            if real_length < self.config.min_real_length:
                logger.info("Discarded measurement of %.3f %s (below %s)",
                            real_length, self._scale.display_unit, self.config.min_real_length)
                self.chain.cancel()
                return None
            points = self.chain.finish()
            kind = self._classify(points, area)
            measurement = self._build(points, kind, self._default_label(label))
            self._measurements.append(measurement)
            logger.info("Added %s: %.2f %s", measurement.label, measurement.value, measurement.unit)
            self._notify()
        return measurement

    def delete_measurement(self, measurement_id):
        with self._lock:
            measurement = self.get(measurement_id)
            self._measurements.remove(measurement)
            logger.info("Deleted %s", measurement.label)
            self._notify()
        return measurement

    def relabel(self, measurement_id, label):
        """Replace a measurement's label; geometry and value are unchanged"""
        with self._lock:
            old = self.get(measurement_id)
            new = Measurement(old.id, label, old.points, old.kind, old.value, old.unit)
            self._measurements[self._measurements.index(old)] = new
            self._notify()
        return new

    def clear_all(self):
        """Discard measurements, strokes, the chain and any calibration in progress"""
        with self._lock:
            self._measurements.clear()
            self._strokes.clear()
            self.chain.reset()
            self.calibrator.cancel()
            logger.info("Session cleared")
            self._notify()

    # ------------------------------------------------------------------
    # In-progress chain

    def add_point(self, point):
        with self._lock:
            self.chain.add_point(point)

    def update_preview(self, point):
        with self._lock:
            self.chain.update_last_point(point)

    def move_chain_point(self, index, point):
        with self._lock:
            return self.chain.move_point(index, point)

    def undo_point(self):
        with self._lock:
            return self.chain.undo()

    def redo_point(self):
        with self._lock:
            return self.chain.redo()

    def cancel_chain(self):
        with self._lock:
            self.chain.cancel()

    # ------------------------------------------------------------------
    # Freehand strokes and eraser

    def add_stroke(self, points):
        points = tuple(Point.of(p[0], p[1]) for p in points)
        if len(points) < 2:
            raise InsufficientPoints("A stroke needs at least 2 points")
        with self._lock:
            stroke = Stroke(points)
            self._strokes.append(stroke)
            logger.debug("Added stroke of %d points", len(points))
            self._notify()
        return stroke

    def erase_at(self, x, y, radius=None):
        """
        Remove the single measurement or stroke closest to (x, y).

        Only entities with a vertex within radius are candidates; when several
        qualify only the nearest is removed.

        Returns:
            The removed Measurement or Stroke, or None
        """
        if radius is None:
            radius = self.config.erase_radius_px
        with self._lock:
            best = None
            best_distance = None
            for entity in self._measurements + self._strokes:
                d = nearest_point_distance(entity.points, x, y)
                if d is not None and d <= radius and (best_distance is None or d < best_distance):
                    best, best_distance = entity, d
            if best is None:
                return None
            if isinstance(best, Stroke):
                self._strokes.remove(best)
            else:
                self._measurements.remove(best)
            logger.info("Erased %s at (%.1f, %.1f)", getattr(best, "label", best.id), x, y)
            self._notify()
        return best

    # ------------------------------------------------------------------
    # Scale

    def begin_calibration(self, known_length):
        """
        Enter calibration mode. The in-progress chain is discarded.

        Raises:
            InvalidCalibrationInput: If known_length is not positive
        """
        with self._lock:
            self.calibrator.unit = self.unit
            self.calibrator.begin(known_length)
            self.chain.cancel()

    def add_calibration_point(self, point):
        """
        Feed a reference point to the calibrator.

        Returns:
            The new Scale once calibration completes, otherwise None

        Raises:
            DegenerateCalibration: If the reference points coincide
        """
        with self._lock:
            scale = self.calibrator.add_point(point)
            if scale is not None:
                self._apply_scale(scale)
        return scale

    def cancel_calibration(self):
        with self._lock:
            self.calibrator.cancel()

    def set_scale(self, scale):
        with self._lock:
            self._apply_scale(scale)

    def set_unit(self, unit):
        """
        Switch the linear unit, re-expressing the scale so existing pixel
        geometry keeps its real size.

        Raises:
            ValueError: If unit is not a supported length unit
        """
        unit = linear_unit_for(unit)
        if not self.converter.is_supported(unit):
            raise ValueError(f"Unsupported unit: {unit!r}")
        with self._lock:
            scale = self._scale
            if scale.calibrated:
                ppu = self.converter.convert_scale(scale.pixels_per_unit, scale.unit, unit)
                new_scale = Scale(ppu, unit)
            else:
                new_scale = Scale.uncalibrated(unit)
            self.converter.set_units(unit)
            self.calibrator.unit = unit
            self._apply_scale(new_scale)

    def _apply_scale(self, scale):
        reprojected = []
        for m in self._measurements:
            value, unit = self._project(m.points, m.kind, scale)
            reprojected.append(Measurement(m.id, m.label, m.points, m.kind, value, unit))
        self._scale = scale
        self._measurements = reprojected
        logger.info("Scale now %.4f px/%s, %d measurements re-projected",
                    scale.pixels_per_unit, scale.unit, len(reprojected))
        self._notify()

    # ------------------------------------------------------------------
    # Persistence

    def to_dict(self):
        with self._lock:
            return {
                "measurements": [m.to_dict() for m in self._measurements],
                "scale": self._scale.to_dict(),
                "unit": self._scale.unit,
                "service_unit": self.service_unit,
                "strokes": [s.to_dict() for s in self._strokes],
            }

    def to_json(self, **kwargs):
        return json.dumps(self.to_dict(), **kwargs)

    def save(self, path):
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info("Saved %d measurements to %s", len(self._measurements), path)

    @classmethod
    def from_dict(cls, data, config=None):
        """
        Rebuild a session from to_dict() output.

        Every stored value is checked against the value derived from its
        points and the stored scale.

        Raises:
            InvalidSessionData: If the data is malformed or inconsistent
        """
        try:
            scale_data = data["scale"]
            unit = data.get("unit", scale_data.get("unit", "ft"))
            ppu = float(scale_data.get("pixels_per_unit", 0.0))
            session = cls(unit=unit, service_unit=data.get("service_unit", unit), config=config)
            session._scale = Scale(ppu, session.converter.units)

            for item in data.get("measurements", []):
                points = tuple(Point.of(p["x"], p["y"]) for p in item["points"])
                kind = MeasurementKind(item["kind"])
                if len(points) < 2:
                    raise InvalidSessionData(f"Measurement {item['id']} has fewer than 2 points")
                if kind is MeasurementKind.AREA and len(points) < 3:
                    raise InvalidSessionData(f"Area measurement {item['id']} has fewer than 3 points")
                measurement = session._build(points, kind, item["label"], item["id"])
                stored = float(item["value_real_units"])
                if not math.isclose(stored, measurement.value, rel_tol=1e-6, abs_tol=VALUE_TOLERANCE):
                    raise InvalidSessionData(
                        f"Measurement {item['id']} stores {stored} but its points give "
                        f"{measurement.value}")
                session._measurements.append(measurement)
                session._label_count += 1

            for item in data.get("strokes", []):
                points = tuple(Point.of(p["x"], p["y"]) for p in item["points"])
                session._strokes.append(Stroke(points, item["id"]))
        except InvalidSessionData:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidSessionData(f"Malformed session data: {e}") from e

        logger.info("Loaded session with %d measurements", len(session._measurements))
        return session

    @classmethod
    def from_json(cls, text, config=None):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidSessionData(f"Session is not valid JSON: {e}") from e
        return cls.from_dict(data, config=config)

    @classmethod
    def load(cls, path, config=None):
        with open(path) as f:
            return cls.from_json(f.read(), config=config)
