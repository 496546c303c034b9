"""
Tunable settings for the measurement tool.
"""

from dataclasses import dataclass, fields

from .unit_converter import linear_unit_for


@dataclass
class MeasureConfig:
    """
    Settings shared by the session, the interaction controller and the host.

    Attributes:
        unit: Linear unit the scale is calibrated in
        service_unit: Unit the job is priced in; area units ("sqft") make
            finished chains of 3+ points area measurements
        double_click_ms: Two clicks closer than this finish the chain
        erase_radius_px: Eraser reach around the pointer, in image pixels
        min_real_length: Finished chains shorter than this are discarded
        zoom_step, min_zoom, max_zoom: View zoom behaviour
    """
    unit: str = "ft"
    service_unit: str = "ft"
    double_click_ms: float = 300.0
    erase_radius_px: float = 10.0
    min_real_length: float = 0.1
    zoom_step: float = 1.2
    min_zoom: float = 0.1
    max_zoom: float = 10.0

    def __post_init__(self):
        if self.double_click_ms < 0:
            raise ValueError("double_click_ms must not be negative")
        if self.erase_radius_px <= 0:
            raise ValueError("erase_radius_px must be positive")
        if self.min_real_length < 0:
            raise ValueError("min_real_length must not be negative")
        if not 0 < self.min_zoom <= 1 <= self.max_zoom:
            raise ValueError("zoom limits must satisfy 0 < min_zoom <= 1 <= max_zoom")
        if self.zoom_step <= 1:
            raise ValueError("zoom_step must be greater than 1")

    @classmethod
    def from_args(cls, args):
        """
        Build a config from an argparse namespace.

        Options that are missing or None keep their defaults. When only a
        service unit is given, the linear unit is derived from it.
        """
        values = {}
        for f in fields(cls):
            value = getattr(args, f.name, None)
            if value is not None:
                values[f.name] = value
        if "unit" not in values and "service_unit" in values:
            values["unit"] = linear_unit_for(values["service_unit"])
        return cls(**values)
