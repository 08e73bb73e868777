"""
Tank volume / weight calculation.

This is the only place the geometry formulas live: the reading write path,
the calculation preview endpoint and the analytics recompute path all call
calculate_volume(), so stored snapshots and recomputed values cannot drift.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.models.tank import ShapeType, HeadType, InputUnit


class CalculationError(ValueError):
    """Base class for derived-calculation errors reported to the caller."""


class TankGeometryError(CalculationError):
    """The tank's shape configuration cannot produce a volume."""


class InvalidLevelError(CalculationError):
    """The measured value is outside what the tank's input unit allows."""


@dataclass
class VolumeResult:
    volume_liters: float
    raw_volume_liters: float
    over_capacity: bool = False


def _dimensions(tank) -> Dict[str, Any]:
    dims = getattr(tank, "dimensions", None)
    if not dims:
        return {}
    if hasattr(dims, "model_dump"):
        dims = dims.model_dump(exclude_none=True)
    return {k: v for k, v in dict(dims).items() if v is not None}


def uses_linear_factor(tank) -> bool:
    """A CM tank without explicit dimensions is converted with geo_factor alone."""
    return not _dimensions(tank)


def _require_positive(dims: Dict[str, Any], *names: str, shape: str) -> None:
    for name in names:
        value = dims.get(name)
        if value is None or float(value) <= 0:
            raise TankGeometryError(f"{shape} tank requires a positive '{name}' (got {value!r})")


REQUIRED_DIMENSIONS = {
    ShapeType.VERTICAL_CYLINDER: ("diameter",),
    ShapeType.HORIZONTAL_CYLINDER: ("diameter", "length"),
    ShapeType.RECTANGULAR: ("length", "width"),
}


def validate_geometry(tank) -> None:
    """
    Reject a shape configuration that could never produce a volume, so the
    problem surfaces when the tank is saved rather than on every reading.
    PERCENT tanks do not use geometry and are not checked.
    """
    if getattr(tank, "input_unit", None) == InputUnit.PERCENT:
        return

    dims = _dimensions(tank)
    shape = getattr(tank, "shape_type", None)
    if not shape and not dims:
        return
    if not shape:
        raise TankGeometryError("Tank has dimensions but no shape_type")
    if shape not in REQUIRED_DIMENSIONS:
        raise TankGeometryError(f"Unknown shape type: {shape}")

    _require_positive(dims, *REQUIRED_DIMENSIONS[shape], shape=str(getattr(shape, "value", shape)))
    height = dims.get("height")
    if height is not None and float(height) <= 0:
        raise TankGeometryError(f"Tank height must be positive (got {height!r})")
    head_type = dims.get("head_type")
    if head_type is not None and head_type not in list(HeadType):
        raise TankGeometryError(f"Unknown head type: {head_type}")


def _horizontal_cylinder_cm3(h: float, diameter: float, length: float, head_type: str) -> float:
    r = diameter / 2
    h = min(max(h, 0.0), diameter)

    # Circular segment area times body length
    if h <= 0:
        segment = 0.0
    elif h >= diameter:
        segment = math.pi * r ** 2
    else:
        segment = r ** 2 * math.acos((r - h) / r) - (r - h) * math.sqrt(2 * r * h - h ** 2)
    body = length * segment

    # Both heads together form a sphere (or a 2:1 ellipsoid = half a sphere)
    sphere_segment = (math.pi * h ** 2 / 3) * (3 * r - h)
    if head_type == HeadType.FLAT:
        heads = 0.0
    elif head_type == HeadType.HEMISPHERICAL:
        heads = sphere_segment
    elif head_type == HeadType.SEMI_ELLIPTICAL_2_1:
        heads = sphere_segment * 0.5
    else:
        raise TankGeometryError(f"Unknown head type: {head_type}")

    return body + heads


def _shaped_volume_liters(tank, level_cm: float) -> float:
    dims = _dimensions(tank)
    shape = getattr(tank, "shape_type", None)
    if not shape:
        raise TankGeometryError("Tank has dimensions but no shape_type")

    height = dims.get("height")
    if height is not None and float(height) <= 0:
        raise TankGeometryError(f"Tank height must be positive (got {height!r})")

    # Real level = reading + sensor offset
    h = level_cm + float(dims.get("sensor_offset", 0.0))
    if h < 0:
        h = 0.0
    if height is not None and h > float(height):
        h = float(height)

    if shape == ShapeType.VERTICAL_CYLINDER:
        _require_positive(dims, "diameter", shape="Vertical cylinder")
        r = float(dims["diameter"]) / 2
        cm3 = math.pi * r ** 2 * h
    elif shape == ShapeType.RECTANGULAR:
        _require_positive(dims, "length", "width", shape="Rectangular")
        cm3 = float(dims["length"]) * float(dims["width"]) * h
    elif shape == ShapeType.HORIZONTAL_CYLINDER:
        _require_positive(dims, "diameter", "length", shape="Horizontal cylinder")
        head_type = dims.get("head_type") or HeadType.SEMI_ELLIPTICAL_2_1.value
        cm3 = _horizontal_cylinder_cm3(h, float(dims["diameter"]), float(dims["length"]), head_type)
    else:
        raise TankGeometryError(f"Unknown shape type: {shape}")

    return cm3 / 1000.0


def calculate_volume(tank, level: float) -> VolumeResult:
    """
    Convert a level measurement into liters.

    PERCENT tanks: level is % of capacity.
    Linear-factor tanks: level_cm * geo_factor.
    Shaped tanks: geometric volume up to level + sensor_offset.
    The result is clamped to [0, capacity]; over_capacity reports the clamp.
    """
    capacity = getattr(tank, "capacity_liters", None)
    if capacity is None or capacity <= 0:
        raise TankGeometryError(f"Tank capacity must be positive (got {capacity!r})")

    level = float(level)

    if getattr(tank, "input_unit", None) == InputUnit.PERCENT:
        if level < 0 or level > 100:
            raise InvalidLevelError(f"Percent level must be within [0, 100] (got {level})")
        volume = capacity * level / 100.0
        return VolumeResult(volume_liters=volume, raw_volume_liters=volume)

    if uses_linear_factor(tank):
        factor = getattr(tank, "geo_factor", None)
        if factor is None or factor <= 0:
            raise TankGeometryError(f"Tank geo_factor must be positive (got {factor!r})")
        raw = level * factor
    else:
        raw = _shaped_volume_liters(tank, level)

    volume = min(max(raw, 0.0), capacity)
    return VolumeResult(volume_liters=volume, raw_volume_liters=raw, over_capacity=raw > capacity)


def calculate_weight(volume_liters: float, specific_gravity: float) -> float:
    """Mass in kg from liters and specific gravity."""
    if specific_gravity is None or specific_gravity <= 0:
        raise CalculationError(f"Specific gravity must be positive (got {specific_gravity!r})")
    return volume_liters * specific_gravity


def percent_of_capacity(tank, volume_liters: float) -> float:
    capacity = tank.capacity_liters or 0
    return (volume_liters / capacity) * 100 if capacity > 0 else 0.0


def exceeds_capacity_warning(tank, weight_kg: float) -> bool:
    """True when the tank's configured max-capacity warning mass is exceeded."""
    limit: Optional[float] = getattr(tank, "max_capacity_warning_kg", None)
    return limit is not None and weight_kg > limit
