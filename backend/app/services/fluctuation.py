"""
Fluctuation / anomaly detection over consecutive tank readings.

Each adjacent pair of readings is compared on a per-day basis against a
percentage of tank capacity. Flags are classified either as a probable
refill (large rise not logged as an added amount) or as a probable data
entry error. The scan is read-only and deterministic; flag ids depend only
on the tank and the two reading timestamps.
"""
import re
import uuid
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.models.fluctuation_alert import AlertSource

logger = logging.getLogger(__name__)

ALERT_NAMESPACE = uuid.UUID("6f1c2b0e-3d5a-4c8e-9b7a-2e4f6a8c0d13")

REFILL_TEXT = "Possible refill"
ANOMALY_TEXT = "Possible data entry error"


def alert_identity(tank_id: str, prev_ts: datetime, curr_ts: datetime) -> str:
    """Stable id for the reading pair (tank, prev timestamp, current timestamp)."""
    key = f"{tank_id}|{prev_ts.isoformat()}|{curr_ts.isoformat()}"
    return str(uuid.uuid5(ALERT_NAMESPACE, key))


def format_anomaly_message(
    template: str,
    diff=None,
    limit=None,
    unit: Optional[str] = None,
    text: Optional[str] = None,
) -> str:
    """
    Fill {diff}, {limit}, {unit} and {text} placeholders (case-insensitive).
    Placeholders without a value are left untouched.
    """
    result = template
    for name, value in (("diff", diff), ("limit", limit), ("unit", unit), ("text", text)):
        if value is not None:
            result = re.sub(r"\{" + name + r"\}", lambda _m, v=str(value): v, result, flags=re.IGNORECASE)
    return result


@dataclass
class FluctuationFlag:
    id: str
    tank_id: str
    tank_name: Optional[str]
    timestamp: datetime
    prev_timestamp: datetime
    next_timestamp: Optional[datetime]
    prev_value: float
    current_value: float
    next_value: Optional[float]
    delta: float
    daily_rate: float
    threshold: float
    reason: str
    is_possible_refill: bool
    source: str = AlertSource.MANUAL.value
    note: Optional[str] = None

    @property
    def date_str(self) -> str:
        return self.timestamp.date().isoformat()

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date_str"] = self.date_str
        data["prev_date_str"] = self.prev_timestamp.date().isoformat()
        data["next_date_str"] = self.next_timestamp.date().isoformat() if self.next_timestamp else None
        return data


class FluctuationDetector:
    """Flags day-normalized volume jumps larger than a share of capacity."""

    def __init__(
        self,
        default_threshold_pct: float = 30.0,
        refill_multiplier: float = 15.0,
        message_template: str = "{text}: daily change {diff} {unit} exceeds limit {limit} {unit}",
        unit: str = "L/day",
    ):
        self.default_threshold_pct = default_threshold_pct
        self.refill_multiplier = refill_multiplier
        self.message_template = message_template
        self.unit = unit

    @classmethod
    def from_settings(cls, settings) -> "FluctuationDetector":
        return cls(
            default_threshold_pct=settings.default_validation_threshold,
            refill_multiplier=settings.refill_multiplier,
            message_template=settings.anomaly_message_template,
        )

    def threshold_pct_for(self, tank, override: Optional[float] = None) -> float:
        if override is not None and override > 0:
            return override
        tank_pct = getattr(tank, "validation_threshold", None)
        if tank_pct is not None and tank_pct > 0:
            return tank_pct
        return self.default_threshold_pct

    def threshold_volume(self, tank, override: Optional[float] = None) -> float:
        return tank.capacity_liters * self.threshold_pct_for(tank, override) / 100

    def scan(
        self,
        tank,
        readings: Iterable,
        threshold_pct: Optional[float] = None,
        source: str = AlertSource.MANUAL.value,
    ) -> List[FluctuationFlag]:
        """
        Compare every adjacent pair of the tank's readings.

        delta      = volume(t2) - added(t2) - volume(t1)
        daily_rate = |delta| / max(1, days between t1 and t2)
        A pair is flagged when daily_rate > threshold (equality is not flagged).
        """
        ordered = sorted(readings, key=lambda r: (r.timestamp, str(r.id)))
        threshold = self.threshold_volume(tank, threshold_pct)
        refill_volume = self.refill_multiplier * threshold

        flags = []
        for i in range(1, len(ordered)):
            prev, curr = ordered[i - 1], ordered[i]
            nxt = ordered[i + 1] if i + 1 < len(ordered) else None

            days = (curr.timestamp - prev.timestamp).total_seconds() / 86400
            delta = curr.calculated_volume - (curr.added_amount_liters or 0.0) - prev.calculated_volume
            daily_rate = abs(delta) / max(1.0, days)

            if daily_rate <= threshold:
                continue

            is_refill = delta > 0 and delta >= refill_volume
            reason = format_anomaly_message(
                self.message_template,
                diff=f"{daily_rate:.1f}",
                limit=f"{threshold:.1f}",
                unit=self.unit,
                text=REFILL_TEXT if is_refill else ANOMALY_TEXT,
            )
            flags.append(FluctuationFlag(
                id=alert_identity(tank.id, prev.timestamp, curr.timestamp),
                tank_id=tank.id,
                tank_name=getattr(tank, "name", None),
                timestamp=curr.timestamp,
                prev_timestamp=prev.timestamp,
                next_timestamp=nxt.timestamp if nxt else None,
                prev_value=prev.calculated_volume,
                current_value=curr.calculated_volume,
                next_value=nxt.calculated_volume if nxt else None,
                delta=delta,
                daily_rate=daily_rate,
                threshold=threshold,
                reason=reason,
                is_possible_refill=is_refill,
                source=source,
            ))

        logger.info(
            f"Fluctuation scan for tank {tank.id}: {len(ordered)} readings, "
            f"threshold {threshold:.1f} L/day, {len(flags)} flagged"
        )
        return flags


def apply_reviews(
    flags: List[FluctuationFlag],
    reviewed: Iterable,
    include_explained: bool = True,
) -> List[FluctuationFlag]:
    """
    Merge saved alert rows into fresh scan output by id.
    Dismissed alerts are dropped; saved notes are attached. With
    include_explained=False, annotated alerts are dropped too.
    """
    by_id: Dict[str, object] = {row.id: row for row in reviewed}
    merged = []
    for flag in flags:
        row = by_id.get(flag.id)
        if row is not None:
            if row.dismissed:
                continue
            flag.note = row.note
        if flag.note and not include_explained:
            continue
        merged.append(flag)
    return merged
