from typing import Dict, List, Optional, Tuple
from datetime import datetime
import csv
import io
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Tank, Reading, ChemicalSupply, FluctuationAlert, AlertSource
from app.schemas import ReadingCreate, ReadingUpdate
from app.services.geometry import (
    calculate_volume, calculate_weight, exceeds_capacity_warning, percent_of_capacity,
)
from app.services.supply_resolver import SupplyResolver
from app.services.fluctuation import FluctuationDetector, FluctuationFlag, apply_reviews

logger = logging.getLogger(__name__)

# Accepted CSV column names
TIME_ALIASES = ['timestamp', 'time', 't', 'date', 'Read Date']
LEVEL_ALIASES = ['level_cm', 'level', 'Level', 'cm', 'percent']
ADDED_ALIASES = ['added_amount_liters', 'added', 'Added']
OPERATOR_ALIASES = ['operator_name', 'operator', 'Operator']

DATE_FORMATS = [
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%Y-%m-%dT%H:%M:%S',
    '%Y/%m/%d %H:%M',
    '%m/%d/%Y %H:%M:%S',
    '%m/%d/%Y %H:%M',
    '%Y-%m-%d',
]


def parse_timestamp(value: str) -> datetime:
    value = value.strip().strip('"')
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized timestamp: {value!r}")


def recompute_snapshots(db: Session, tank: Tank) -> int:
    """Recompute volume / weight of the tank's stored readings. Does not commit."""
    readings = db.query(Reading).filter(Reading.tank_id == tank.id).all()
    for reading in readings:
        volume = calculate_volume(tank, reading.level_cm)
        reading.calculated_volume = volume.volume_liters
        reading.calculated_weight_kg = calculate_weight(volume.volume_liters, reading.applied_sg)
    logger.info(f"Recalculated {len(readings)} readings for tank {tank.id}")
    return len(readings)


class ReadingService:
    """
    Reading writes. The volume / weight snapshot is always computed here from
    level + tank geometry + applied SG; callers cannot set it directly.
    """

    def __init__(self, db: Session, settings):
        self.db = db
        self.settings = settings
        self.resolver = SupplyResolver(db)
        self.detector = FluctuationDetector.from_settings(settings)

    def _tank(self, tank_id: str) -> Tank:
        tank = self.db.get(Tank, tank_id)
        if not tank:
            raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")
        return tank

    def _supply(self, supply_id: str) -> ChemicalSupply:
        supply = self.db.get(ChemicalSupply, supply_id)
        if not supply:
            raise HTTPException(status_code=404, detail=f"Supply not found: {supply_id}")
        return supply

    def calculate(
        self,
        tank: Tank,
        level: float,
        timestamp: datetime,
        applied_sg: Optional[float] = None,
        supply_id: Optional[str] = None,
    ) -> dict:
        """
        Volume / weight snapshot for a level at a point in time.
        SG precedence: manual override, explicit supply, active supply, default.
        """
        volume = calculate_volume(tank, level)

        supply = self._supply(supply_id) if supply_id else self.resolver.resolve(tank.id, timestamp)
        if applied_sg is None:
            if supply is not None:
                applied_sg = supply.specific_gravity
            else:
                applied_sg = self.settings.default_specific_gravity
                logger.warning(
                    f"No active supply for tank {tank.id} at {timestamp}; using default SG {applied_sg}"
                )

        weight = calculate_weight(volume.volume_liters, applied_sg)
        return {
            "calculated_volume": volume.volume_liters,
            "calculated_weight_kg": weight,
            "applied_sg": applied_sg,
            "supply_id": supply.id if supply else None,
            "over_capacity": volume.over_capacity,
        }

    def preview(self, tank_id: str, level: float, timestamp: Optional[datetime], applied_sg: Optional[float]) -> dict:
        tank = self._tank(tank_id)
        snapshot = self.calculate(tank, level, timestamp or datetime.utcnow(), applied_sg)
        percent = percent_of_capacity(tank, snapshot["calculated_volume"])
        return {
            "tank_id": tank.id,
            "level_cm": level,
            **snapshot,
            "percent_full": round(percent, 2),
            "capacity_warning": exceeds_capacity_warning(tank, snapshot["calculated_weight_kg"]),
            "below_safe_level": percent < (tank.safe_min_level or 0),
        }

    def _write(self, payload: ReadingCreate, sg_overridden: Optional[bool] = None) -> Reading:
        tank = self._tank(payload.tank_id)
        snapshot = self.calculate(tank, payload.level_cm, payload.timestamp, payload.applied_sg, payload.supply_id)
        if snapshot.pop("over_capacity"):
            logger.warning(f"Reading for tank {tank.id} at {payload.timestamp} exceeds capacity; clamped")

        reading = self.db.get(Reading, payload.id) if payload.id else None
        if reading is None:
            reading = Reading(id=payload.id) if payload.id else Reading()
            self.db.add(reading)

        reading.tank_id = tank.id
        reading.timestamp = payload.timestamp
        reading.level_cm = payload.level_cm
        reading.added_amount_liters = payload.added_amount_liters
        reading.operator_name = payload.operator_name
        reading.sg_overridden = payload.applied_sg is not None if sg_overridden is None else sg_overridden
        for field, value in snapshot.items():
            setattr(reading, field, value)
        return reading

    def create(self, payload: ReadingCreate) -> Reading:
        if payload.id and self.db.get(Reading, payload.id):
            raise HTTPException(status_code=400, detail=f"Reading already exists: {payload.id}")
        try:
            reading = self._write(payload)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(reading)
        return reading

    def update(self, reading_id: str, payload: ReadingUpdate) -> Reading:
        reading = self.db.get(Reading, reading_id)
        if not reading:
            raise HTTPException(status_code=404, detail="Reading not found")

        changes = payload.model_dump(exclude_unset=True)
        moved = changes.get("timestamp") is not None and changes["timestamp"] != reading.timestamp

        # SG is only re-resolved when the reading moves in time or the supply changes
        if "applied_sg" in changes:
            applied_sg = changes["applied_sg"]
            overridden = applied_sg is not None
        elif reading.sg_overridden:
            applied_sg, overridden = reading.applied_sg, True
        elif moved or "supply_id" in changes:
            applied_sg, overridden = None, False
        else:
            applied_sg, overridden = reading.applied_sg, False

        if "supply_id" in changes:
            supply_id = changes["supply_id"]
        else:
            supply_id = None if moved else reading.supply_id

        merged = ReadingCreate(
            id=reading.id,
            tank_id=reading.tank_id,
            timestamp=changes.get("timestamp") or reading.timestamp,
            level_cm=changes.get("level_cm", reading.level_cm),
            added_amount_liters=changes.get("added_amount_liters", reading.added_amount_liters) or 0.0,
            operator_name=changes.get("operator_name", reading.operator_name),
            applied_sg=applied_sg,
            supply_id=supply_id,
        )
        try:
            reading = self._write(merged, sg_overridden=overridden)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(reading)
        return reading

    def delete(self, reading_id: str) -> None:
        reading = self.db.get(Reading, reading_id)
        if not reading:
            raise HTTPException(status_code=404, detail="Reading not found")
        self.db.delete(reading)
        self.db.commit()

    def create_batch(self, payloads: List[ReadingCreate]) -> Tuple[List[Reading], List[FluctuationFlag]]:
        """
        Insert / update all readings in one transaction; any failure persists
        nothing. The fluctuation scan runs afterwards on committed data.
        """
        try:
            readings = [self._write(p) for p in payloads]
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"Reading batch of {len(payloads)} rolled back")
            raise

        for reading in readings:
            self.db.refresh(reading)
        logger.info(f"Stored {len(readings)} readings")

        flags = self.scan_batch(readings)
        return readings, flags

    def scan_batch(self, readings: List[Reading]) -> List[FluctuationFlag]:
        """Flags that involve at least one of the given readings."""
        keys: Dict[str, set] = {}
        for r in readings:
            keys.setdefault(r.tank_id, set()).add(r.timestamp)

        flags = []
        for tank_id, timestamps in keys.items():
            tank = self._tank(tank_id)
            history = self.db.query(Reading).filter(Reading.tank_id == tank_id).all()
            reviewed = self.db.query(FluctuationAlert).filter(FluctuationAlert.tank_id == tank_id).all()
            scanned = self.detector.scan(tank, history, source=AlertSource.IMPORT.value)
            flags.extend(
                f for f in apply_reviews(scanned, reviewed)
                if f.timestamp in timestamps or f.prev_timestamp in timestamps
            )
        return flags

    def parse_csv(self, content: str, tank_id: str, operator_name: Optional[str] = None) -> List[ReadingCreate]:
        """
        Parse a level CSV. Any bad row rejects the whole file so that an
        import is never partially applied.
        """
        reader = csv.DictReader(io.StringIO(content))
        payloads = []
        for line_no, row in enumerate(reader, start=2):
            ts_key = next((k for k in TIME_ALIASES if k in row), None)
            level_key = next((k for k in LEVEL_ALIASES if k in row), None)
            if not ts_key or not level_key:
                raise HTTPException(status_code=400, detail=f"Line {line_no}: missing timestamp or level column")

            added_key = next((k for k in ADDED_ALIASES if k in row), None)
            operator_key = next((k for k in OPERATOR_ALIASES if k in row), None)
            try:
                payloads.append(ReadingCreate(
                    tank_id=tank_id,
                    timestamp=parse_timestamp(row[ts_key]),
                    level_cm=float(row[level_key]),
                    added_amount_liters=float(row[added_key]) if added_key and row[added_key] else 0.0,
                    operator_name=(row[operator_key] if operator_key else None) or operator_name,
                ))
            except (ValueError, TypeError) as e:
                raise HTTPException(status_code=400, detail=f"Line {line_no}: {e}")

        if not payloads:
            raise HTTPException(status_code=400, detail="No readings found in file")
        return payloads

    def recalculate_tank(self, tank_id: str) -> int:
        """Recompute every stored snapshot of a tank, e.g. after a geometry change."""
        tank = self._tank(tank_id)
        try:
            count = recompute_snapshots(self.db, tank)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return count
