from typing import List, Optional
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models import Tank, Reading, CalculationMethod
from app.schemas import TankCreate, TankUpdate, TankReorderItem
from app.services.geometry import percent_of_capacity, validate_geometry
from app.services.parameter_service import ParameterService
from app.services.reading_service import recompute_snapshots

logger = logging.getLogger(__name__)

TANK_FIELDS = (
    "name", "system_type", "capacity_liters", "geo_factor", "description", "safe_min_level",
    "target_daily_usage", "calculation_method", "shape_type", "dimensions", "input_unit",
    "sort_order", "validation_threshold", "max_capacity_warning_kg", "sg_range_min", "sg_range_max",
)

# Fields the stored reading snapshots are derived from
GEOMETRY_FIELDS = ("capacity_liters", "geo_factor", "shape_type", "dimensions", "input_unit")


class TankService:
    def __init__(self, db: Session):
        self.db = db
        self.params = ParameterService(db)

    def get_or_404(self, tank_id: str) -> Tank:
        tank = self.db.query(Tank).filter(Tank.id == tank_id).first()
        if not tank:
            raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")
        return tank

    def list_tanks(self) -> List[Tank]:
        return self.db.query(Tank).order_by(Tank.sort_order, Tank.name).all()

    def _apply(self, tank: Tank, data: dict) -> None:
        """
        Copy fields onto the tank. A geometry change is validated and the
        tank's stored readings are recomputed in the same transaction.
        """
        if data.get("dimensions"):
            data["dimensions"] = {k: v for k, v in data["dimensions"].items() if v is not None}
        before = {field: getattr(tank, field) for field in GEOMETRY_FIELDS}
        for field in TANK_FIELDS:
            if field in data:
                setattr(tank, field, data[field])

        if any(getattr(tank, field) != before[field] for field in GEOMETRY_FIELDS):
            validate_geometry(tank)
            if tank.id is not None:
                self.db.flush()
                count = recompute_snapshots(self.db, tank)
                if count:
                    logger.info(f"Geometry of tank {tank.id} changed; {count} readings recomputed")

    def _save_params(self, tank: Tank, payload) -> None:
        """Store the nested parameter record that matches the tank's method."""
        if tank.calculation_method == CalculationMethod.CWS_BLOWDOWN and payload.cws_params:
            self.params.add_cws(tank.id, payload.cws_params, commit=False)
        elif tank.calculation_method == CalculationMethod.BWS_STEAM and payload.bws_params:
            self.params.add_bws(tank.id, payload.bws_params, commit=False)

    def _upsert(self, payload: TankCreate) -> Tank:
        data = payload.model_dump(mode="json", exclude={"id", "cws_params", "bws_params"})
        tank = self.db.get(Tank, payload.id) if payload.id else None
        if tank is None:
            tank = Tank(id=payload.id) if payload.id else Tank()
            self.db.add(tank)
        self._apply(tank, data)
        self.db.flush()
        self._save_params(tank, payload)
        return tank

    def create(self, payload: TankCreate) -> Tank:
        if payload.id and self.db.get(Tank, payload.id):
            raise HTTPException(status_code=400, detail=f"Tank already exists: {payload.id}")
        try:
            tank = self._upsert(payload)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(tank)
        return tank

    def update(self, tank_id: str, payload: TankUpdate) -> Tank:
        tank = self.get_or_404(tank_id)
        data = payload.model_dump(mode="json", exclude_unset=True, exclude={"cws_params", "bws_params"})
        try:
            self._apply(tank, data)
            self.db.flush()
            self._save_params(tank, payload)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(tank)
        return tank

    def delete(self, tank_id: str) -> Tank:
        tank = self.get_or_404(tank_id)
        self.db.delete(tank)
        self.db.commit()
        return tank

    def batch_upsert(self, payloads: List[TankCreate]) -> List[Tank]:
        """Insert or update all tanks (and their parameters) in one transaction."""
        try:
            tanks = [self._upsert(p) for p in payloads]
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(f"Tank batch of {len(payloads)} rolled back")
            raise
        for tank in tanks:
            self.db.refresh(tank)
        logger.info(f"Upserted {len(tanks)} tanks")
        return tanks

    def reorder(self, updates: List[TankReorderItem]) -> None:
        """Assign new sort indexes; any unknown id aborts the whole reorder."""
        try:
            for item in updates:
                tank = self.db.get(Tank, item.id)
                if tank is None:
                    raise HTTPException(status_code=404, detail=f"Tank not found: {item.id}")
                tank.sort_order = item.sort_order
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def current_level(self, tank_id: str) -> dict:
        tank = self.get_or_404(tank_id)
        reading: Optional[Reading] = self.db.query(Reading).filter(
            Reading.tank_id == tank_id
        ).order_by(Reading.timestamp.desc()).first()

        if not reading:
            return {
                "tank_id": tank.id,
                "capacity_liters": tank.capacity_liters,
                "safe_min_level": tank.safe_min_level,
            }

        percent = percent_of_capacity(tank, reading.calculated_volume)
        return {
            "tank_id": tank.id,
            "current_volume": round(reading.calculated_volume, 2),
            "current_weight_kg": round(reading.calculated_weight_kg, 2),
            "capacity_liters": tank.capacity_liters,
            "percent_full": round(percent, 1),
            "safe_min_level": tank.safe_min_level,
            "below_safe_level": percent < (tank.safe_min_level or 0),
            "last_reading": reading.timestamp,
        }
