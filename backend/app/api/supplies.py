from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging

from app.database import get_db
from app.models import Tank, ChemicalSupply
from app.schemas import SupplyCreate, SupplyUpdate, SupplyResponse, SupplyBatch
from app.services.supply_resolver import SupplyResolver

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_sg_range(tank: Tank, sg: float) -> None:
    """Reject a specific gravity outside the tank's configured window."""
    if tank.sg_range_min is not None and sg < tank.sg_range_min:
        raise HTTPException(
            status_code=400,
            detail=f"specific_gravity {sg} below range minimum {tank.sg_range_min} for tank {tank.id}",
        )
    if tank.sg_range_max is not None and sg > tank.sg_range_max:
        raise HTTPException(
            status_code=400,
            detail=f"specific_gravity {sg} above range maximum {tank.sg_range_max} for tank {tank.id}",
        )


def _upsert_supply(db: Session, payload: SupplyCreate) -> ChemicalSupply:
    tank = db.get(Tank, payload.tank_id)
    if not tank:
        raise HTTPException(status_code=404, detail=f"Tank not found: {payload.tank_id}")
    _check_sg_range(tank, payload.specific_gravity)

    supply = db.get(ChemicalSupply, payload.id) if payload.id else None
    if supply is None:
        supply = ChemicalSupply(id=payload.id) if payload.id else ChemicalSupply()
        db.add(supply)
    for field, value in payload.model_dump(exclude={"id"}).items():
        setattr(supply, field, value)
    return supply


@router.get("/supplies", response_model=List[SupplyResponse])
async def list_supplies(
    tank_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    query = db.query(ChemicalSupply)
    if tank_id:
        query = query.filter(ChemicalSupply.tank_id == tank_id)
    return query.order_by(ChemicalSupply.start_date.desc(), ChemicalSupply.created_at.desc()).all()


@router.get("/supplies/active", response_model=Optional[SupplyResponse])
async def get_active_supply(
    tank_id: str = Query(...),
    at: Optional[datetime] = Query(None, description="Point in time; defaults to now"),
    db: Session = Depends(get_db)
):
    """The supply contract in force for a tank at a given time (null if none)."""
    if not db.get(Tank, tank_id):
        raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")
    return SupplyResolver(db).resolve(tank_id, at or datetime.utcnow())


@router.post("/supplies", response_model=SupplyResponse, status_code=201)
async def create_supply(payload: SupplyCreate, db: Session = Depends(get_db)):
    if payload.id and db.get(ChemicalSupply, payload.id):
        raise HTTPException(status_code=400, detail=f"Supply already exists: {payload.id}")
    supply = _upsert_supply(db, payload)
    db.commit()
    db.refresh(supply)
    return supply


@router.put("/supplies/{supply_id}", response_model=SupplyResponse)
async def update_supply(supply_id: str, payload: SupplyUpdate, db: Session = Depends(get_db)):
    supply = db.get(ChemicalSupply, supply_id)
    if not supply:
        raise HTTPException(status_code=404, detail="Supply not found")

    data = payload.model_dump(exclude_unset=True)
    if data.get("specific_gravity") is not None:
        _check_sg_range(supply.tank, data["specific_gravity"])
    for field, value in data.items():
        setattr(supply, field, value)
    db.commit()
    db.refresh(supply)
    return supply


@router.delete("/supplies/{supply_id}")
async def delete_supply(supply_id: str, db: Session = Depends(get_db)):
    """Readings keep their applied SG; only the supply link is cleared."""
    supply = db.get(ChemicalSupply, supply_id)
    if not supply:
        raise HTTPException(status_code=404, detail="Supply not found")
    for reading in supply.readings:
        reading.supply_id = None
    db.delete(supply)
    db.commit()
    return {"message": "Supply deleted successfully"}


@router.post("/supplies/batch", response_model=List[SupplyResponse])
async def batch_upsert_supplies(payload: SupplyBatch, db: Session = Depends(get_db)):
    try:
        supplies = [_upsert_supply(db, p) for p in payload.supplies]
        db.commit()
    except Exception:
        db.rollback()
        logger.exception(f"Supply batch of {len(payload.supplies)} rolled back")
        raise
    for supply in supplies:
        db.refresh(supply)
    logger.info(f"Upserted {len(supplies)} supplies")
    return supplies
