from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.config import Settings, get_settings
from app.database import get_db
from app.schemas import TankCreate, TankUpdate, TankResponse, TankReorder, TankLevelResponse
from app.services.tank_service import TankService
from app.services.reading_service import ReadingService

router = APIRouter()


@router.get("/tanks", response_model=List[TankResponse])
async def list_tanks(db: Session = Depends(get_db)):
    """All tanks in display order, with their latest CWS/BWS parameters."""
    return TankService(db).list_tanks()


@router.get("/tanks/{tank_id}", response_model=TankResponse)
async def get_tank(tank_id: str, db: Session = Depends(get_db)):
    return TankService(db).get_or_404(tank_id)


@router.post("/tanks", response_model=TankResponse, status_code=201)
async def create_tank(payload: TankCreate, db: Session = Depends(get_db)):
    return TankService(db).create(payload)


@router.put("/tanks/{tank_id}", response_model=TankResponse)
async def update_tank(tank_id: str, payload: TankUpdate, db: Session = Depends(get_db)):
    return TankService(db).update(tank_id, payload)


@router.delete("/tanks/{tank_id}")
async def delete_tank(tank_id: str, db: Session = Depends(get_db)):
    """Delete a tank with its readings, supplies and parameter history."""
    TankService(db).delete(tank_id)
    return {"message": "Tank deleted successfully"}


@router.post("/tanks/batch", response_model=List[TankResponse])
async def batch_upsert_tanks(payload: List[TankCreate], db: Session = Depends(get_db)):
    return TankService(db).batch_upsert(payload)


@router.put("/tanks-reorder")
async def reorder_tanks(payload: TankReorder, db: Session = Depends(get_db)):
    TankService(db).reorder(payload.updates)
    return {"message": "Tank order updated", "count": len(payload.updates)}


@router.get("/tanks/{tank_id}/current-level", response_model=TankLevelResponse)
async def get_current_level(tank_id: str, db: Session = Depends(get_db)):
    return TankService(db).current_level(tank_id)


@router.post("/tanks/{tank_id}/recalculate")
async def recalculate_readings(
    tank_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Recompute volume and weight of all stored readings.
    Use after changing tank geometry.
    """
    count = ReadingService(db, settings).recalculate_tank(tank_id)
    return {"message": f"Recalculated {count} readings", "count": count}
