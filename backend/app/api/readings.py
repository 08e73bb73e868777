from fastapi import APIRouter, Depends, UploadFile, File, Query, HTTPException
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from app.config import Settings, get_settings
from app.database import get_db
from app.models import Reading
from app.schemas import (
    ReadingCreate, ReadingUpdate, ReadingResponse, ReadingBatch,
    ReadingCalculationRequest, ReadingCalculationResponse,
)
from app.services.reading_service import ReadingService

router = APIRouter()


def _batch_result(readings, flags) -> dict:
    return {
        "saved": len(readings),
        "readings": [ReadingResponse.model_validate(r) for r in readings],
        "fluctuations": [f.to_dict() for f in flags],
    }


@router.get("/readings", response_model=List[ReadingResponse])
async def list_readings(
    tank_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound"),
    db: Session = Depends(get_db)
):
    query = db.query(Reading)
    if tank_id:
        query = query.filter(Reading.tank_id == tank_id)
    if start:
        query = query.filter(Reading.timestamp >= start)
    if end:
        query = query.filter(Reading.timestamp <= end)
    return query.order_by(Reading.timestamp, Reading.id).all()


@router.post("/readings", response_model=ReadingResponse, status_code=201)
async def create_reading(
    payload: ReadingCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return ReadingService(db, settings).create(payload)


@router.put("/readings/{reading_id}", response_model=ReadingResponse)
async def update_reading(
    reading_id: str,
    payload: ReadingUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Edit a reading; volume and weight are recomputed."""
    return ReadingService(db, settings).update(reading_id, payload)


@router.delete("/readings/{reading_id}")
async def delete_reading(
    reading_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    ReadingService(db, settings).delete(reading_id)
    return {"message": "Reading deleted successfully"}


@router.post("/readings/batch")
async def batch_create_readings(
    payload: ReadingBatch,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Import many readings at once. All or nothing: if any reading fails
    validation or calculation, none are stored.
    Returns the fluctuations involving the imported readings.
    """
    if not payload.readings:
        raise HTTPException(status_code=400, detail="No readings provided")
    readings, flags = ReadingService(db, settings).create_batch(payload.readings)
    return _batch_result(readings, flags)


@router.post("/readings/upload")
async def upload_readings_csv(
    file: UploadFile = File(...),
    tank_id: str = Query(..., description="Tank the readings belong to"),
    operator_name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a level CSV (timestamp, level_cm[, added_amount_liters, operator_name]).
    A malformed row rejects the whole file.
    """
    content = await file.read()
    try:
        text = content.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded")

    service = ReadingService(db, settings)
    payloads = service.parse_csv(text, tank_id, operator_name)
    readings, flags = service.create_batch(payloads)
    return _batch_result(readings, flags)


@router.post("/readings/calculate", response_model=ReadingCalculationResponse)
async def calculate_reading(
    payload: ReadingCalculationRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Preview volume / weight for a level without storing anything."""
    return ReadingService(db, settings).preview(
        payload.tank_id, payload.level_cm, payload.timestamp, payload.applied_sg
    )
