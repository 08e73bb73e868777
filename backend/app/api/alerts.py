from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config import Settings, get_settings
from app.database import get_db
from app.schemas import AlertCreate, AlertNoteUpdate, AlertResponse, AlertBatch, AlertIds
from app.services.alert_service import AlertService

router = APIRouter()


@router.get("/alerts", response_model=List[AlertResponse])
async def list_alerts(
    tank_id: Optional[str] = Query(None),
    include_dismissed: bool = Query(False),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Saved (annotated or dismissed) fluctuation alerts."""
    return AlertService(db, settings).list_saved(tank_id, include_dismissed)


@router.post("/alerts", response_model=AlertResponse, status_code=201)
async def save_alert(
    payload: AlertCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Save an alert; re-saving an existing id updates it and clears dismissal."""
    return AlertService(db, settings).save(payload)


@router.post("/alerts/batch", response_model=List[AlertResponse])
async def save_alerts(
    payload: AlertBatch,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return AlertService(db, settings).save_batch(payload.alerts)


@router.post("/alerts/batch-delete")
async def dismiss_alerts(
    payload: AlertIds,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    count = AlertService(db, settings).dismiss_many(payload.ids, payload.threshold)
    return {"message": f"Dismissed {count} alerts", "count": count}


@router.put("/alerts/{alert_id}", response_model=AlertResponse)
async def annotate_alert(
    alert_id: str,
    payload: AlertNoteUpdate,
    threshold: Optional[float] = Query(None, gt=0, le=100, description="Threshold the alert was scanned with"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return AlertService(db, settings).annotate(alert_id, payload.note, threshold)


@router.delete("/alerts/{alert_id}")
async def dismiss_alert(
    alert_id: str,
    threshold: Optional[float] = Query(None, gt=0, le=100, description="Threshold the alert was scanned with"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    AlertService(db, settings).dismiss(alert_id, threshold)
    return {"message": "Alert dismissed"}
