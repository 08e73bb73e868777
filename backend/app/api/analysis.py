from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional

from app.config import Settings, get_settings
from app.database import get_db
from app.models import Tank, Reading
from app.schemas import FluctuationResult
from app.services.alert_service import AlertService
from app.services.consumption import UsageAnalyzer
from app.services.summarizer import Summarizer, get_summarizer, generate_report

router = APIRouter()


class ReportRequest(BaseModel):
    tank_id: str
    days: int = 30


def _tank_or_404(db: Session, tank_id: str) -> Tank:
    tank = db.get(Tank, tank_id)
    if not tank:
        raise HTTPException(status_code=404, detail=f"Tank not found: {tank_id}")
    return tank


@router.get("/analysis/fluctuations", response_model=List[FluctuationResult])
async def get_fluctuations(
    tank_id: Optional[str] = Query(None, description="Limit to one tank"),
    threshold: Optional[float] = Query(None, gt=0, le=100, description="Override threshold (% of capacity per day)"),
    include_explained: bool = Query(True, description="Include alerts that already carry a note"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Scan readings for abnormal day-to-day volume changes.
    Dismissed alerts are hidden; saved notes are merged in.
    """
    flags = AlertService(db, settings).scan(tank_id, threshold, include_explained)
    return [f.to_dict() for f in flags]


@router.get("/analysis/monthly-usage")
async def get_monthly_usage(
    tank_id: str = Query(...),
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Actual vs theoretical usage, price and SG per month of a year."""
    tank = _tank_or_404(db, tank_id)
    year = year or date.today().year
    months = UsageAnalyzer(db, settings).monthly_summary(tank, year)
    return {"tank_id": tank.id, "tank_name": tank.name, "year": year, "months": months}


@router.get("/analysis/usage-stats")
async def get_usage_stats(
    tank_id: str = Query(...),
    days: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    tank = _tank_or_404(db, tank_id)
    stats = UsageAnalyzer(db, settings).usage_stats(tank, days)
    return {"tank_id": tank.id, "days": days, **stats}


@router.post("/analysis/report")
async def create_usage_report(
    payload: ReportRequest,
    db: Session = Depends(get_db),
    summarizer: Summarizer = Depends(get_summarizer),
):
    """Narrative usage analysis from an external text-completion service."""
    tank = _tank_or_404(db, payload.tank_id)
    readings = db.query(Reading).filter(Reading.tank_id == tank.id).all()
    return await generate_report(summarizer, tank, readings, payload.days)
