from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models import CWSParameter, BWSParameter
from app.schemas import (
    CWSParamCreate, CWSParamUpdate, CWSParamResponse,
    BWSParamCreate, BWSParamUpdate, BWSParamResponse,
)
from app.services.parameter_service import ParameterService

cws_router = APIRouter()
bws_router = APIRouter()


# Cooling water system (blowdown) parameters

@cws_router.get("/cws-params/history/{tank_id}", response_model=List[CWSParamResponse])
async def get_cws_history(tank_id: str, db: Session = Depends(get_db)):
    """All weekly CWS records for a tank, newest first."""
    return ParameterService(db).history(CWSParameter, tank_id)


@cws_router.get("/cws-params/{tank_id}", response_model=Optional[CWSParamResponse])
async def get_latest_cws(tank_id: str, db: Session = Depends(get_db)):
    return ParameterService(db).latest(CWSParameter, tank_id)


@cws_router.post("/cws-params", response_model=CWSParamResponse, status_code=201)
async def create_cws(payload: CWSParamCreate, db: Session = Depends(get_db)):
    """Record CWS parameters; an existing record of the same day is replaced."""
    return ParameterService(db).add_cws(payload.tank_id, payload)


@cws_router.put("/cws-params/{record_id}", response_model=CWSParamResponse)
async def update_cws(record_id: str, payload: CWSParamUpdate, db: Session = Depends(get_db)):
    return ParameterService(db).update(CWSParameter, record_id, payload)


@cws_router.delete("/cws-params/{record_id}")
async def delete_cws(record_id: str, db: Session = Depends(get_db)):
    ParameterService(db).delete(CWSParameter, record_id)
    return {"message": "CWS parameter record deleted"}


# Boiler water system (steam) parameters

@bws_router.get("/bws-params/history/{tank_id}", response_model=List[BWSParamResponse])
async def get_bws_history(tank_id: str, db: Session = Depends(get_db)):
    return ParameterService(db).history(BWSParameter, tank_id)


@bws_router.get("/bws-params/{tank_id}", response_model=Optional[BWSParamResponse])
async def get_latest_bws(tank_id: str, db: Session = Depends(get_db)):
    return ParameterService(db).latest(BWSParameter, tank_id)


@bws_router.post("/bws-params", response_model=BWSParamResponse, status_code=201)
async def create_bws(payload: BWSParamCreate, db: Session = Depends(get_db)):
    return ParameterService(db).add_bws(payload.tank_id, payload)


@bws_router.put("/bws-params/{record_id}", response_model=BWSParamResponse)
async def update_bws(record_id: str, payload: BWSParamUpdate, db: Session = Depends(get_db)):
    return ParameterService(db).update(BWSParameter, record_id, payload)


@bws_router.delete("/bws-params/{record_id}")
async def delete_bws(record_id: str, db: Session = Depends(get_db)):
    ParameterService(db).delete(BWSParameter, record_id)
    return {"message": "BWS parameter record deleted"}
