from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.config import settings
from app.api import tanks, readings, supplies, parameters, notes, alerts, analysis, system
from app.services.geometry import CalculationError


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting application...")
    # Schema is managed by Alembic migrations
    yield
    # Shutdown
    logger.info("Shutting down application...")


app = FastAPI(
    title="Water Treatment Chemical Tank Manager",
    description="Track chemical tank levels, supplies and dosing parameters",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CalculationError)
async def calculation_error_handler(request: Request, exc: CalculationError):
    logger.warning(f"Calculation rejected for {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database error"})


# Include routers
prefix = settings.api_prefix
app.include_router(tanks.router, prefix=prefix, tags=["Tanks"])
app.include_router(readings.router, prefix=prefix, tags=["Readings"])
app.include_router(supplies.router, prefix=prefix, tags=["Supplies"])
app.include_router(parameters.cws_router, prefix=prefix, tags=["CWS Parameters"])
app.include_router(parameters.bws_router, prefix=prefix, tags=["BWS Parameters"])
app.include_router(notes.router, prefix=prefix, tags=["Notes"])
app.include_router(alerts.router, prefix=prefix, tags=["Fluctuation Alerts"])
app.include_router(analysis.router, prefix=prefix, tags=["Analysis"])
app.include_router(system.router, prefix=prefix, tags=["System"])


@app.get("/")
async def root():
    return {"message": "Water Treatment Chemical Tank Manager API", "docs": "/docs"}
