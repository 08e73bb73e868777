from app.schemas.tank import (
    TankDimensions, TankCreate, TankUpdate, TankResponse, TankReorder, TankReorderItem, TankLevelResponse,
)
from app.schemas.reading import (
    ReadingCreate, ReadingUpdate, ReadingResponse, ReadingBatch,
    ReadingCalculationRequest, ReadingCalculationResponse,
)
from app.schemas.supply import SupplyCreate, SupplyUpdate, SupplyResponse, SupplyBatch
from app.schemas.parameters import (
    CWSParamBase, CWSParamCreate, CWSParamUpdate, CWSParamResponse,
    BWSParamBase, BWSParamCreate, BWSParamUpdate, BWSParamResponse,
)
from app.schemas.note import NoteCreate, NoteUpdate, NoteResponse, NoteBatch
from app.schemas.alert import AlertCreate, AlertNoteUpdate, AlertResponse, AlertBatch, AlertIds, FluctuationResult

__all__ = [
    "TankDimensions", "TankCreate", "TankUpdate", "TankResponse", "TankReorder", "TankReorderItem", "TankLevelResponse",
    "ReadingCreate", "ReadingUpdate", "ReadingResponse", "ReadingBatch",
    "ReadingCalculationRequest", "ReadingCalculationResponse",
    "SupplyCreate", "SupplyUpdate", "SupplyResponse", "SupplyBatch",
    "CWSParamBase", "CWSParamCreate", "CWSParamUpdate", "CWSParamResponse",
    "BWSParamBase", "BWSParamCreate", "BWSParamUpdate", "BWSParamResponse",
    "NoteCreate", "NoteUpdate", "NoteResponse", "NoteBatch",
    "AlertCreate", "AlertNoteUpdate", "AlertResponse", "AlertBatch", "AlertIds", "FluctuationResult",
]
