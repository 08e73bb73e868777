from app.models.tank import Tank, SystemType, CalculationMethod, ShapeType, HeadType, InputUnit
from app.models.chemical_supply import ChemicalSupply
from app.models.reading import Reading
from app.models.parameters import CWSParameter, BWSParameter
from app.models.important_note import ImportantNote, NoteCategory
from app.models.fluctuation_alert import FluctuationAlert, AlertSource

__all__ = [
    "Tank",
    "SystemType",
    "CalculationMethod",
    "ShapeType",
    "HeadType",
    "InputUnit",
    "ChemicalSupply",
    "Reading",
    "CWSParameter",
    "BWSParameter",
    "ImportantNote",
    "NoteCategory",
    "FluctuationAlert",
    "AlertSource",
]
