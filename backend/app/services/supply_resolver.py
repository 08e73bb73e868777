from datetime import datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from app.models import ChemicalSupply

logger = logging.getLogger(__name__)


def _precedence(supply):
    # Same start date: the later-created contract wins, then the greater id
    return (supply.start_date, supply.created_at or datetime.min, str(supply.id))


def resolve_active_supply(supplies: Iterable, at: datetime) -> Optional[ChemicalSupply]:
    """
    Return the contract in force at `at`: the latest start_date that is not
    after `at`. None when no contract has started yet.
    """
    started = [s for s in supplies if s.start_date is not None and s.start_date <= at]
    if not started:
        return None
    return max(started, key=_precedence)


def supplies_effective_between(supplies: Iterable, period_start: datetime, period_end: datetime) -> List:
    """
    Contracts in force at any moment of [period_start, period_end), oldest first.
    A contract stays in force until the next one starts.
    """
    ordered = sorted(supplies, key=_precedence)
    effective = []
    for i, supply in enumerate(ordered):
        next_start = ordered[i + 1].start_date if i + 1 < len(ordered) else None
        if supply.start_date < period_end and (next_start is None or next_start > period_start):
            effective.append(supply)
    return effective


class SupplyResolver:
    """Database-backed wrapper around resolve_active_supply."""

    def __init__(self, db: Session):
        self.db = db
        self._cache = {}

    def supplies_for(self, tank_id: str) -> List[ChemicalSupply]:
        if tank_id not in self._cache:
            self._cache[tank_id] = self.db.query(ChemicalSupply).filter(
                ChemicalSupply.tank_id == tank_id
            ).all()
        return self._cache[tank_id]

    def resolve(self, tank_id: str, at: datetime) -> Optional[ChemicalSupply]:
        supply = resolve_active_supply(self.supplies_for(tank_id), at)
        if supply is None:
            logger.debug(f"No active supply for tank {tank_id} at {at}")
        return supply
