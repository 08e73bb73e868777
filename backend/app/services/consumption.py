"""
Chemical consumption: actual usage derived from readings and theoretical
usage from the cooling-water (blowdown) and boiler-water (steam) formulas.
"""
import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

import numpy as np
from sqlalchemy.orm import Session

from app.models import (
    Tank, Reading, ChemicalSupply, CWSParameter, BWSParameter, ImportantNote, CalculationMethod,
)
from app.services.supply_resolver import resolve_active_supply, supplies_effective_between

logger = logging.getLogger(__name__)


def daily_actual_usage(readings: Iterable) -> Dict[date, float]:
    """
    Spread the usage between consecutive readings over the calendar days
    they cover. Usage (kg) = previous weight + added (L x SG) - current weight,
    floored at zero. A day keeps the first value assigned to it.
    """
    ordered = sorted(readings, key=lambda r: (r.timestamp, str(r.id)))
    usage: Dict[date, float] = {}

    for prev, curr in zip(ordered, ordered[1:]):
        diff_days = (curr.timestamp - prev.timestamp).total_seconds() / 86400
        if diff_days <= 0:
            continue

        added_kg = (curr.added_amount_liters or 0.0) * curr.applied_sg
        total_kg = (prev.calculated_weight_kg + added_kg) - curr.calculated_weight_kg
        per_day = max(0.0, total_kg / diff_days)

        cursor = prev.timestamp
        while cursor < curr.timestamp:
            usage.setdefault(cursor.date(), per_day)
            cursor += timedelta(days=1)

    return usage


def calculate_cws_usage(
    circulation_rate: float,
    temp_diff: float,
    concentration_cycles: float,
    target_ppm: float,
    days: float,
) -> float:
    """
    Cooling tower dosing (kg) over `days`.
    E  = R * dT * 1.8 * 24 * days / 1000   (evaporation, m3)
    BW = E / (N - 1)                        (blowdown, 0 when N <= 1)
    kg = BW * ppm / 1000
    """
    evaporation = (circulation_rate * temp_diff * 1.8 * 24 * days) / 1000
    blowdown = evaporation / (concentration_cycles - 1) if concentration_cycles > 1 else 0.0
    return (blowdown * target_ppm) / 1000


def concentration_cycles_for(param) -> float:
    """Hardness ratio when both hardness values are known, else the recorded cycles."""
    if param.cws_hardness and param.makeup_hardness and param.makeup_hardness > 0:
        return param.cws_hardness / param.makeup_hardness
    return param.concentration_cycles or 1.0


def cws_daily_usage(param, target_ppm: float) -> float:
    return calculate_cws_usage(
        param.circulation_rate or 0.0,
        param.temp_diff or 0.0,
        concentration_cycles_for(param),
        target_ppm,
        days=1,
    )


def bws_daily_usage(param, target_ppm: float) -> float:
    # steam_production is the weekly total (tons)
    return ((param.steam_production or 0.0) / 7 * target_ppm) / 1000


def param_covering(history: Iterable, day: datetime, validity_days: int = 7):
    """The latest parameter record whose validity window [date, date + N days) contains `day`."""
    window = timedelta(days=validity_days)
    candidates = [p for p in history if p.date is not None and p.date <= day < p.date + window]
    if not candidates:
        return None
    return max(candidates, key=lambda p: (p.date, p.updated_at or datetime.min, str(p.id)))


class UsageAnalyzer:
    """Monthly and rolling usage summaries for a tank."""

    def __init__(self, db: Session, settings):
        self.db = db
        self.validity_days = settings.param_validity_days

    def _readings(self, tank_id: str) -> List[Reading]:
        return self.db.query(Reading).filter(
            Reading.tank_id == tank_id
        ).order_by(Reading.timestamp, Reading.id).all()

    def _supplies(self, tank_id: str) -> List[ChemicalSupply]:
        return self.db.query(ChemicalSupply).filter(ChemicalSupply.tank_id == tank_id).all()

    def theoretical_daily_usage(self, tank: Tank, day: datetime, supplies, cws_history, bws_history) -> Optional[float]:
        """Theoretical kg for one day; None when no parameter record covers it."""
        supply = resolve_active_supply(supplies, day)
        target_ppm = supply.target_ppm if supply else None
        if not target_ppm:
            return None

        if tank.calculation_method == CalculationMethod.CWS_BLOWDOWN:
            param = param_covering(cws_history, day, self.validity_days)
            return cws_daily_usage(param, target_ppm) if param else None
        if tank.calculation_method == CalculationMethod.BWS_STEAM:
            param = param_covering(bws_history, day, self.validity_days)
            if param and param.steam_production:
                return bws_daily_usage(param, target_ppm)
        return None

    def monthly_summary(self, tank: Tank, year: int, today: Optional[date] = None) -> List[dict]:
        """
        Per-month actual and theoretical usage, price / SG in force and notes.
        Theoretical usage is only computed for days up to `today`.
        """
        today = today or date.today()
        supplies = self._supplies(tank.id)
        daily = daily_actual_usage(self._readings(tank.id))

        has_theory = tank.calculation_method in (CalculationMethod.CWS_BLOWDOWN, CalculationMethod.BWS_STEAM)
        cws_history = self.db.query(CWSParameter).filter(CWSParameter.tank_id == tank.id).all() if has_theory else []
        bws_history = self.db.query(BWSParameter).filter(BWSParameter.tank_id == tank.id).all() if has_theory else []

        notes = self.db.query(ImportantNote).filter(
            ImportantNote.date_str.like(f"{year:04d}-%"),
            (ImportantNote.tank_id == tank.id) | (ImportantNote.tank_id.is_(None)),
        ).order_by(ImportantNote.date_str).all()

        months = []
        for month in range(1, 13):
            days_in_month = calendar.monthrange(year, month)[1]
            month_start = datetime(year, month, 1)
            month_end = month_start + timedelta(days=days_in_month)

            actual = sum(daily.get(date(year, month, d), 0.0) for d in range(1, days_in_month + 1))

            effective = supplies_effective_between(supplies, month_start, month_end)
            latest = effective[-1] if effective else None
            changed = len(effective) > 1 or any(month_start <= s.start_date < month_end for s in effective)

            theory = None
            if has_theory:
                total, has_param = 0.0, False
                for d in range(1, days_in_month + 1):
                    if date(year, month, d) > today:
                        break
                    value = self.theoretical_daily_usage(
                        tank, datetime(year, month, d), supplies, cws_history, bws_history
                    )
                    if value is not None:
                        has_param = True
                        total += value
                theory = total if (has_param and total > 0) else None

            price = latest.price if latest else None
            months.append({
                "month": month,
                "actual_usage_kg": round(actual, 3),
                "theoretical_usage_kg": round(theory, 3) if theory is not None else None,
                "deviation_pct": round((actual - theory) / theory * 100, 1) if theory else None,
                "price": price,
                "specific_gravity": latest.specific_gravity if latest else None,
                "cost": round(actual * price, 2) if (price and actual > 0) else None,
                "supply_changes": [
                    {
                        "supply_id": s.id,
                        "start_date": s.start_date.isoformat(),
                        "price": s.price,
                        "specific_gravity": s.specific_gravity,
                    }
                    for s in effective
                ] if changed else [],
                "notes": [
                    {"id": n.id, "date_str": n.date_str, "area": n.area, "note": n.note}
                    for n in notes if n.date_str and n.date_str[5:7] == f"{month:02d}"
                ],
            })

        logger.info(f"Monthly summary for tank {tank.id} / {year}: {len(daily)} days with usage")
        return months

    def usage_stats(self, tank: Tank, days: int = 30, as_of: Optional[date] = None) -> dict:
        """Mean / spread of daily usage over the last `days` days."""
        as_of = as_of or date.today()
        start = as_of - timedelta(days=days)
        readings = self._readings(tank.id)
        daily = daily_actual_usage(readings)

        series = [
            {"date": d.isoformat(), "usage_kg": round(v, 3)}
            for d, v in sorted(daily.items()) if start <= d <= as_of
        ]
        values = np.array([s["usage_kg"] for s in series], dtype=float)

        if values.size == 0:
            return {
                "daily_usage": [],
                "total_usage_kg": 0,
                "avg_daily_usage_kg": 0,
                "std_daily_usage_kg": 0,
                "max_daily_usage_kg": 0,
                "days_analyzed": 0,
                "target_daily_usage": tank.target_daily_usage,
                "estimated_days_remaining": None,
            }

        avg = float(np.mean(values))
        latest_weight = readings[-1].calculated_weight_kg if readings else None
        return {
            "daily_usage": series,
            "total_usage_kg": round(float(np.sum(values)), 2),
            "avg_daily_usage_kg": round(avg, 2),
            "std_daily_usage_kg": round(float(np.std(values)), 2),
            "max_daily_usage_kg": round(float(np.max(values)), 2),
            "days_analyzed": int(values.size),
            "target_daily_usage": tank.target_daily_usage,
            "estimated_days_remaining": round(latest_weight / avg, 1) if (latest_weight is not None and avg > 0) else None,
        }
