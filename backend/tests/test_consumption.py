from datetime import date, datetime
from types import SimpleNamespace

import pytest

from app.services.consumption import (
    bws_daily_usage, calculate_cws_usage, concentration_cycles_for, cws_daily_usage,
    daily_actual_usage, param_covering,
)


def reading(id, ts, weight, added=0.0, sg=1.0):
    return SimpleNamespace(id=id, timestamp=ts, calculated_weight_kg=weight, added_amount_liters=added, applied_sg=sg)


def cws(**kwargs):
    defaults = dict(circulation_rate=1000.0, temp_diff=5.0, cws_hardness=None, makeup_hardness=None,
                    concentration_cycles=5.0, date=datetime(2026, 1, 1), updated_at=None, id="p")
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def test_cws_formula():
    # E = 1000 * 5 * 1.8 * 24 / 1000 = 216 m3, B = 216 / 4 = 54 m3, 54 * 10 / 1000 kg
    assert calculate_cws_usage(1000, 5, 5, 10, days=1) == pytest.approx(0.54)
    assert calculate_cws_usage(1000, 5, 5, 10, days=7) == pytest.approx(3.78)


def test_cws_no_blowdown_at_one_cycle():
    assert calculate_cws_usage(1000, 5, 1, 10, days=1) == 0.0


def test_cycles_from_hardness_ratio():
    assert concentration_cycles_for(cws(cws_hardness=400.0, makeup_hardness=100.0)) == 4.0
    assert concentration_cycles_for(cws(cws_hardness=400.0, makeup_hardness=None)) == 5.0


def test_cws_daily_usage_uses_hardness_cycles():
    param = cws(cws_hardness=300.0, makeup_hardness=100.0)
    # cycles = 3 -> B = 216 / 2 = 108
    assert cws_daily_usage(param, 10) == pytest.approx(1.08)


def test_bws_formula():
    param = SimpleNamespace(steam_production=700.0)
    assert bws_daily_usage(param, 20) == pytest.approx(2.0)


def test_daily_usage_spread_over_days():
    readings = [
        reading("r1", datetime(2026, 1, 1), 1000.0),
        reading("r2", datetime(2026, 1, 3), 800.0),
    ]
    usage = daily_actual_usage(readings)
    assert usage == {date(2026, 1, 1): pytest.approx(100.0), date(2026, 1, 2): pytest.approx(100.0)}


def test_daily_usage_counts_added_chemical():
    readings = [
        reading("r1", datetime(2026, 1, 1), 200.0),
        reading("r2", datetime(2026, 1, 2), 1100.0, added=1000.0, sg=1.0),
    ]
    assert daily_actual_usage(readings)[date(2026, 1, 1)] == pytest.approx(100.0)


def test_daily_usage_never_negative():
    readings = [reading("r1", datetime(2026, 1, 1), 200.0), reading("r2", datetime(2026, 1, 2), 900.0)]
    assert daily_actual_usage(readings)[date(2026, 1, 1)] == 0.0


def test_param_validity_window():
    history = [cws(id="a", date=datetime(2026, 1, 1)), cws(id="b", date=datetime(2026, 1, 8))]
    assert param_covering(history, datetime(2026, 1, 7, 23), 7).id == "a"
    assert param_covering(history, datetime(2026, 1, 8), 7).id == "b"
    assert param_covering(history, datetime(2026, 1, 15), 7) is None
    assert param_covering(history, datetime(2025, 12, 31), 7) is None
