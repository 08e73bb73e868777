from datetime import datetime
from types import SimpleNamespace

from app.services.supply_resolver import resolve_active_supply, supplies_effective_between


def supply(id, start, created=None, sg=1.0):
    return SimpleNamespace(id=id, start_date=start, created_at=created, specific_gravity=sg)


SUPPLIES = [
    supply("a", datetime(2026, 1, 1)),
    supply("b", datetime(2026, 3, 1)),
    supply("c", datetime(2026, 6, 1)),
]


def test_latest_started_supply_wins():
    assert resolve_active_supply(SUPPLIES, datetime(2026, 4, 15)).id == "b"


def test_start_date_is_inclusive():
    assert resolve_active_supply(SUPPLIES, datetime(2026, 6, 1)).id == "c"


def test_none_before_first_contract():
    assert resolve_active_supply(SUPPLIES, datetime(2025, 12, 31)) is None


def test_same_start_date_later_created_wins():
    same_day = [
        supply("x", datetime(2026, 2, 1), created=datetime(2026, 1, 20)),
        supply("y", datetime(2026, 2, 1), created=datetime(2026, 1, 25)),
    ]
    assert resolve_active_supply(same_day, datetime(2026, 2, 2)).id == "y"
    assert resolve_active_supply(list(reversed(same_day)), datetime(2026, 2, 2)).id == "y"


def test_full_tie_greater_id_wins():
    created = datetime(2026, 1, 20)
    tied = [supply("k1", datetime(2026, 2, 1), created), supply("k2", datetime(2026, 2, 1), created)]
    assert resolve_active_supply(tied, datetime(2026, 2, 1)).id == "k2"


def test_effective_between_includes_carried_over_contract():
    effective = supplies_effective_between(SUPPLIES, datetime(2026, 3, 1), datetime(2026, 4, 1))
    assert [s.id for s in effective] == ["b"]

    effective = supplies_effective_between(SUPPLIES, datetime(2026, 5, 1), datetime(2026, 7, 1))
    assert [s.id for s in effective] == ["b", "c"]
