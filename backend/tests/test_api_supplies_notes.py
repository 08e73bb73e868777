from app.models import ChemicalSupply, ImportantNote


def supply(id, start, sg=1.2, **extra):
    return {"id": id, "tank_id": "T-1", "supplier_name": "Acme", "specific_gravity": sg, "start_date": start, **extra}


class TestSupplies:
    def test_active_supply(self, make_tank, client):
        make_tank()
        client.post("/api/supplies", json=supply("S-1", "2026-01-01T00:00:00"))
        client.post("/api/supplies", json=supply("S-2", "2026-04-01T00:00:00", sg=1.3))

        active = client.get("/api/supplies/active", params={"tank_id": "T-1", "at": "2026-03-31T23:59:00"}).json()
        assert active["id"] == "S-1"
        active = client.get("/api/supplies/active", params={"tank_id": "T-1", "at": "2026-04-01T00:00:00"}).json()
        assert active["id"] == "S-2"
        assert client.get("/api/supplies/active", params={"tank_id": "T-1", "at": "2025-06-01T00:00:00"}).json() is None

    def test_sg_must_be_positive(self, make_tank, client):
        make_tank()
        assert client.post("/api/supplies", json=supply("S-1", "2026-01-01T00:00:00", sg=0)).status_code == 422

    def test_sg_outside_tank_range_rejected(self, make_tank, client):
        make_tank(sg_range_min=1.1, sg_range_max=1.4)
        response = client.post("/api/supplies", json=supply("S-1", "2026-01-01T00:00:00", sg=1.5))
        assert response.status_code == 400
        assert "specific_gravity" in response.json()["detail"]

    def test_batch_is_all_or_nothing(self, make_tank, client, db):
        make_tank()
        response = client.post("/api/supplies/batch", json={"supplies": [
            supply("S-1", "2026-01-01T00:00:00"),
            {**supply("S-2", "2026-02-01T00:00:00"), "tank_id": "ghost"},
        ]})
        assert response.status_code == 404
        assert db.query(ChemicalSupply).count() == 0

    def test_update_and_delete(self, make_tank, client):
        make_tank()
        client.post("/api/supplies", json=supply("S-1", "2026-01-01T00:00:00"))
        response = client.put("/api/supplies/S-1", json={"price": 52.5})
        assert response.status_code == 200
        assert response.json()["price"] == 52.5
        assert client.delete("/api/supplies/S-1").status_code == 200
        assert client.get("/api/supplies", params={"tank_id": "T-1"}).json() == []

    def test_deleting_supply_keeps_reading_snapshot(self, make_tank, client):
        make_tank()
        client.post("/api/supplies", json=supply("S-1", "2026-01-01T00:00:00"))
        client.post("/api/readings", json={"tank_id": "T-1", "timestamp": "2026-02-01T08:00:00", "level_cm": 50})

        client.delete("/api/supplies/S-1")
        stored = client.get("/api/readings", params={"tank_id": "T-1"}).json()[0]
        assert stored["supply_id"] is None
        assert stored["applied_sg"] == 1.2


class TestNotes:
    def test_crud(self, client, db):
        created = client.post("/api/notes", json={
            "date_str": "2026-03-05", "area": "Cooling tower", "note": "Contract renewed", "category": "CONTRACT",
        })
        assert created.status_code == 201
        note_id = created.json()["id"]

        updated = client.put(f"/api/notes/{note_id}", json={"note": "Contract renewed at new price"})
        assert updated.json()["note"] == "Contract renewed at new price"
        assert updated.json()["category"] == "CONTRACT"

        assert client.delete(f"/api/notes/{note_id}").status_code == 200
        assert client.delete(f"/api/notes/{note_id}").status_code == 404

    def test_invalid_date_rejected(self, client, db):
        assert client.post("/api/notes", json={"date_str": "05/03/2026"}).status_code == 422

    def test_batch_and_year_filter(self, client, db):
        response = client.post("/api/notes/batch", json={"notes": [
            {"date_str": "2025-12-30", "note": "Old"},
            {"date_str": "2026-01-10", "note": "New"},
        ]})
        assert response.status_code == 200
        assert db.query(ImportantNote).count() == 2
        notes = client.get("/api/notes", params={"year": 2026}).json()
        assert [n["note"] for n in notes] == ["New"]

    def test_empty_batch_rejected(self, client, db):
        assert client.post("/api/notes/batch", json={"notes": []}).status_code == 422


class TestNotesTankLink:
    def test_note_for_unknown_tank_is_404(self, client, db):
        response = client.post("/api/notes", json={"date_str": "2026-03-05", "note": "x", "tank_id": "ghost"})
        assert response.status_code == 404
        assert db.query(ImportantNote).count() == 0

    def test_batch_with_unknown_tank_stores_nothing(self, make_tank, client, db):
        make_tank()
        response = client.post("/api/notes/batch", json={"notes": [
            {"date_str": "2026-03-05", "note": "ok", "tank_id": "T-1"},
            {"date_str": "2026-03-06", "note": "bad", "tank_id": "ghost"},
        ]})
        assert response.status_code == 404
        assert db.query(ImportantNote).count() == 0

    def test_update_to_unknown_tank_is_404(self, make_tank, client):
        make_tank()
        created = client.post("/api/notes", json={"date_str": "2026-03-05", "note": "x", "tank_id": "T-1"}).json()
        assert client.put(f"/api/notes/{created['id']}", json={"tank_id": "ghost"}).status_code == 404
        assert client.get("/api/notes").json()[0]["tank_id"] == "T-1"
