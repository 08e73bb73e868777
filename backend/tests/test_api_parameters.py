import pytest


@pytest.fixture()
def cws_tank(make_tank):
    return make_tank(calculation_method="CWS_BLOWDOWN")


def post_cws(client, date, rate):
    response = client.post("/api/cws-params", json={
        "tank_id": "T-1", "circulation_rate": rate, "temp_diff": 5, "concentration_cycles": 4, "date": date,
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_history_newest_first(cws_tank, client):
    post_cws(client, "2026-03-02T00:00:00", 1000)
    post_cws(client, "2026-03-09T00:00:00", 1100)

    history = client.get("/api/cws-params/history/T-1").json()
    assert [h["circulation_rate"] for h in history] == [1100, 1000]
    assert client.get("/api/cws-params/T-1").json()["circulation_rate"] == 1100
    assert client.get("/api/tanks/T-1").json()["cws_params"]["circulation_rate"] == 1100


def test_same_day_entry_replaces_existing(cws_tank, client):
    post_cws(client, "2026-03-02T00:00:00", 1000)
    post_cws(client, "2026-03-02T15:30:00", 1250)

    history = client.get("/api/cws-params/history/T-1").json()
    assert len(history) == 1
    assert history[0]["circulation_rate"] == 1250


def test_update_and_delete_record(cws_tank, client):
    record = post_cws(client, "2026-03-02T00:00:00", 1000)

    response = client.put(f"/api/cws-params/{record['id']}", json={"circulation_rate": 900})
    assert response.status_code == 200
    assert response.json()["circulation_rate"] == 900
    assert response.json()["date"] == "2026-03-02T00:00:00"

    assert client.delete(f"/api/cws-params/{record['id']}").status_code == 200
    assert client.get("/api/cws-params/history/T-1").json() == []
    assert client.delete(f"/api/cws-params/{record['id']}").status_code == 404


def test_negative_values_rejected(cws_tank, client):
    response = client.post("/api/cws-params", json={"tank_id": "T-1", "circulation_rate": -1})
    assert response.status_code == 422


def test_unknown_tank(client, db):
    response = client.post("/api/bws-params", json={"tank_id": "ghost", "steam_production": 100})
    assert response.status_code == 404


def test_bws_history(make_tank, client):
    make_tank(system_type="BOILER", calculation_method="BWS_STEAM")
    client.post("/api/bws-params", json={"tank_id": "T-1", "steam_production": 700, "date": "2026-03-02T00:00:00"})
    client.post("/api/bws-params", json={"tank_id": "T-1", "steam_production": 650, "date": "2026-03-09T00:00:00"})

    assert len(client.get("/api/bws-params/history/T-1").json()) == 2
    tank = client.get("/api/tanks/T-1").json()
    assert tank["bws_params"]["steam_production"] == 650
    assert tank["cws_params"] is None


def test_latest_is_null_without_records(cws_tank, client):
    response = client.get("/api/cws-params/T-1")
    assert response.status_code == 200
    assert response.json() is None


def test_temperature_edit_recomputes_difference(cws_tank, client):
    record = client.post("/api/cws-params", json={
        "tank_id": "T-1", "circulation_rate": 1000, "temp_outlet": 30, "temp_return": 40,
        "date": "2026-03-02T00:00:00",
    }).json()
    assert record["temp_diff"] == 10

    response = client.put(f"/api/cws-params/{record['id']}", json={"temp_return": 45})
    assert response.status_code == 200
    assert response.json()["temp_diff"] == 15
    assert client.get("/api/cws-params/T-1").json()["temp_diff"] == 15


def test_moving_record_onto_existing_day_replaces_it(cws_tank, client):
    post_cws(client, "2026-03-02T00:00:00", 1000)
    later = post_cws(client, "2026-03-09T00:00:00", 1100)

    response = client.put(f"/api/cws-params/{later['id']}", json={"date": "2026-03-02T12:00:00"})
    assert response.status_code == 200

    history = client.get("/api/cws-params/history/T-1").json()
    assert [h["id"] for h in history] == [later["id"]]
    assert history[0]["circulation_rate"] == 1100
