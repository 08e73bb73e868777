import asyncio

import httpx
import pytest

from app.main import app
from app.services.summarizer import HttpSummarizer, DisabledSummarizer, get_summarizer, INSUFFICIENT_DATA


@pytest.fixture()
def readings(make_tank, client):
    make_tank()
    client.post("/api/readings/batch", json={"readings": [
        {"tank_id": "T-1", "timestamp": "2026-03-01T08:00:00", "level_cm": 150},
        {"tank_id": "T-1", "timestamp": "2026-03-02T08:00:00", "level_cm": 50},
        {"tank_id": "T-1", "timestamp": "2026-03-03T08:00:00", "level_cm": 190},
    ]})


class TestFluctuationScan:
    def test_scan_reports_both_jumps(self, readings, client):
        flags = client.get("/api/analysis/fluctuations", params={"tank_id": "T-1"}).json()
        assert [f["date_str"] for f in flags] == ["2026-03-02", "2026-03-03"]
        assert flags[0]["source"] == "MANUAL"
        assert flags[0]["next_value"] == 1900

    def test_threshold_override(self, readings, client):
        flags = client.get("/api/analysis/fluctuations", params={"tank_id": "T-1", "threshold": 80}).json()
        assert flags == []

    def test_unknown_tank(self, client, db):
        assert client.get("/api/analysis/fluctuations", params={"tank_id": "ghost"}).status_code == 404

    def test_saved_note_survives_rescan(self, readings, client):
        flag = client.get("/api/analysis/fluctuations").json()[0]
        saved = client.post("/api/alerts", json={
            "id": flag["id"], "tank_id": "T-1", "date_str": flag["date_str"], "reason": flag["reason"],
            "current_value": flag["current_value"], "prev_value": flag["prev_value"],
        })
        assert saved.status_code == 201
        client.put(f"/api/alerts/{flag['id']}", json={"note": "Drained for inspection"})

        rescanned = client.get("/api/analysis/fluctuations").json()
        assert rescanned[0]["id"] == flag["id"]
        assert rescanned[0]["note"] == "Drained for inspection"

        unexplained = client.get("/api/analysis/fluctuations", params={"include_explained": False}).json()
        assert flag["id"] not in [f["id"] for f in unexplained]

    def test_dismissed_alert_stays_hidden(self, readings, client):
        flags = client.get("/api/analysis/fluctuations").json()
        client.post("/api/alerts/batch", json={"alerts": [
            {"id": f["id"], "tank_id": "T-1", "date_str": f["date_str"]} for f in flags
        ]})

        assert client.delete(f"/api/alerts/{flags[0]['id']}").status_code == 200
        remaining = client.get("/api/analysis/fluctuations").json()
        assert [f["id"] for f in remaining] == [flags[1]["id"]]

        response = client.post("/api/alerts/batch-delete", json={"ids": [flags[1]["id"]]})
        assert response.json()["count"] == 1
        assert client.get("/api/analysis/fluctuations").json() == []
        assert client.get("/api/alerts").json() == []
        assert len(client.get("/api/alerts", params={"include_dismissed": True}).json()) == 2

    def test_alert_endpoints_404(self, client, db):
        assert client.put("/api/alerts/nope", json={"note": "x"}).status_code == 404
        assert client.delete("/api/alerts/nope").status_code == 404
        assert client.post("/api/alerts/batch-delete", json={"ids": []}).status_code == 422

    def test_unsaved_alert_can_be_dismissed(self, readings, client):
        flags = client.get("/api/analysis/fluctuations").json()
        assert client.get("/api/alerts").json() == []

        assert client.delete(f"/api/alerts/{flags[0]['id']}").status_code == 200
        assert [f["id"] for f in client.get("/api/analysis/fluctuations").json()] == [flags[1]["id"]]

        response = client.post("/api/alerts/batch-delete", json={"ids": [flags[1]["id"], "unknown"]})
        assert response.json()["count"] == 1
        assert client.get("/api/analysis/fluctuations").json() == []

        dismissed = client.get("/api/alerts", params={"include_dismissed": True}).json()
        assert sorted(a["date_str"] for a in dismissed) == ["2026-03-02", "2026-03-03"]

    def test_unsaved_alert_can_be_annotated(self, readings, client):
        flag = client.get("/api/analysis/fluctuations").json()[0]
        response = client.put(f"/api/alerts/{flag['id']}", json={"note": "Tank drained"})
        assert response.status_code == 200
        assert response.json()["tank_id"] == "T-1"
        assert response.json()["current_value"] == flag["current_value"]
        assert client.get("/api/analysis/fluctuations").json()[0]["note"] == "Tank drained"

    def test_alert_from_threshold_override_can_be_dismissed(self, make_tank, client):
        make_tank()
        client.post("/api/readings/batch", json={"readings": [
            {"tank_id": "T-1", "timestamp": "2026-03-01T08:00:00", "level_cm": 100},
            {"tank_id": "T-1", "timestamp": "2026-03-02T08:00:00", "level_cm": 80},
        ]})
        flag = client.get("/api/analysis/fluctuations", params={"threshold": 5}).json()[0]

        assert client.delete(f"/api/alerts/{flag['id']}").status_code == 404
        assert client.delete(f"/api/alerts/{flag['id']}", params={"threshold": 5}).status_code == 200
        assert client.get("/api/analysis/fluctuations", params={"threshold": 5}).json() == []


class TestUsageAnalysis:
    def test_monthly_usage(self, make_tank, client):
        make_tank(calculation_method="CWS_BLOWDOWN")
        client.post("/api/supplies", json={
            "tank_id": "T-1", "supplier_name": "Acme", "specific_gravity": 1.0, "price": 40.0,
            "start_date": "2026-01-01T00:00:00", "target_ppm": 10,
        })
        client.post("/api/cws-params", json={
            "tank_id": "T-1", "circulation_rate": 1000, "temp_diff": 5, "concentration_cycles": 5,
            "date": "2026-03-01T00:00:00",
        })
        client.post("/api/readings/batch", json={"readings": [
            {"tank_id": "T-1", "timestamp": "2026-03-01T00:00:00", "level_cm": 100},
            {"tank_id": "T-1", "timestamp": "2026-03-03T00:00:00", "level_cm": 98},
        ]})

        response = client.get("/api/analysis/monthly-usage", params={"tank_id": "T-1", "year": 2026})
        assert response.status_code == 200
        march = response.json()["months"][2]
        assert march["actual_usage_kg"] == pytest.approx(20.0)
        # One weekly record covers 1-7 March: 7 days x 0.54 kg
        assert march["theoretical_usage_kg"] == pytest.approx(3.78)
        assert march["cost"] == pytest.approx(800.0)
        assert response.json()["months"][0]["theoretical_usage_kg"] is None

    def test_usage_stats_empty(self, make_tank, client):
        make_tank()
        stats = client.get("/api/analysis/usage-stats", params={"tank_id": "T-1"}).json()
        assert stats["days_analyzed"] == 0
        assert stats["estimated_days_remaining"] is None


class TestReport:
    def test_disabled_without_api_key(self, readings, client):
        response = client.post("/api/analysis/report", json={"tank_id": "T-1", "days": 36500})
        assert response.status_code == 200
        assert "disabled" in response.json()["report"]

    def test_insufficient_data(self, make_tank, client):
        make_tank()
        response = client.post("/api/analysis/report", json={"tank_id": "T-1"})
        assert response.json()["report"] == INSUFFICIENT_DATA

    def test_http_summarizer(self, readings, client):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["body"] = request.read().decode()
            return httpx.Response(200, json={"text": "Usage is stable."})

        summarizer = HttpSummarizer("http://summarizer.test/v1", "secret", "test-model",
                                    transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_summarizer] = lambda: summarizer

        response = client.post("/api/analysis/report", json={"tank_id": "T-1", "days": 36500})
        assert response.status_code == 200
        assert response.json()["report"] == "Usage is stable."
        assert response.json()["readings_used"] == 3
        assert seen["auth"] == "Bearer secret"
        assert "test-model" in seen["body"]

    def test_upstream_failure_is_502(self, readings, client):
        def handler(request):
            return httpx.Response(503)

        app.dependency_overrides[get_summarizer] = lambda: HttpSummarizer(
            "http://summarizer.test/v1", "secret", "m", transport=httpx.MockTransport(handler),
        )
        response = client.post("/api/analysis/report", json={"tank_id": "T-1", "days": 36500})
        assert response.status_code == 502


def test_disabled_summarizer_text():
    assert "disabled" in asyncio.run(DisabledSummarizer().summarize("anything"))
