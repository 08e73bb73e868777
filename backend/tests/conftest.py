import os

# Must be set before app.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUMMARIZER_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from app.database import Base, engine, SessionLocal, get_db
from app.main import app


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_tank(client):
    """POST a tank with sensible defaults; keyword arguments override fields."""
    def _make(**overrides):
        payload = {
            "id": "T-1",
            "name": "Scale inhibitor",
            "system_type": "COOLING",
            "capacity_liters": 2000,
            "geo_factor": 10,
            "safe_min_level": 20,
        }
        payload.update(overrides)
        response = client.post("/api/tanks", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _make
