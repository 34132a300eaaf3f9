"""
conftest.py — Shared pytest fixtures for the Estimates backend test suite.

Pure unit tests (formatters, calculations, editor, provider allocation,
dashboard summary, PDF export) need no fixtures beyond the import path.

API tests run the FastAPI app through ``TestClient`` against an in-memory
SQLite database (``sqlite+aiosqlite://``).  Each ``client`` fixture enters
the app lifespan, which creates the tables on a fresh in-memory database and
disposes the engine on exit, so every test starts from an empty table.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``app.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import tempfile
import pytest

# ---------------------------------------------------------------------------
# Environment must be in place before ``app.config`` is first imported.
# ---------------------------------------------------------------------------
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DB_RESET_ON_STARTUP"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ADMIN_USERNAME"] = "setup"
os.environ["ADMIN_PASSWORD"] = "setup"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DOWNLOAD_DIR"] = tempfile.mkdtemp(prefix="estimates-test-")

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any app imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client():
    """TestClient bound to a fresh, empty in-memory database."""
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    """Bearer header for the configured operator account."""
    resp = client.post("/api/auth/login", json={"username": "setup", "password": "setup"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def create_project(client, auth_headers):
    """Factory: POST a project and return its JSON body."""
    def _create(**overrides):
        payload = {
            "project_name": "Spring Launch Event",
            "client_name": "Acme Corp",
            "producer": "Dana",
        }
        payload.update(overrides)
        resp = client.post("/api/projects", json=payload, headers=auth_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


# ---------------------------------------------------------------------------
# Shared sample estimate data
# ---------------------------------------------------------------------------

@pytest.fixture
def priced_row():
    """
    qty=2, priceEst=100, priceAct=80 with identity multipliers.
    totalEst = 200, totalAct = 160, profitability = 20.
    """
    return {
        "service": "Camera crew",
        "description": "Two-camera setup",
        "duration": "1",
        "unit": "day",
        "qty": "2",
        "priceEst": "100",
        "discount": "1",
        "factor": "1",
        "cr": "1",
        "priceAct": "80",
        "providers": [],
    }


@pytest.fixture
def stored_estimate():
    """
    Storage form with one production section holding the priced row above
    and a second row split 60/40 between two providers.

    Row 2: qty=1, priceEst=300, priceAct=250 → totalEst 300, totalAct 250.
    Project: cost 500, expenses 410, net 90, profitability 18.
    """
    return [
        {
            "sectionId": "production",
            "rows": [
                ["Camera crew", "Two-camera setup", "1", "day", "2", "100", "1", "1", "1", "80"],
                ["Lighting", "Rig and operator", "1", "day", "1", "300", "1", "1", "1", "250"],
            ],
            "providersData": [
                [],
                [{"name": "LightCo", "percentage": 60}, {"name": "RigWorks", "percentage": 40}],
            ],
        }
    ]
