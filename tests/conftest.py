import os
import tempfile

# Entorno de tests: base en memoria, clave conocida, sin correo ni datos demo.
# Se define antes de importar la app para que los modulos lo lean al cargar.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["AUTH_JWT_ALGORITHM"] = "HS256"
os.environ["AUTH_JWT_AUDIENCE"] = ""
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="repairshop-uploads-")
os.environ["PUBLIC_BASE_URL"] = "http://testserver"
os.environ["SEED_DEMO"] = "false"
for var in ("MAIL_SERVER", "MAIL_USERNAME", "MAIL_PASSWORD", "MAIL_FROM", "SUPPORT_EMAIL"):
    os.environ[var] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

from repairshop.database import engine  # noqa: E402
from repairshop.main import app  # noqa: E402
from repairshop.security import create_access_token  # noqa: E402


def bearer(tenant_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': tenant_id})}"}


@pytest.fixture(autouse=True)
def db():
    """Tablas limpias por test."""
    SQLModel.metadata.create_all(engine)
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session():
    with Session(engine) as s:
        yield s


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def headers():
    return bearer("tenant-a")


@pytest.fixture
def other_headers():
    return bearer("tenant-b")


@pytest.fixture
def make_order(client, headers):
    """Crea cliente + equipo + orden y devuelve la orden (json)."""

    def _make(estimated_cost=100.0, final_cost=0.0, **extra):
        c = client.post("/api/clients", json={"name": "Ana Pérez", "phone": "555-1234"}, headers=headers)
        assert c.status_code == 201, c.text
        payload = {
            "client_id": c.json()["id"],
            "device": {"brand": "Motorola", "model": "G8", "lock_type": "PATRON", "lock_value": "L"},
            "problem": "No carga",
            "estimated_cost": estimated_cost,
            "final_cost": final_cost,
        }
        payload.update(extra)
        r = client.post("/api/orders", json=payload, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
