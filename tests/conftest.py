import os
from typing import Generator

# keep the app's own engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from telar import crud
from telar.access import Identity
from telar.auth import create_access_token, hash_password
from telar.db import Base, enable_sqlite_foreign_keys
from telar.main import app, get_db


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_order_payload(**overrides) -> dict:
    payload = {
        "productos": [
            {"nombreProducto": "Juego de sabanas", "descripcionProducto": "Doble, algodon", "cantidades": 2},
        ],
        "nombreCliente": "Maria Perez",
        "numerosTelefonicos": [{"numero": "3001234567", "tipo": "principal"}],
        "direccionDetallada": "Calle 10 # 5-20, Bogota",
        "tipoEnvio": "bogota",
        "precioTotal": 100000,
        "abonodinero": 50000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_user(db_session):
    """Create a stored user; returns (user, identity, auth headers)."""
    def _make(email: str, name: str | None = None, role: str = "vendedora", password: str = "secret1"):
        user = crud.create_user(db_session, name or email.split("@")[0], email, hash_password(password), role)
        identity = Identity(user_id=str(user.id), email=user.email, name=user.name, role=user.role)
        token = create_access_token(user.id, user.email, user.name, user.role)
        return user, identity, {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def seller(make_user):
    return make_user("ana@telar.co", "Ana")


@pytest.fixture
def other_seller(make_user):
    return make_user("beatriz@telar.co", "Beatriz")


@pytest.fixture
def admin(make_user):
    return make_user("yeny@telar.co", "Yeny", role="administradora")
