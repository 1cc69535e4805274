import os
import tempfile

# Settings are read once, on first import of eventops.config
os.environ["EVENTOPS_DATABASE_URL"] = "sqlite://"
os.environ["EVENTOPS_ADMIN_PASSWORD"] = "letmein"
os.environ["EVENTOPS_SECRET_KEY"] = "test-secret"
os.environ["EVENTOPS_STORAGE_BACKEND"] = "local"
os.environ["EVENTOPS_STORAGE_DIR"] = tempfile.mkdtemp(prefix="eventops-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eventops.db import Base, enable_sqlite_foreign_keys, get_db
from eventops.main import app
from eventops.storage import LocalStorage, get_storage

ADMIN_PASSWORD = "letmein"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage")


@pytest.fixture
def client(session_factory, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    r = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return client


@pytest.fixture
def guest_client(client):
    r = client.post("/auth/guest")
    assert r.status_code == 200
    return client


@pytest.fixture
def make_department(client):
    def _make(name="IT", full_name="Information Technology", overseers=None):
        r = client.post(
            "/departments",
            json={
                "name": name,
                "fullName": full_name,
                "overseers": overseers if overseers is not None else [],
            },
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _make
