from __future__ import annotations

import os
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time; pin a throwaway SQLite DB and keep tests
# away from real providers even if the developer machine has keys set.
_DB_PATH = Path(tempfile.mkdtemp(prefix="matching-api-tests-")) / "test.sqlite3"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_DB_PATH}"
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("ENV", "local")
os.environ.setdefault("AUTH_MODE", "dev")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("DB_CREATE_TABLES", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMBEDDING_BATCH_DELAY_MS", "0")

from matching_api.db import SessionLocal, engine  # noqa: E402
from matching_api.main import app  # noqa: E402
from matching_api.models import Base  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def create_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield
    app.dependency_overrides.clear()
