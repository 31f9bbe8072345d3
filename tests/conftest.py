import importlib
import os
from pathlib import Path

os.environ["SECRET_KEY"] = "test-secret"
os.environ["PROVISIONING_KEY"] = "test-provisioning-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["METRICS_ENABLED"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./salestrack-test.db")

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url

    import app.salestrack.core.config as config
    import app.salestrack.db.session as session
    import app.main as main

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)

    return main.create_app(), session


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "migrations"))
    config.set_main_option("sqlalchemy.url", database_url)
    config.attributes["configure_logger"] = False
    command.upgrade(config, "head")


@pytest.fixture()
def client(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'test.db'}"
    _run_migrations(database_url)
    app, session = _setup_app(database_url)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.salestrack.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
