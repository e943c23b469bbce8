import os
from datetime import datetime, timedelta, UTC
from pathlib import Path

import pytest

# Keep channel side effects out of the test run
os.environ["EMAIL_NOTIFICATIONS_ENABLED"] = "false"
os.environ["DEV_MODE"] = "false"
os.environ.pop("SLACK_WEBHOOK_URL", None)
os.environ.pop("STORAGE_BACKEND", None)
os.environ.pop("VAPID_PUBLIC_KEY", None)
os.environ.pop("VAPID_PRIVATE_KEY", None)
os.environ.pop("VAPID_SUBJECT", None)

ROOT = Path(__file__).resolve().parent.parent

# Opt-in Postgres run: start the container and migrate before the app module
# builds its engine from TEST_DATABASE_URL.
_pg_container = None
if os.getenv("TEST_WITH_POSTGRES") == "1":
    from testcontainers.postgres import PostgresContainer
    from alembic import command
    from alembic.config import Config

    _pg_container = PostgresContainer(os.getenv("TEST_POSTGRES_IMAGE", "postgres:16-alpine"))
    _pg_container.start()
    os.environ["TEST_DATABASE_URL"] = _pg_container.get_connection_url()
    _cfg = Config(str(ROOT / "alembic.ini"))
    _cfg.set_main_option("script_location", str(ROOT / "migrations"))
    command.upgrade(_cfg, "head")


def pytest_unconfigure(config):
    if _pg_container is not None:
        _pg_container.stop()


from fastapi.testclient import TestClient  # noqa: E402

from projecthub.api.main import app  # noqa: E402
from projecthub.db import database as db_module  # noqa: E402
from projecthub.db import models  # noqa: E402
from projecthub.db.repositories import users as user_repo  # noqa: E402
from projecthub.services import realtime, storage  # noqa: E402

_CURRENT = {"session": None}


def _override_get_db():
    session = _CURRENT["session"]
    if session is not None:
        yield session
        return
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


def _reset_schema():
    engine = db_module.engine
    if engine.dialect.name == "sqlite":
        models.Base.metadata.drop_all(bind=engine)
        models.Base.metadata.create_all(bind=engine)
        return
    with engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(autouse=True)
def db_session():
    _reset_schema()
    session = db_module.SessionLocal()
    user_repo.ensure_default_roles(session)
    _CURRENT["session"] = session
    try:
        yield session
    finally:
        _CURRENT["session"] = None
        session.close()


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture(autouse=True)
def _isolated_services(monkeypatch, tmp_path):
    monkeypatch.delenv("ADMIN_EMAILS", raising=False)
    monkeypatch.setattr(storage, "_storage_backend", storage.LocalStorage(root=str(tmp_path / "uploads")))
    yield
    manager = realtime.manager
    manager.active_connections.clear()
    manager.rooms.clear()
    manager._loop = None


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(user_or_email, name=None):
    """Proxy identity headers for a user model or a bare email."""
    email = getattr(user_or_email, "email", user_or_email)
    name = name or getattr(user_or_email, "name", None) or email.split("@")[0]
    return {"x-auth-request-user": name, "x-auth-request-email": email}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def user_factory(db_session):
    def _create(email, role="developer", name=None):
        user = models.User(email=email, name=name or email.split("@")[0].title(), role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def admin_user(user_factory):
    return user_factory("admin@example.com", role="admin", name="Ada Admin")


@pytest.fixture
def developer(user_factory):
    return user_factory("dev@example.com", role="developer", name="Dana Dev")


@pytest.fixture
def client_factory(db_session):
    def _create(name="Acme Corp", email=None):
        record = models.Client(name=name, email=email)
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record
    return _create


@pytest.fixture
def project_factory(db_session, client_factory):
    def _create(
        name="Apollo",
        members=(),
        client=None,
        is_memo_required=False,
        status="active",
        created_at=None,
        assigned_at=None,
    ):
        owner = client or client_factory()
        project = models.Project(
            name=name,
            client_id=owner.id,
            status=status,
            is_memo_required=is_memo_required,
        )
        if created_at is not None:
            project.created_at = created_at
        db_session.add(project)
        db_session.flush()
        db_session.add(models.ChatGroup(name=name, project_id=project.id))
        for member in members:
            assignment = models.UserProjectAssignment(user_id=member.id, project_id=project.id)
            if assigned_at is not None:
                assignment.assigned_at = assigned_at
            db_session.add(assignment)
        db_session.commit()
        db_session.refresh(project)
        return project
    return _create


@pytest.fixture
def long_ago():
    return datetime.now(UTC) - timedelta(days=90)
