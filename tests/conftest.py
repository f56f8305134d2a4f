# tests/conftest.py

import os

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("KAFKA_ENABLED", "false")
os.environ.setdefault("REALTIME_BACKEND", "local")

import pytest  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from starlette.testclient import TestClient  # noqa: E402

import matchup.models  # noqa: E402,F401
from matchup.api import deps  # noqa: E402
from matchup.db.base_class import Base  # noqa: E402
from matchup.db.session import build_engine  # noqa: E402
from matchup.main import app  # noqa: E402
from matchup.services.dispatch import EffectDispatcher  # noqa: E402
from matchup.services.game_lifecycle import GameLifecycleManager  # noqa: E402
from matchup.services.notification_service import NotificationService  # noqa: E402
from matchup.services.rsvp_engine import RsvpEngine  # noqa: E402


# --- Database: one SQLite file per test, same locking as production ---
@pytest.fixture(scope="function")
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'matchup-test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# --- Post-commit effects ---
@pytest.fixture
def publisher():
    """Records realtime publishes as publish(game_id, event, payload) calls."""
    return MagicMock()


@pytest.fixture
def notifier():
    """Records notification intents as deliver(intent) calls."""
    return MagicMock()


@pytest.fixture
def dispatcher(publisher, notifier):
    return EffectDispatcher(publisher, notifier)


@pytest.fixture
def rsvp_engine(db, dispatcher):
    return RsvpEngine(db, dispatcher, emit_promotion_events=True)


@pytest.fixture
def lifecycle(db, dispatcher):
    return GameLifecycleManager(db, dispatcher)


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client(session_factory, publisher):
    """
    TestClient backed by the per-test SQLite database.

    Realtime publishes go to the `publisher` mock; notifications are stored
    for real, with push disabled.
    """
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_realtime_publisher] = lambda: publisher
    app.dependency_overrides[deps.get_notification_service] = lambda: NotificationService(
        session_factory=session_factory, producer_factory=lambda: None
    )

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
