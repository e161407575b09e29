"""Shared test fixtures for Health Coach tests."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("ENABLE_DEMO_TOOLS", "false")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

# Fixed evaluation instant used by every time-dependent fixture.
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """The instant the service fixture treats as "now"."""
    return NOW


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from healthcoach.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from healthcoach.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def health_repository(health_db, field_encryptor):
    """Create a HealthRepository backed by in-memory SQLite, with subject 'alice'."""
    from healthcoach.core.storage.repository import HealthRepository

    repo = HealthRepository(health_db, field_encryptor)
    repo.create_subject("alice", "Alice")
    return repo


@pytest.fixture
def coach_log_writer(health_db, field_encryptor):
    """Create a CoachLogWriter backed by in-memory SQLite."""
    from healthcoach.core.audit.logger import CoachLogWriter

    return CoachLogWriter(health_db, field_encryptor)


# ---------------------------------------------------------------------------
# Narrative and generation fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def templates():
    """Registry holding the packaged narrative templates."""
    from healthcoach.core.narrative.loader import load_default_templates

    return load_default_templates()


@pytest.fixture
def mock_provider():
    from healthcoach.core.llm.providers.mock import MockProvider

    return MockProvider(response_content="Keep up the evening walks.")


@pytest.fixture
def generator(mock_provider):
    """NarrativeGenerator over the mock provider, with no retry back-off."""
    from healthcoach.core.llm.client import NarrativeGenerator

    return NarrativeGenerator(mock_provider, timeout_seconds=1.0, retry_wait_seconds=0)


@pytest.fixture
def service(health_repository, coach_log_writer, generator, templates):
    """HealthCoachService with its clock pinned to NOW."""
    from healthcoach.domains.health.domain_logic.coach_service import HealthCoachService

    return HealthCoachService(
        health_repository,
        coach_log_writer,
        generator,
        templates,
        clock=lambda: NOW,
    )
