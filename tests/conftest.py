"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from dialogue_store.errors import StorageError
from dialogue_store.storage import InMemoryKeyValueStore, KeyValueStore
from dialogue_store.store import DialogueStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires a PostgreSQL server)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 1 second)")
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and re-enables logging the CLI may have disabled.
    This fixture runs automatically for all tests.
    """
    logging.disable(logging.NOTSET)
    caplog.set_level(logging.DEBUG)
    yield
    logging.disable(logging.NOTSET)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """
    Keep every test on throwaway storage with summaries disabled.

    Clears the settings cache before and after each test so environment
    changes made by a test never leak into the next one.
    """
    from dialogue_store.config import clear_settings_cache

    monkeypatch.setenv("DIALOGUE_STORE_ENV_SOURCE", "environment")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("STORAGE_FILE_PATH", str(tmp_path / "store.json"))
    monkeypatch.setenv("SUMMARIZER_ENABLED", "false")
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Stores
# ============================================================================


@pytest.fixture
def memory_kv() -> InMemoryKeyValueStore:
    """Empty in-memory key-value backend."""
    return InMemoryKeyValueStore()


@pytest.fixture
def store(memory_kv) -> DialogueStore:
    """Dialogue store over the in-memory backend, no summarizer."""
    return DialogueStore(memory_kv)


@pytest.fixture
def failing_kv():
    """
    Key-value backend whose every operation raises StorageError.

    Usage:
        async def test_degrades(failing_kv):
            repository = ConversationRepository(failing_kv)
            assert await repository.get("conv_1") is None
    """
    kv = AsyncMock(spec=KeyValueStore)
    kv.backend_name = "failing"
    kv.get.side_effect = StorageError("backend down", operation="get")
    kv.set.side_effect = StorageError("backend down", operation="set")
    kv.remove.side_effect = StorageError("backend down", operation="remove")
    kv.clear.side_effect = StorageError("backend down", operation="clear")
    return kv


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def scenario() -> dict:
    """Scenario payload in wire (camelCase) form."""
    return {
        "id": "cafe",
        "title": "Cafe Date",
        "description": "A quiet afternoon at the station cafe",
        "category": "romance",
    }


@pytest.fixture
def make_snapshot(scenario):
    """
    Factory for session snapshots handed to the history log.

    Usage:
        def test_something(make_snapshot):
            snapshot = make_snapshot(id="hist_1", messages=2)
    """

    def _make(
        id: str | None = None,
        character_id: str = "aoi",
        messages: int = 2,
        scenario_override: dict | None = None,
        start_time: datetime | None = None,
    ) -> dict:
        start = start_time or datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
        payload = {
            "characterId": character_id,
            "scenario": scenario_override or scenario,
            "messages": [
                {
                    "text": f"message {index}",
                    "sender": "user" if index % 2 == 0 else "character",
                    "emotion": "happy" if index % 2 else "neutral",
                    "timestamp": (start + timedelta(seconds=index * 10)).isoformat(),
                }
                for index in range(messages)
            ],
            "startTime": start.isoformat(),
            "endTime": (start + timedelta(minutes=5)).isoformat(),
        }
        if id is not None:
            payload["id"] = id
        return payload

    return _make
