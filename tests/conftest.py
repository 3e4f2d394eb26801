"""
Core pytest configuration and fixtures for ShadowLink testing.

This module provides shared test data, a lightweight application object that
carries the pillars the engine, dashboard and actions read from, and
markers for the test layout.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Callable, List, Optional
from unittest.mock import Mock

import pytest
from shadowlink.actions import Actions
from shadowlink.config import Settings
from shadowlink.dashboard import Dashboard
from shadowlink.engine import Synchronous
from shadowlink.llm import Echo
from shadowlink.models import AI_SENDER, USER_SENDER, Message
from shadowlink.store import InMemory
from shadowlink.tools import TopicExtractor

BASE_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

# ===== TEST DATA FIXTURES =====


def make_messages(
    texts: List[str], start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)
) -> List[Message]:
    """Alternating user/ai messages, one ``step`` apart."""
    return [
        Message(
            text=text,
            sender=USER_SENDER if i % 2 == 0 else AI_SENDER,
            created_at=start + i * step,
        )
        for i, text in enumerate(texts)
    ]


@pytest.fixture
def messages_factory() -> Callable[..., List[Message]]:
    return make_messages


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def sample_messages() -> List[Message]:
    """Sample chat messages for testing."""
    return make_messages(
        [
            "hey, just got back from the gym",
            "Nice. Legs or arms today?",
            "legs. can barely walk lol",
            "Classic. Same time tomorrow?",
        ]
    )


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore the environment's .env file."""
    return Settings(_env_file=None, STORE_BACKEND="memory", LLM_PROVIDER="echo")


# ===== APP FIXTURES =====


@pytest.fixture
def make_app(settings) -> Callable[..., SimpleNamespace]:
    """
    Builds an application object with predictable pillars.

    The LLM is an Echo wrapped in a Mock, so tests can both rely on its
    canned answers and assert on the calls it received.
    """

    def factory(
        llm=None, store=None, tools=None, settings_override: Optional[Settings] = None
    ) -> SimpleNamespace:
        app = SimpleNamespace(
            store=store if store is not None else InMemory(),
            llm=llm if llm is not None else Mock(wraps=Echo()),
            tools=tools if tools is not None else TopicExtractor(),
            settings=settings_override or settings,
        )
        app.engine = Synchronous(app)
        app.dashboard = Dashboard(app)
        app.actions = Actions(app)
        return app

    return factory


@pytest.fixture
def test_app(make_app) -> SimpleNamespace:
    return make_app()


def seed_conversation(store: InMemory, user_id: str, messages: List[Message]) -> str:
    """Stores ``messages`` as one conversation owned by ``user_id``."""
    convo_id = store.create_conversation(user_id, messages[0])
    for msg in messages[1:]:
        store.append_message(convo_id, msg)
    return convo_id


@pytest.fixture
def seed() -> Callable[..., str]:
    return seed_conversation


# ===== CONFIGURATION =====


def pytest_configure(config):
    """Pytest configuration."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
