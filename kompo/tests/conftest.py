"""
Pytest configuration and fixtures for Kompo tests.

Every test gets a fresh in-memory SQLite database shared by the test and
the app through a StaticPool.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kompo.core.boot_info import BootInfo, encode_boot_info
from kompo.core.request import KompoRequest
from kompo.records.base import Record
from kompo.server.db import get_session
from kompo.server.main import app
from kompo.tests import komposers  # noqa: F401  (registers the test komposers)
from kompo.tests.models import Author, Post, Tag


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Record.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def make_request(session):
    """Build a KompoRequest bound to the test session."""

    def _make(data=None, headers=None) -> KompoRequest:
        return KompoRequest(data=data if data is not None else {}, headers=headers or {}, session=session)

    return _make


@pytest.fixture
def kompoinfo():
    """Signed X-Kompo-Info for a komposer alias."""

    def _make(kompo_class: str, model_key=None, store=None, parameters=None) -> str:
        return encode_boot_info(
            BootInfo(kompo_class=kompo_class, model_key=model_key, store=store or {}, parameters=parameters or {})
        )

    return _make


@pytest.fixture
def seeded(session) -> dict:
    """Two authors, three tags and three posts."""
    ada = Author(name="Ada", email="ada@example.com")
    bob = Author(name="Bob")
    tags = [Tag(name="python"), Tag(name="orm"), Tag(name="web")]
    posts = [
        Post(title="Hello world", slug="hello-world", author=ada, published=True),
        Post(title="Second post", slug="second-post", author=bob),
        Post(title="Hello again", slug="hello-again", author=ada),
    ]
    session.add_all([ada, bob, *tags, *posts])
    session.commit()
    return {"authors": [ada, bob], "tags": tags, "posts": posts}


@pytest.fixture
def app_session(engine):
    """Route the app's get_session dependency to the test database."""

    def _get_session():
        session: Session = sessionmaker(bind=engine, expire_on_commit=False)()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = _get_session
    yield
    app.dependency_overrides.pop(get_session, None)


@pytest_asyncio.fixture
async def async_client(app_session):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
