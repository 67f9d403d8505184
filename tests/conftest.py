"""
Pytest configuration and shared fixtures.
"""
import os

# Keep the application engine off the real data directory
os.environ.setdefault("CURATARR_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from curatarr.config import RuntimeSettings, runtime_settings
from curatarr.database import Base
from curatarr.models import (
    AppSettings,
    Collection,
    CollectionLog,
    CollectionMedia,
    Exclusion,
)
from curatarr.progress import switch_progress
from tests.factories import (
    JELLYFIN_CREDENTIALS,
    PLEX_CREDENTIALS,
    add_rule_group,
    make_rule_json,
)


@pytest.fixture(scope="function")
async def test_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset process-global caches touched by the code under test."""
    yield
    runtime_settings.apply(None)
    switch_progress.is_running = False
    switch_progress.last_status = None
    switch_progress.last_message = ""


@pytest.fixture
def plex_config():
    """Runtime settings for an install currently on Plex."""
    config = RuntimeSettings()
    config.stored_media_server_type = "plex"
    config.credentials = {
        "plex": dict(PLEX_CREDENTIALS),
        "jellyfin": {name: None for name in JELLYFIN_CREDENTIALS},
    }
    return config


@pytest.fixture
async def plex_settings_row(session_factory):
    """Singleton settings row for an install on Plex."""
    async with session_factory() as session:
        row = AppSettings(media_server_type="plex", **PLEX_CREDENTIALS)
        session.add(row)
        await session.commit()
        return row


@pytest.fixture
async def media_data(session_factory):
    """3 collections, 10 collection items, 2 exclusions, 4 logs, 2 rule groups."""
    async with session_factory() as session:
        collections = [
            Collection(title=f"Collection {i}", description=f"Desc {i}", library_id="1",
                       media_server_id=f"plex-{i}", media_server_type="plex")
            for i in range(3)
        ]
        session.add_all(collections)
        await session.flush()

        for i in range(10):
            session.add(CollectionMedia(collection_id=collections[i % 3].id, media_server_id=f"item-{i}"))
        for i in range(4):
            session.add(CollectionLog(collection_id=collections[0].id, message=f"log {i}"))

        group_a, _ = await add_rule_group(
            session, "Old Movies", [make_rule_json((0, 0)), make_rule_json((0, 5))],
            collection=collections[0],
        )
        group_b, _ = await add_rule_group(
            session, "Watchlist", [make_rule_json((0, 30))],
            collection=collections[1],
        )

        session.add(Exclusion(media_server_id="item-1", rule_group_id=group_a.id))
        session.add(Exclusion(media_server_id="item-2", rule_group_id=None))

        await session.commit()
        return {
            "collections": [c.id for c in collections],
            "groups": {"Old Movies": group_a.id, "Watchlist": group_b.id},
        }
