"""Shared pytest fixtures for API tests and database isolation."""

from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.deps import get_db, get_enrichment_orchestrator
from app.core.config import settings
from app.db.base_class import Base
from app.enrichment.merge import VideoAttributes
from app.ingestion.observability import ScrapeMonitor
from app.main import app
from app.models.video import Collection, Video
from app.services.enrichment_service import EnrichmentOrchestrator
from app.services.video_store import VideoRecordStore
from app.tests.utils import FakeDispatcher, FakeScraper, fixed_clock


@pytest_asyncio.fixture()
async def session(tmp_path: Path) -> AsyncSession:
    database_url = settings.test_database_url or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    url = make_url(database_url)
    schema_name: str | None = None
    engine = create_async_engine(database_url, future=True)
    if url.drivername.startswith("postgresql"):
        # Isolate each test run in its own schema for parallel-friendly cleanup.
        schema_name = f"test_{uuid.uuid4().hex}"
        engine = engine.execution_options(schema_translate_map={None: schema_name})
    async with engine.begin() as conn:
        if schema_name:
            await conn.exec_driver_sql(f'CREATE SCHEMA IF NOT EXISTS "{schema_name}"')
        await conn.run_sync(Base.metadata.create_all)
    TestingSession = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with TestingSession() as session:
            yield session
    finally:
        async with engine.begin() as conn:
            if schema_name:
                await conn.exec_driver_sql(f'DROP SCHEMA IF EXISTS "{schema_name}" CASCADE')
            else:
                await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def scraper() -> FakeScraper:
    return FakeScraper()


@pytest.fixture()
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture()
def monitor() -> ScrapeMonitor:
    return ScrapeMonitor(degraded_after=3)


@pytest.fixture()
def orchestrator(
    session: AsyncSession, scraper: FakeScraper, dispatcher: FakeDispatcher, monitor: ScrapeMonitor
) -> EnrichmentOrchestrator:
    return EnrichmentOrchestrator(
        scraper=scraper,
        dispatcher=dispatcher,
        store=VideoRecordStore(session, clock=fixed_clock),
        monitor=monitor,
        clock=fixed_clock,
        scrape_timeout_seconds=1.0,
        timeout_falls_back_to_cdn=False,
    )


@pytest_asyncio.fixture()
async def video(session: AsyncSession) -> Video:
    collection = Collection(user_id="user-1", title="Hooks", video_count=1)
    session.add(collection)
    await session.flush()
    record = Video(
        collection_id=collection.id,
        user_id="user-1",
        original_url="https://www.tiktok.com/@creator/video/7300000000000000000",
        url="https://www.tiktok.com/@creator/video/7300000000000000000",
        platform="tiktok",
        title="Video from tiktok",
        insights={"views": 0, "likes": 0, "comments": 0, "saves": 4},
        metadata_={"source": "import", "originalUrl": "https://www.tiktok.com/@creator/video/7300000000000000000"},
        content_metadata={},
    )
    session.add(record)
    await session.commit()
    return record


@pytest.fixture()
def prior(video: Video) -> VideoAttributes:
    return VideoAttributes.from_video(video)


@pytest_asyncio.fixture()
async def client(session: AsyncSession, orchestrator: EnrichmentOrchestrator) -> AsyncClient:
    async def _get_test_db():
        yield session

    async def _get_test_orchestrator() -> EnrichmentOrchestrator:
        return orchestrator

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_enrichment_orchestrator] = _get_test_orchestrator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_enrichment_orchestrator, None)
