from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.services.enrichment_service import EnrichmentOrchestrator, build_orchestrator


async def get_db() -> AsyncSession:
    async for session in get_session():
        yield session


async def get_enrichment_orchestrator(session: AsyncSession = Depends(get_db)) -> EnrichmentOrchestrator:
    return build_orchestrator(session)
