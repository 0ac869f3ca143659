from . import collection_service, enrichment_service, transcription_service

__all__ = [
    "collection_service",
    "enrichment_service",
    "transcription_service",
]
"""Service-layer helpers for API operations and worker jobs."""
