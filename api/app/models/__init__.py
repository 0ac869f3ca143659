from app.models.video import Collection, Platform, TranscriptionStatus, Video

__all__ = [
    "Collection",
    "Platform",
    "TranscriptionStatus",
    "Video",
]
