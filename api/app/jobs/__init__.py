from .transcription import run_transcription_job

__all__ = [
    "run_transcription_job",
]
