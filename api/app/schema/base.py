"""Shared schema base classes for API responses."""

from datetime import datetime

from pydantic import BaseModel


class ORMModel(BaseModel):
    """Base model that supports orm_mode for SQLAlchemy."""

    model_config = {"from_attributes": True}


class Timestamped(ORMModel):
    """Common identifiers and timestamps for resource schemas."""
    id: str
    created_at: datetime
    updated_at: datetime
