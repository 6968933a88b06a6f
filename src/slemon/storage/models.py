"""Key-value persistence model."""

from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class KeyValueEntry(SQLModel, table=True):
    """One named, JSON-encoded blob."""

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
