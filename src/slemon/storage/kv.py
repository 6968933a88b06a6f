"""Durable key-value slots backed by SQLite.

Writes are last-write-wins; nothing coordinates concurrent writers.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy.engine import Engine
from sqlmodel import Session

from slemon.storage.models import KeyValueEntry

logger = logging.getLogger(__name__)


class KeyValueStore:
    """get/set of string values by key."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get(self, key: str) -> str | None:
        with Session(self.engine) as session:
            entry = session.get(KeyValueEntry, key)
            return entry.value if entry is not None else None

    def set(self, key: str, value: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(KeyValueEntry, key)
            if entry is None:
                entry = KeyValueEntry(key=key, value=value)
                session.add(entry)
            else:
                entry.value = value
                entry.updated_at = datetime.now(UTC)
            session.commit()
        logger.debug("Stored %d bytes under %s", len(value), key)
