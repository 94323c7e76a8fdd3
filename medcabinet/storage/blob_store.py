"""
Blob Store

Async key-value persistence for serialized collections (reminder ids,
schedules, medicines).
"""

import abc
import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from medcabinet.models.blob import BlobEntry, utc_now

logger = logging.getLogger(__name__)


class BlobStore(abc.ABC):
    """Abstract base class for blob persistence."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Read a blob.

        Args:
            key: Blob key

        Returns:
            Stored bytes, or None when the key is unknown
        """
        pass

    @abc.abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """
        Write a blob, replacing any previous value.

        Args:
            key: Blob key
            value: Bytes to store
        """
        pass


class InMemoryBlobStore(BlobStore):
    """Process-local store, used for previews and tests."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self.blobs: Dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.blobs[key] = value


class SqlBlobStore(BlobStore):
    """Blob store backed by the BlobEntry table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    async def get(self, key: str) -> Optional[bytes]:
        with Session(self.engine) as session:
            entry = session.get(BlobEntry, key)
            return entry.value if entry else None

    async def set(self, key: str, value: bytes) -> None:
        with Session(self.engine) as session:
            entry = session.get(BlobEntry, key)
            if entry:
                entry.value = value
                entry.updated_at = utc_now()
            else:
                entry = BlobEntry(key=key, value=value)
            session.add(entry)
            session.commit()


async def load_json(store: BlobStore, key: str, default: Any = None) -> Any:
    """Load a JSON document; unreadable content is logged and replaced by the default."""
    raw = await store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load '{key}': {str(e)}")
        return default


async def save_json(store: BlobStore, key: str, value: Any) -> None:
    """Serialize a JSON document into the store."""
    await store.set(key, json.dumps(value, default=str).encode("utf-8"))
