# medcart/repos/blob_store.py
from typing import Dict, Optional, Protocol

import redis
from sqlalchemy.orm import Session, sessionmaker

from medcart.data.database import SessionLocal
from medcart.data.models.cart_snapshot import CartSnapshotModel
from medcart.utils.logging import get_logger
from medcart.utils.retry import redis_retry
from medcart.utils.settings import CART_STORE, CART_TTL_SECONDS, REDIS_URL

logger = get_logger(__name__)


class BlobStore(Protocol):
    """Opaque key -> serialized blob storage."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, blob: str) -> None: ...


class MemoryBlobStore:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob


class RedisBlobStore:
    """
    -cart snapshot stored under a single key
    -TTL refreshed on every write
    """

    def __init__(self, url: str | None = None, ttl: int = CART_TTL_SECONDS, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl

    @redis_retry()
    def get(self, key: str) -> Optional[str]:
        return self.redis.get(key)

    @redis_retry()
    def set(self, key: str, blob: str) -> None:
        logger.debug(f"SET {key} ({len(blob)} bytes) ex={self.ttl}")
        #SET medical_cart:abc "{...}" EX 2592000
        self.redis.set(name=key, value=blob, ex=self.ttl)


class SqlBlobStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db: Session = self.session_factory()
        try:
            row = db.get(CartSnapshotModel, key)
            return row.blob if row else None
        finally:
            db.close()

    def set(self, key: str, blob: str) -> None:
        db: Session = self.session_factory()
        try:
            # last write wins
            db.merge(CartSnapshotModel(key=key, blob=blob))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


_memory_store = MemoryBlobStore()


def build_store(kind: str = CART_STORE) -> BlobStore:
    if kind == "redis":
        return RedisBlobStore()
    if kind == "sql":
        return SqlBlobStore(SessionLocal)
    if kind == "memory":
        return _memory_store
    raise ValueError(f"Unknown CART_STORE backend: {kind}")
