"""
Persistence backends for the template and recipe stores.

A backend is a small namespaced key-value store of JSON-compatible records.
The stores own validation and ids; backends only keep records durable:
- InMemoryBackend: process-local dict, for tests and one-off runs
- JsonFileBackend: one JSON document per namespace in a directory
- SqlBackend: a `records` table in any SQLAlchemy-supported database
"""

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import (
    create_engine, MetaData, Table, Column, Integer, String, Text,
    DateTime, UniqueConstraint, select, delete, update, insert
)
from sqlalchemy.engine import Engine

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StorageBackend(ABC):
    """Namespaced key-value storage of JSON-compatible records."""

    @abstractmethod
    def load_all(self, namespace: str) -> List[Record]:
        """
        Load every record of a namespace.

        Args:
            namespace: Record group, e.g. 'templates'

        Returns:
            Records in insertion order
        """
        pass

    @abstractmethod
    def get(self, namespace: str, key: str) -> Optional[Record]:
        pass

    @abstractmethod
    def put(self, namespace: str, key: str, record: Record) -> None:
        """Insert a record or replace the one stored under the same key."""
        pass

    @abstractmethod
    def delete(self, namespace: str, key: str) -> bool:
        """
        Remove a record.

        Returns:
            True if a record was removed, False if none existed
        """
        pass


class InMemoryBackend(StorageBackend):

    def __init__(self):
        self._data: Dict[str, Dict[str, Record]] = {}

    def load_all(self, namespace: str) -> List[Record]:
        return [copy.deepcopy(r) for r in self._data.get(namespace, {}).values()]

    def get(self, namespace: str, key: str) -> Optional[Record]:
        record = self._data.get(namespace, {}).get(key)
        return copy.deepcopy(record) if record is not None else None

    def put(self, namespace: str, key: str, record: Record) -> None:
        self._data.setdefault(namespace, {})[key] = copy.deepcopy(record)

    def delete(self, namespace: str, key: str) -> bool:
        return self._data.get(namespace, {}).pop(key, None) is not None


class JsonFileBackend(StorageBackend):
    """
    Stores each namespace as `<directory>/<namespace>.json`.

    The whole document is loaded for every read and rewritten on every change.
    Writes go to a temporary file that then replaces the document, so a
    failed write leaves the previous version in place.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, namespace: str) -> Path:
        return self.directory / f"{namespace}.json"

    def _read(self, namespace: str) -> Dict[str, Record]:
        path = self._path(namespace)
        if not path.exists():
            return {}
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write(self, namespace: str, records: Dict[str, Record]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f"{namespace}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path(namespace))
        except BaseException:
            os.unlink(tmp_path)
            raise

    def load_all(self, namespace: str) -> List[Record]:
        return list(self._read(namespace).values())

    def get(self, namespace: str, key: str) -> Optional[Record]:
        return self._read(namespace).get(key)

    def put(self, namespace: str, key: str, record: Record) -> None:
        records = self._read(namespace)
        records[key] = record
        self._write(namespace, records)

    def delete(self, namespace: str, key: str) -> bool:
        records = self._read(namespace)
        if key not in records:
            return False
        del records[key]
        self._write(namespace, records)
        return True


class SqlBackend(StorageBackend):
    """
    Stores records as JSON text in a `records` table.

    Works with any database SQLAlchemy can reach; the default configuration
    uses a local SQLite file.
    """

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        """
        Initialize the backend and create the table if needed.

        Args:
            url: SQLAlchemy database URL (ignored when engine is given)
            engine: Existing engine to reuse
        """
        self.engine = engine or create_engine(url or get_settings().store_url, echo=False)
        self.metadata = MetaData()
        self.records_table = Table(
            'records',
            self.metadata,
            Column('id', Integer, primary_key=True, autoincrement=True),
            Column('namespace', String(100), nullable=False),
            Column('key', String(255), nullable=False),
            Column('payload', Text, nullable=False),
            Column('created_at', DateTime(timezone=True), default=_utcnow),
            Column('updated_at', DateTime(timezone=True), default=_utcnow, onupdate=_utcnow),
            UniqueConstraint('namespace', 'key', name='uq_records_namespace_key'),
        )
        self.metadata.create_all(self.engine)
        logger.debug("SQL store ready at %s", self.engine.url)

    def load_all(self, namespace: str) -> List[Record]:
        stmt = (
            select(self.records_table.c.payload)
            .where(self.records_table.c.namespace == namespace)
            .order_by(self.records_table.c.id)
        )
        with self.engine.connect() as conn:
            return [json.loads(payload) for payload in conn.execute(stmt).scalars()]

    def get(self, namespace: str, key: str) -> Optional[Record]:
        stmt = select(self.records_table.c.payload).where(
            self.records_table.c.namespace == namespace,
            self.records_table.c.key == key
        )
        with self.engine.connect() as conn:
            payload = conn.execute(stmt).scalar_one_or_none()
        return json.loads(payload) if payload is not None else None

    def put(self, namespace: str, key: str, record: Record) -> None:
        payload = json.dumps(record, ensure_ascii=False)
        table = self.records_table
        with self.engine.begin() as conn:
            result = conn.execute(
                update(table)
                .where(table.c.namespace == namespace, table.c.key == key)
                .values(payload=payload, updated_at=_utcnow())
            )
            if result.rowcount == 0:
                conn.execute(insert(table).values(namespace=namespace, key=key, payload=payload))

    def delete(self, namespace: str, key: str) -> bool:
        table = self.records_table
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(table).where(table.c.namespace == namespace, table.c.key == key)
            )
        return result.rowcount > 0

    def close(self):
        """Close the database connection."""
        self.engine.dispose()


def create_backend(settings: Optional[Settings] = None) -> StorageBackend:
    """
    Build the backend selected by STORE_BACKEND.

    Args:
        settings: Settings to read from (default: the cached settings)

    Returns:
        A StorageBackend instance

    Raises:
        ValueError: If the backend name is unknown
    """
    settings = settings or get_settings()
    if settings.store_backend == "memory":
        return InMemoryBackend()
    if settings.store_backend == "json":
        return JsonFileBackend(settings.store_path)
    if settings.store_backend == "sql":
        return SqlBackend(settings.store_url)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")
