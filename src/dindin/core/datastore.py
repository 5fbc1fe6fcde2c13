#!/usr/bin/env python3
"""
RowStore Protocol - contract with the external persistence collaborator.

The engine never owns persisted rows. It reads and writes through a generic
query / insert / update / delete interface, always scoped to one owner per
request via `ScopedStore`. Two implementations ship with the package: an
in-memory store (tests, embedding) and a JSON-file store (CLI).
"""

import logging
import threading
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from .errors import StorageError
from .json_utils import read_json, write_json

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = dict[str, Any]

# usuarios rows are keyed by the owner id itself
_OWNER_COLUMNS = {"usuarios": "id"}


def owner_column(table: str) -> str:
    """Column that holds the owner id for a table."""
    return _OWNER_COLUMNS.get(table, "user_id")


class RowStore(Protocol):
    """
    Protocol for the row-level persistence collaborator.

    Filters map column names to a required value; an iterable value (list,
    tuple, set) means "column value is one of these". Every method raises
    StorageError on failure. `insert_batch` is all-or-nothing.
    """

    def query(self, table: str, filters: Filters | None = None) -> list[Row]:
        """Return copies of all rows matching the filters."""
        ...

    def insert_batch(self, table: str, rows: list[Row]) -> list[Row]:
        """Insert rows atomically and return the created rows (with ids)."""
        ...

    def update_batch(self, table: str, filters: Filters, patch: Row) -> int:
        """Apply a patch to all matching rows; return how many changed."""
        ...

    def delete_batch(self, table: str, filters: Filters) -> int:
        """Delete all matching rows; return how many were removed."""
        ...


def _matches(row: Row, filters: Filters | None) -> bool:
    if not filters:
        return True
    for column, expected in filters.items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class InMemoryRowStore:
    """Thread-safe in-memory RowStore."""

    def __init__(self, tables: dict[str, list[Row]] | None = None):
        self._lock = threading.RLock()
        self._tables: dict[str, list[Row]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }

    def query(self, table: str, filters: Filters | None = None) -> list[Row]:
        with self._lock:
            return [dict(row) for row in self._tables.get(table, []) if _matches(row, filters)]

    def insert_batch(self, table: str, rows: list[Row]) -> list[Row]:
        created_at = datetime.now(timezone.utc).isoformat()
        prepared: list[Row] = []
        for row in rows:
            if not isinstance(row, dict):
                raise StorageError(f"Cannot insert non-object row into {table}", resource=table, action="insert")
            new_row = dict(row)
            if not new_row.get("id"):
                new_row["id"] = str(uuid.uuid4())
            new_row.setdefault("created_at", created_at)
            prepared.append(new_row)

        with self._lock:
            rows_in_table = self._tables.setdefault(table, [])
            existing_ids = {row.get("id") for row in rows_in_table}
            batch_ids = [row["id"] for row in prepared]
            if len(set(batch_ids)) != len(batch_ids) or existing_ids.intersection(batch_ids):
                raise StorageError(f"Duplicate id in {table} batch insert", resource=table, action="insert")
            rows_in_table.extend(prepared)
            self._after_write()

        return [dict(row) for row in prepared]

    def update_batch(self, table: str, filters: Filters, patch: Row) -> int:
        with self._lock:
            changed = 0
            for row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(patch)
                    changed += 1
            if changed:
                self._after_write()
            return changed

    def delete_batch(self, table: str, filters: Filters) -> int:
        with self._lock:
            rows_in_table = self._tables.get(table, [])
            kept = [row for row in rows_in_table if not _matches(row, filters)]
            removed = len(rows_in_table) - len(kept)
            if removed:
                self._tables[table] = kept
                self._after_write()
            return removed

    def tables(self) -> dict[str, list[Row]]:
        """Snapshot of every table."""
        with self._lock:
            return {name: [dict(row) for row in rows] for name, rows in self._tables.items()}

    def _after_write(self) -> None:
        """Hook for subclasses that persist after each mutation (called with the lock held)."""


class JsonFileRowStore(InMemoryRowStore):
    """
    RowStore persisted to a single pretty-printed JSON file.

    The whole file is rewritten after every mutation; this store is meant for
    single-user CLI use, not concurrent writers across processes.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        tables: dict[str, list[Row]] = {}
        if self.path.exists():
            try:
                loaded = read_json(self.path)
            except ValueError as e:
                raise StorageError(f"Store file is not valid JSON: {self.path}: {e}", action="load") from e
            if not isinstance(loaded, dict):
                raise StorageError(f"Store file must contain an object of tables: {self.path}", action="load")
            tables = loaded
        super().__init__(tables)

    def _after_write(self) -> None:
        try:
            write_json(self.path, self._tables)
        except OSError as e:
            raise StorageError(f"Failed to write store file {self.path}: {e}", action="save") from e


class ScopedStore:
    """
    RowStore view restricted to one owner.

    Every read and write is filtered by (and every inserted row stamped with)
    the owner id. Collaborator failures that are not already StorageError are
    wrapped with the table and action that failed.
    """

    def __init__(self, store: RowStore, owner_id: str):
        if not owner_id:
            raise ValueError("ScopedStore requires an owner id")
        self.store = store
        self.owner_id = owner_id

    def _scope(self, table: str, filters: Filters | None) -> Filters:
        scoped = dict(filters or {})
        scoped[owner_column(table)] = self.owner_id
        return scoped

    def query(self, table: str, filters: Filters | None = None) -> list[Row]:
        return self._call(table, "query", self.store.query, table, self._scope(table, filters))

    def get(self, table: str, entity_id: str) -> Row | None:
        """Fetch one owned row by id, or None."""
        rows = self.query(table, {"id": entity_id})
        return rows[0] if rows else None

    def insert_batch(self, table: str, rows: Iterable[Row]) -> list[Row]:
        column = owner_column(table)
        stamped = [{**row, column: self.owner_id} for row in rows]
        if not stamped:
            return []
        return self._call(table, "insert", self.store.insert_batch, table, stamped)

    def update_batch(self, table: str, filters: Filters, patch: Row) -> int:
        return self._call(table, "update", self.store.update_batch, table, self._scope(table, filters), patch)

    def delete_batch(self, table: str, filters: Filters | None = None) -> int:
        return self._call(table, "delete", self.store.delete_batch, table, self._scope(table, filters))

    def _call(self, table: str, action: str, func: Any, *args: Any) -> Any:
        try:
            return func(*args)
        except StorageError as e:
            if e.resource is None:
                e.resource = table
            if e.action is None:
                e.action = action
            raise
        except Exception as e:
            logger.error("Storage collaborator failed: resource=%s action=%s error=%s", table, action, e)
            raise StorageError(f"{action} on {table} failed: {e}", resource=table, action=action) from e
