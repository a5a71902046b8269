"""Query interface over the catalog collections.

The store mimics the small slice of a hosted database API the site needs:
select everything, filter on one field, take an offset/limit range and fetch
exactly one row. Rows are plain dicts exactly as stored.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional

from aitoonic.config import COLLECTIONS
from aitoonic.errors import NotFoundError
from aitoonic.storage import backend_from_env

logger = logging.getLogger(__name__)

OPERATORS = ("eq", "neq", "ilike")


def _like_to_regex(pattern: str) -> re.Pattern:
    parts = []
    for char in str(pattern):
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class Filter:
    """A single ``field <op> value`` condition."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported operator {self.op!r}; expected one of {OPERATORS}")

    def matches(self, row: Dict[str, Any]) -> bool:
        actual = row.get(self.field)
        if self.op == "eq":
            return actual == self.value
        if self.op == "neq":
            return actual != self.value
        if actual is None:
            return False
        return _like_to_regex(self.value).fullmatch(str(actual)) is not None


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)


def neq(field: str, value: Any) -> Filter:
    return Filter(field, "neq", value)


def ilike(field: str, pattern: str) -> Filter:
    return Filter(field, "ilike", pattern)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogStore:
    """Collection-generic reads and writes against a storage backend."""

    def __init__(self, backend=None) -> None:
        self.backend = backend if backend is not None else backend_from_env()

    @staticmethod
    def _key(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection {collection!r}")
        return f"{collection}.json"

    def _load(self, collection: str) -> Dict[str, Any]:
        return self.backend.read_document(self._key(collection))

    def _save(self, collection: str, document: Dict[str, Any]) -> None:
        document["last_updated"] = _now_iso()
        self.backend.write_document(self._key(collection), document)

    def _rows(self, collection: str, filters: Iterable[Filter] = ()) -> List[Dict[str, Any]]:
        filters = list(filters)
        rows = self._load(collection)["items"]
        return [row for row in rows if all(f.matches(row) for f in filters)]

    # Reads

    def select_all(self, collection: str) -> List[Dict[str, Any]]:
        rows = self._rows(collection)
        logger.debug(f"Selected {len(rows)} rows from {collection}")
        return rows

    def select_filtered(self, collection: str, field: str, op: str, value: Any) -> List[Dict[str, Any]]:
        return self._rows(collection, [Filter(field, op, value)])

    def select_range(
        self,
        collection: str,
        offset: int,
        limit: int,
        filters: Optional[Iterable[Filter]] = None,
    ) -> List[Dict[str, Any]]:
        """Return at most ``limit`` rows starting at ``offset``, in storage order."""
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative")
        rows = self._rows(collection, filters or ())
        return rows[offset : offset + limit]

    def select_one(self, collection: str, field: str, op: str, value: Any) -> Dict[str, Any]:
        rows = self.select_filtered(collection, field, op, value)
        if len(rows) != 1:
            if rows:
                logger.warning(f"Expected one {collection} row for {field} {op} {value!r}, found {len(rows)}")
            raise NotFoundError(collection, field, value)
        return rows[0]

    # Writes

    def insert(self, collection: str, item: Dict[str, Any]) -> Dict[str, Any]:
        document = self._load(collection)
        row = dict(item)
        row["id"] = row.get("id") or str(uuid.uuid4())
        if any(existing.get("id") == row["id"] for existing in document["items"]):
            raise ValueError(f"{collection} already contains id {row['id']!r}")
        document["items"].append(row)
        self._save(collection, document)
        logger.info(f"Inserted {collection} row {row['id']}")
        return row

    def update(self, collection: str, item_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        document = self._load(collection)
        for index, row in enumerate(document["items"]):
            if row.get("id") == item_id:
                updated = {**row, **changes, "id": item_id}
                document["items"][index] = updated
                self._save(collection, document)
                logger.info(f"Updated {collection} row {item_id}")
                return updated
        raise NotFoundError(collection, "id", item_id)

    def delete(self, collection: str, item_id: str) -> None:
        document = self._load(collection)
        remaining = [row for row in document["items"] if row.get("id") != item_id]
        if len(remaining) == len(document["items"]):
            raise NotFoundError(collection, "id", item_id)
        document["items"] = remaining
        self._save(collection, document)
        logger.info(f"Deleted {collection} row {item_id}")


# Lazy process-wide store
_store: Optional[CatalogStore] = None


def get_store() -> CatalogStore:
    """Get or create the store for the configured backend."""
    global _store
    if _store is None:
        _store = CatalogStore()
    return _store


def reset_store() -> None:
    global _store
    _store = None
