from __future__ import annotations

import copy
import threading
import time
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Iterator
from typing import Any

from ..errors import NotFound

# collection -> index name -> indexed fields
INDEXES: dict[str, dict[str, tuple[str, ...]]] = {
    "restaurants": {
        "by_key": ("key",),
        "by_name": ("name",),
    },
    "events": {
        "by_start_date": ("start_date",),
        "by_name": ("name",),
    },
    "menus": {
        "by_restaurant": ("restaurant",),
        "by_event": ("event",),
        "by_restaurant_and_event": ("restaurant", "event"),
    },
}


class DocumentStore(ABC):
    """Collection-oriented document store addressed by opaque string ids."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        ...

    @abstractmethod
    def insert(self, collection: str, record: dict[str, Any]) -> str:
        ...

    @abstractmethod
    def patch(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge *fields* into the document. ``None`` values clear a field."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        ...

    @abstractmethod
    def scan(self, collection: str) -> Iterator[dict[str, Any]]:
        ...

    @abstractmethod
    def query(self, collection: str, index: str, **values: Any) -> list[dict[str, Any]]:
        """Collect every document whose indexed fields equal *values*."""

    def get_many(self, collection: str, doc_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Batch fetch. Ids that do not resolve are left out of the result."""
        found: dict[str, dict[str, Any]] = {}
        for doc_id in doc_ids:
            doc = self.get(collection, doc_id)
            if doc is not None:
                found[doc_id] = doc
        return found

    def first(self, collection: str, index: str, **values: Any) -> dict[str, Any] | None:
        docs = self.query(collection, index, **values)
        return docs[0] if docs else None


class InMemoryDocumentStore(DocumentStore):
    def __init__(self, indexes: dict[str, dict[str, tuple[str, ...]]] | None = None) -> None:
        self._indexes = indexes if indexes is not None else INDEXES
        self._docs: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        # collection -> index name -> value tuple -> ids (insertion ordered)
        self._index_data: dict[str, dict[str, dict[tuple, dict[str, None]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(dict))
        )
        self._lock = threading.RLock()

    def _index_values(self, collection: str, doc: dict[str, Any]) -> dict[str, tuple]:
        return {
            name: tuple(doc.get(f) for f in fields)
            for name, fields in self._indexes.get(collection, {}).items()
        }

    def _add_to_indexes(self, collection: str, doc: dict[str, Any]) -> None:
        for name, values in self._index_values(collection, doc).items():
            self._index_data[collection][name][values][doc["id"]] = None

    def _drop_from_indexes(self, collection: str, doc: dict[str, Any]) -> None:
        for name, values in self._index_values(collection, doc).items():
            bucket = self._index_data[collection][name].get(values)
            if bucket is not None:
                bucket.pop(doc["id"], None)
                if not bucket:
                    del self._index_data[collection][name][values]

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self._docs[collection].get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def insert(self, collection: str, record: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        doc = {k: v for k, v in copy.deepcopy(record).items() if v is not None}
        doc["id"] = doc_id
        doc["creation_time"] = time.time()
        with self._lock:
            self._docs[collection][doc_id] = doc
            self._add_to_indexes(collection, doc)
        return doc_id

    def patch(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            doc = self._docs[collection].get(doc_id)
            if doc is None:
                raise NotFound(collection, doc_id)
            self._drop_from_indexes(collection, doc)
            for key, value in copy.deepcopy(fields).items():
                if key in ("id", "creation_time"):
                    continue
                if value is None:
                    doc.pop(key, None)
                else:
                    doc[key] = value
            self._add_to_indexes(collection, doc)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            doc = self._docs[collection].pop(doc_id, None)
            if doc is None:
                return False
            self._drop_from_indexes(collection, doc)
            return True

    def scan(self, collection: str) -> Iterator[dict[str, Any]]:
        with self._lock:
            docs = [copy.deepcopy(d) for d in self._docs[collection].values()]
        return iter(docs)

    def query(self, collection: str, index: str, **values: Any) -> list[dict[str, Any]]:
        fields = self._indexes.get(collection, {}).get(index)
        if fields is None:
            raise KeyError(f"Unknown index {index!r} on {collection!r}")
        if set(values) != set(fields):
            raise KeyError(f"Index {index!r} expects fields {fields}, got {tuple(values)}")
        key = tuple(values[f] for f in fields)
        with self._lock:
            ids = list(self._index_data[collection][index].get(key, {}))
            return [copy.deepcopy(self._docs[collection][i]) for i in ids]

    def count(self, collection: str) -> int:
        return len(self._docs[collection])
