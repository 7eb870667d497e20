"""Shared fakes for the storage, index and query collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import pytest

from graph_repository.errors import IndexNotFound, NotFound
from graph_repository.lazy import LazySequence


@dataclass
class Person:
    id: int | None = None
    name: str = ""
    age: int = 0
    properties: dict[str, Any] = field(default_factory=dict)


class CountingIterator:
    """Iterator that records how many elements were pulled from it."""

    def __init__(self, items):
        self._items = list(items)
        self.pulled = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.pulled >= len(self._items):
            raise StopIteration
        item = self._items[self.pulled]
        self.pulled += 1
        return item


class InMemoryGraphStore:
    """Plays the storage, index and query engine roles against plain dicts."""

    def __init__(self) -> None:
        self.entities: dict[int, Any] = {}
        self.indexes: dict[str, list[str]] = {"Person": ["name", "age"]}
        self.deleted: list[Any] = []
        self.index_calls: list[tuple] = []
        self.statements: list[tuple[str, dict]] = []
        self.query_results: dict[str, list[Any]] = {}
        self.opened = 0
        self.released = 0
        self._next_id = 0

    def _seq(self, items) -> LazySequence[Any]:
        self.opened += 1

        def release() -> None:
            self.released += 1

        return LazySequence(list(items), release=release)

    # storage
    def get_by_id(self, id, entity_type):
        if id not in self.entities:
            raise NotFound(entity_type.__name__, id)
        return self.entities[id]

    def create_entity(self, record, entity_type):
        if isinstance(record, entity_type):
            return record
        return entity_type(**record)

    def save(self, entity):
        if entity.id is None:
            entity = replace(entity, id=self._next_id)
            self._next_id += 1
        self.entities[entity.id] = entity
        return entity

    def delete(self, entity):
        self.deleted.append(entity)
        self.entities.pop(entity.id, None)

    def count(self, entity_type):
        return sum(1 for e in self.entities.values() if isinstance(e, entity_type))

    def find_all(self, entity_type):
        return self._seq(e for e in self.entities.values() if isinstance(e, entity_type))

    def stored_type(self, entity):
        stored = self.entities.get(entity.id)
        return type(stored) if stored is not None else None

    # index
    def _check(self, index_name):
        if index_name not in self.indexes:
            raise IndexNotFound(index_name)

    def get(self, index_name, key, value):
        self._check(index_name)
        self.index_calls.append(("get", index_name, key, value))
        return self._seq(e for e in self.entities.values() if getattr(e, key, None) == value)

    def query_index(self, index_name, key, query):
        self._check(index_name)
        self.index_calls.append(("query", index_name, key, query))
        if key in ("bbox", "withinDistance", "withinWKTGeometry"):
            return self._seq(self.query_results.get(key, []))
        needle = str(query).strip("*").lower()
        return self._seq(e for e in self.entities.values() if needle in str(getattr(e, key, "")).lower())

    def range(self, index_name, key, start, end):
        self._check(index_name)
        self.index_calls.append(("range", index_name, key, (start, end)))
        return self._seq(e for e in self.entities.values() if start <= getattr(e, key) <= end)

    # query
    def query(self, statement, params=None):
        self.statements.append((statement, params))
        return self._seq(self.query_results.get(statement, []))


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def people(store):
    names = [("alice", 31), ("bob", 25), ("carol", 47), ("dave", 25), ("erin", 52)]
    return [store.save(Person(name=n, age=a)) for n, a in names]
