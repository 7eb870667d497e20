from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from .lazy import LazySequence
from .models import GeoQuery, IndexedQuery, IndexQueryKind
from .store import IndexEngine, StorageEngine

logger = logging.getLogger(__name__)

E = TypeVar("E")


class IndexSearchDelegate(Generic[E]):
    """Index and geo lookups for one entity type.

    Index hits come back from the engine as raw records and are turned into
    entities lazily through the storage engine's mapper.
    """

    def __init__(self, index_engine: IndexEngine, storage: StorageEngine, entity_type: type[E]):
        self.index_engine = index_engine
        self.storage = storage
        self.entity_type = entity_type

    @property
    def default_index_name(self) -> str:
        return self.entity_type.__name__

    def _index_name(self, index_name: str | None) -> str:
        return index_name or self.default_index_name

    def _entities(self, hits: LazySequence[Any]) -> LazySequence[E]:
        return hits.map(lambda record: self.storage.create_entity(record, self.entity_type))

    def geo_query(self, index_name: str, geo: GeoQuery) -> LazySequence[E]:
        name = self._index_name(index_name)
        logger.debug(f"Geo query on index {name!r}: {geo.key}={geo.param()!r}")
        return self._entities(self.index_engine.query_index(name, geo.key, geo.param()))

    def find_by_property_value(self, index_name: str | None, property: str, value: Any) -> E | None:
        """Single-hit lookup: zero or several hits both give None."""
        with self.index_engine.get(self._index_name(index_name), property, value) as hits:
            if not hits.has_next():
                return None
            record = hits.next()
            if hits.has_next():
                logger.debug(f"Ambiguous index hit for {property}={value!r}, returning None")
                return None
        return self.storage.create_entity(record, self.entity_type)

    def find_all_by_property_value(self, index_name: str | None, property: str, value: Any) -> LazySequence[E]:
        return self._entities(self.index_engine.get(self._index_name(index_name), property, value))

    def find_all_by_query(self, index_name: str | None, property: str, query: Any) -> LazySequence[E]:
        return self._entities(self.index_engine.query_index(self._index_name(index_name), property, query))

    def find_all_by_range(self, index_name: str | None, property: str, start: Any, end: Any) -> LazySequence[E]:
        return self._entities(self.index_engine.range(self._index_name(index_name), property, start, end))

    def search(self, query: IndexedQuery) -> LazySequence[E]:
        if query.kind is IndexQueryKind.EXACT:
            return self.find_all_by_property_value(query.index_name, query.property, query.value)
        if query.kind is IndexQueryKind.EXPRESSION:
            return self.find_all_by_query(query.index_name, query.property, query.value)
        start, end = query.value
        return self.find_all_by_range(query.index_name, query.property, start, end)
