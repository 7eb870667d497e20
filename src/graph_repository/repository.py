from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any, Generic, TypeVar

from .errors import NotFound
from .index_search import IndexSearchDelegate
from .lazy import LazySequence
from .models import (
    IndexedQuery,
    Page,
    PageRequest,
    Sort,
    WithinBoundingBox,
    WithinDistance,
    WithinWKT,
)
from .query import QueryDelegate
from .store import IndexEngine, QueryBuilder, QueryEngine, StorageEngine

logger = logging.getLogger(__name__)

E = TypeVar("E")


class _EntitiesById(Generic[E]):
    """Re-iterable, element-wise lookup; a missing id yields None at its position."""

    def __init__(self, repository: GraphRepository[E], ids: Iterable[int]):
        self._repository = repository
        self._ids = ids

    def __iter__(self) -> Iterator[E | None]:
        for id in self._ids:
            yield self._repository.find_one(id)


class GraphRepository(Generic[E]):
    """Generic repository for one entity type over a graph store.

    Direct lookups go to the storage engine, index and geo lookups to an
    `IndexSearchDelegate`, queries and paging to a `QueryDelegate`. Lazy
    results are handed to the caller, who must close them (or use `with`);
    anything this class materializes itself, it closes.
    """

    def __init__(
        self,
        storage: StorageEngine,
        entity_type: type[E],
        *,
        index_engine: IndexEngine | None = None,
        query_engine: QueryEngine | None = None,
    ):
        self.storage = storage
        self.entity_type = entity_type
        # A single store object usually plays all three roles.
        self._index = IndexSearchDelegate(index_engine or storage, storage, entity_type)  # type: ignore[arg-type]
        self._query = QueryDelegate(query_engine or storage, storage, entity_type)  # type: ignore[arg-type]

    # --- CRUD ---

    def save(self, entity: E) -> E:
        return self.storage.save(entity)

    def save_all(self, entities: Iterable[E]) -> list[E]:
        return [self.save(entity) for entity in entities]

    def count(self) -> int:
        return self.storage.count(self.entity_type)

    def find_one(self, id: int) -> E | None:
        try:
            record = self.storage.get_by_id(id, self.entity_type)
        except NotFound:
            return None
        return self.storage.create_entity(record, self.entity_type)

    def exists(self, id: int) -> bool:
        try:
            return self.storage.get_by_id(id, self.entity_type) is not None
        except NotFound:
            return False

    def find_all(self, sort: Sort | None = None) -> LazySequence[E]:
        if sort is not None and sort.is_sorted:
            return self._query.find_all_sorted(sort)
        return self.storage.find_all(self.entity_type)

    def find_all_by_id(self, ids: Iterable[int]) -> Iterable[E | None]:
        return _EntitiesById(self, ids)

    def find_page(self, page_request: PageRequest) -> Page[E]:
        return self._query.find_page(page_request)

    def delete(self, entity: E) -> None:
        self.storage.delete(entity)

    def delete_by_id(self, id: int) -> None:
        entity = self.find_one(id)
        if entity is None:
            logger.debug(f"No {self.entity_type.__name__} with id {id} to delete")
            return
        self.delete(entity)

    def delete_many(self, entities: Iterable[E]) -> None:
        for entity in entities:
            self.delete(entity)

    def delete_all(self) -> None:
        # deletes must not run against an open read cursor
        entities = self.find_all().to_list()
        logger.info(f"Deleting {len(entities)} {self.entity_type.__name__} entities")
        self.delete_many(entities)

    def stored_type(self, entity: E) -> type | None:
        return self.storage.stored_type(entity)

    # --- index lookups ---

    def find_by_property_value(self, property: str, value: Any, *, index_name: str | None = None) -> E | None:
        return self._index.find_by_property_value(index_name, property, value)

    def find_all_by_property_value(
        self, property: str, value: Any, *, index_name: str | None = None
    ) -> LazySequence[E]:
        return self._index.find_all_by_property_value(index_name, property, value)

    def find_all_by_query(self, property: str, query: Any, *, index_name: str | None = None) -> LazySequence[E]:
        return self._index.find_all_by_query(index_name, property, query)

    def find_all_by_range(
        self, property: str, start: Any, end: Any, *, index_name: str | None = None
    ) -> LazySequence[E]:
        return self._index.find_all_by_range(index_name, property, start, end)

    def search(self, query: IndexedQuery) -> LazySequence[E]:
        return self._index.search(query)

    # --- geo ---

    def find_within_bounding_box(
        self, index_name: str, min_lat: float, min_lon: float, max_lat: float, max_lon: float
    ) -> LazySequence[E]:
        return self._index.geo_query(index_name, WithinBoundingBox(min_lat, min_lon, max_lat, max_lon))

    def find_within_distance(self, index_name: str, lat: float, lon: float, distance_km: float) -> LazySequence[E]:
        return self._index.geo_query(index_name, WithinDistance(lat, lon, distance_km))

    def find_within_wkt(self, index_name: str, wkt: str) -> LazySequence[E]:
        return self._index.geo_query(index_name, WithinWKT(wkt))

    # --- queries ---

    def query(self, statement: str | QueryBuilder, params: dict[str, Any] | None = None) -> LazySequence[E]:
        if isinstance(statement, str):
            return self._query.query(statement, params)
        return self._query.run(statement, params)

    def paged_query(
        self,
        query: QueryBuilder,
        params: dict[str, Any] | None,
        page_request: PageRequest,
        *,
        count_query: QueryBuilder | None = None,
    ) -> Page[E]:
        return self._query.paged_query(query, params, page_request, count_query)
