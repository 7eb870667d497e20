from __future__ import annotations

from typing import Any, Protocol, TypeVar

from .lazy import LazySequence

E = TypeVar("E")


class StorageEngine(Protocol):
    """Persistence and entity mapping for the backing graph database."""

    def get_by_id(self, id: int, entity_type: type) -> Any:
        """Return the raw record for `id`; raise `NotFound` if there is none."""
        ...

    def create_entity(self, record: Any, entity_type: type[E]) -> E: ...

    def save(self, entity: E) -> E: ...

    def delete(self, entity: Any) -> None: ...

    def count(self, entity_type: type) -> int: ...

    def find_all(self, entity_type: type[E]) -> LazySequence[E]: ...

    def stored_type(self, entity: Any) -> type | None: ...


class IndexEngine(Protocol):
    """Named indexes supporting exact, range, geo and free-text lookups.

    Every method returns raw records; unknown index names raise `IndexNotFound`.
    """

    def get(self, index_name: str, key: str, value: Any) -> LazySequence[Any]: ...

    def query_index(self, index_name: str, key: str, query: Any) -> LazySequence[Any]: ...

    def range(self, index_name: str, key: str, start: Any, end: Any) -> LazySequence[Any]: ...


class QueryEngine(Protocol):
    def query(self, statement: str, params: dict[str, Any] | None = None) -> LazySequence[Any]: ...


class QueryBuilder(Protocol):
    """Structured query that can be rendered and have skip/limit injected."""

    def skip(self, n: int) -> QueryBuilder: ...

    def limit(self, n: int) -> QueryBuilder: ...

    def render(self) -> str: ...
