from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from .errors import InvalidQueryParameter
from .lazy import LazySequence
from .models import Page, PageRequest, Sort
from .store import QueryBuilder, QueryEngine, StorageEngine
from .window import ResultWindow

logger = logging.getLogger(__name__)

E = TypeVar("E")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(value: str, what: str = "identifier") -> str:
    """Labels, property names and sort keys are interpolated into Cypher, so keep them plain."""
    if not isinstance(value, str) or not _IDENTIFIER.match(value):
        raise InvalidQueryParameter(f"Invalid {what}: {value!r}")
    return value


def label_for(entity_type: type) -> str:
    return check_identifier(getattr(entity_type, "__label__", entity_type.__name__), "label")


@dataclass(frozen=True, slots=True)
class CypherQuery:
    """Minimal immutable Cypher builder: MATCH / WHERE / RETURN / ORDER BY / SKIP / LIMIT."""

    match: str
    returns: str = "n"
    where: str | None = None
    sort: Sort = Sort()
    skip_count: int | None = None
    limit_count: int | None = None
    var: str = "n"

    @classmethod
    def for_label(cls, label: str, var: str = "n") -> CypherQuery:
        return cls(match=f"({var}:`{check_identifier(label, 'label')}`)", returns=var, var=var)

    @classmethod
    def for_entity(cls, entity_type: type, var: str = "n") -> CypherQuery:
        return cls.for_label(label_for(entity_type), var)

    def filter(self, condition: str) -> CypherQuery:
        where = f"({self.where}) AND ({condition})" if self.where else condition
        return replace(self, where=where)

    def returning(self, returns: str) -> CypherQuery:
        return replace(self, returns=returns)

    def count(self) -> CypherQuery:
        return replace(self, returns=f"count({self.var})", sort=Sort(), skip_count=None, limit_count=None)

    def order_by(self, sort: Sort) -> CypherQuery:
        for order in sort:
            check_identifier(order.property, "sort property")
        return replace(self, sort=sort)

    def skip(self, n: int) -> CypherQuery:
        if n < 0:
            raise InvalidQueryParameter(f"skip must be >= 0, got {n}")
        return replace(self, skip_count=n)

    def limit(self, n: int) -> CypherQuery:
        if n <= 0:
            raise InvalidQueryParameter(f"limit must be > 0, got {n}")
        return replace(self, limit_count=n)

    def render(self) -> str:
        parts = [f"MATCH {self.match}"]
        if self.where:
            parts.append(f"WHERE {self.where}")
        parts.append(f"RETURN {self.returns}")
        if self.sort.is_sorted:
            parts.append("ORDER BY " + ", ".join(f"{self.var}.`{o.property}` {o.direction.value}" for o in self.sort))
        if self.skip_count:
            parts.append(f"SKIP {self.skip_count}")
        if self.limit_count is not None:
            parts.append(f"LIMIT {self.limit_count}")
        return " ".join(parts)

    def __str__(self) -> str:
        return self.render()


def _scalar(record: Any) -> Any:
    if record is None or isinstance(record, (int, float)):
        return record
    if isinstance(record, Mapping):
        return next(iter(record.values()), None)
    return record[0]


class QueryDelegate(Generic[E]):
    """Runs parameterized queries for one entity type.

    `paged_query` pushes skip/limit down into the query itself and may run a
    separate count query for an exact total. `find_page` has no count
    companion, so it windows a sorted full scan instead.
    """

    def __init__(self, query_engine: QueryEngine, storage: StorageEngine, entity_type: type[E]):
        self.query_engine = query_engine
        self.storage = storage
        self.entity_type = entity_type

    def query(self, statement: str, params: dict[str, Any] | None = None) -> LazySequence[E]:
        logger.debug(f"Query for {self.entity_type.__name__}: {statement[:200]}")
        records = self.query_engine.query(statement, params or {})
        return records.map(lambda record: self.storage.create_entity(record, self.entity_type))

    def run(self, builder: QueryBuilder, params: dict[str, Any] | None = None) -> LazySequence[E]:
        return self.query(builder.render(), params)

    def paged_query(
        self,
        builder: QueryBuilder,
        params: dict[str, Any] | None,
        page_request: PageRequest,
        count_query: QueryBuilder | None = None,
    ) -> Page[E]:
        limited = builder.skip(page_request.offset).limit(page_request.page_size)
        content = self.run(limited, params).to_list()
        if count_query is None:
            return Page(content=content, total_count=len(content), page_request=page_request)

        count = self.query_engine.query(count_query.render(), params or {}).map(_scalar).single_or_none()
        if count is None:
            logger.debug("Count query returned nothing, falling back to page length")
            return Page(content=content, total_count=len(content), page_request=page_request)
        return Page(content=content, total_count=int(count), page_request=page_request)

    def find_all_sorted(self, sort: Sort | None = None) -> LazySequence[E]:
        return self.run(CypherQuery.for_entity(self.entity_type).order_by(sort or Sort()))

    def find_page(self, page_request: PageRequest) -> Page[E]:
        return ResultWindow(page_request).apply(self.find_all_sorted(page_request.sort))
