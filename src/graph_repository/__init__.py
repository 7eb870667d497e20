"""Generic repository layer over a graph store.

This package provides:
- A repository with find/count/save/delete, index, geo and query lookups
- Windowing of lazy, single-pass store results into pages
- Collaborator protocols plus a Neo4j implementation

The Neo4j store is imported lazily so the core stays usable without a driver.
"""

from .errors import (
    IncorrectResultSize,
    IndexNotFound,
    InvalidQueryParameter,
    NotFound,
    RepositoryError,
    UnsupportedOperation,
)
from .lazy import LazySequence
from .models import (
    Direction,
    IndexedQuery,
    Order,
    Page,
    PageRequest,
    Sort,
    WithinBoundingBox,
    WithinDistance,
    WithinWKT,
)
from .query import CypherQuery
from .repository import GraphRepository
from .window import ResultWindow, extract_page

__version__ = "0.1.0"

__all__ = [
    "CypherQuery",
    "Direction",
    "GraphRepository",
    "IncorrectResultSize",
    "IndexNotFound",
    "IndexedQuery",
    "InvalidQueryParameter",
    "LazySequence",
    "NotFound",
    "Order",
    "Page",
    "PageRequest",
    "RepositoryError",
    "ResultWindow",
    "Sort",
    "UnsupportedOperation",
    "WithinBoundingBox",
    "WithinDistance",
    "WithinWKT",
    "extract_page",
]
