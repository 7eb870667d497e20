from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Iterator, TypeVar, Union

from .errors import InvalidQueryParameter

T = TypeVar("T")


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True, slots=True)
class Order:
    property: str
    direction: Direction = Direction.ASC


@dataclass(frozen=True, slots=True)
class Sort:
    """Ordered sequence of (property, direction) pairs."""

    orders: tuple[Order, ...] = ()

    @classmethod
    def by(cls, *properties: str, direction: Direction = Direction.ASC) -> Sort:
        return cls(tuple(Order(p, direction) for p in properties))

    @classmethod
    def unsorted(cls) -> Sort:
        return cls()

    def and_(self, other: Sort) -> Sort:
        return Sort(self.orders + other.orders)

    @property
    def is_sorted(self) -> bool:
        return bool(self.orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)


@dataclass(frozen=True, slots=True)
class PageRequest:
    offset: int = 0
    page_size: int = 20
    sort: Sort = field(default_factory=Sort)

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.page_size <= 0:
            raise ValueError(f"page_size must be > 0, got {self.page_size}")

    @classmethod
    def of(cls, page: int, size: int, sort: Sort | None = None) -> PageRequest:
        if page < 0:
            raise ValueError(f"page must be >= 0, got {page}")
        return cls(offset=page * size, page_size=size, sort=sort or Sort())

    @property
    def page_number(self) -> int:
        return self.offset // self.page_size

    def next(self) -> PageRequest:
        return PageRequest(self.offset + self.page_size, self.page_size, self.sort)


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """A bounded slice of results.

    `total_count` is exact when a count query supplied it. Otherwise it is a
    lower bound: the number of elements walked, plus one when the source had
    at least one more element. Callers rely on that "+1" to know a next page
    exists, so it is kept as is rather than turned into an exact total.
    """

    content: list[T]
    total_count: int
    page_request: PageRequest

    @property
    def number(self) -> int:
        return self.page_request.page_number

    @property
    def size(self) -> int:
        return self.page_request.page_size

    @property
    def number_of_elements(self) -> int:
        return len(self.content)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.size)

    @property
    def has_next(self) -> bool:
        return self.page_request.offset + len(self.content) < self.total_count

    @property
    def has_previous(self) -> bool:
        return self.page_request.offset > 0

    @property
    def is_first(self) -> bool:
        return not self.has_previous

    @property
    def is_last(self) -> bool:
        return not self.has_next

    def __iter__(self) -> Iterator[T]:
        return iter(self.content)

    def __len__(self) -> int:
        return len(self.content)


# --- geo queries ---

def _coordinate(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidQueryParameter(f"{name} must be a number, got {value!r}") from e


def _check_lat(name: str, value: float) -> float:
    value = _coordinate(name, value)
    if not -90.0 <= value <= 90.0:
        raise InvalidQueryParameter(f"{name} must be within [-90, 90], got {value}")
    return value


def _check_lon(name: str, value: float) -> float:
    value = _coordinate(name, value)
    if not -180.0 <= value <= 180.0:
        raise InvalidQueryParameter(f"{name} must be within [-180, 180], got {value}")
    return value


@dataclass(frozen=True, slots=True)
class WithinBoundingBox:
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    key = "bbox"

    def __post_init__(self) -> None:
        min_lat = _check_lat("min_lat", self.min_lat)
        max_lat = _check_lat("max_lat", self.max_lat)
        _check_lon("min_lon", self.min_lon)
        _check_lon("max_lon", self.max_lon)
        # min_lon > max_lon is a box crossing the antimeridian and is passed through
        if min_lat > max_lat:
            raise InvalidQueryParameter(f"Bounding box latitudes are inverted: {self}")

    def param(self) -> str:
        # lon before lat, matching the layout existing spatial indexes expect
        return f"[{float(self.min_lon)}, {float(self.max_lon)}, {float(self.min_lat)}, {float(self.max_lat)}]"


@dataclass(frozen=True, slots=True)
class WithinDistance:
    lat: float
    lon: float
    radius_km: float

    key = "withinDistance"

    def __post_init__(self) -> None:
        _check_lat("lat", self.lat)
        _check_lon("lon", self.lon)
        if not _coordinate("radius_km", self.radius_km) > 0:
            raise InvalidQueryParameter(f"radius_km must be > 0, got {self.radius_km}")

    def param(self) -> dict[str, Any]:
        return {"point": [float(self.lon), float(self.lat)], "distanceInKm": float(self.radius_km)}


@dataclass(frozen=True, slots=True)
class WithinWKT:
    wkt: str

    key = "withinWKTGeometry"

    def __post_init__(self) -> None:
        if not isinstance(self.wkt, str) or not self.wkt.strip():
            raise InvalidQueryParameter("WKT geometry must be a non-empty string")

    def param(self) -> str:
        return self.wkt


GeoQuery = Union[WithinBoundingBox, WithinDistance, WithinWKT]


# --- index queries ---

class IndexQueryKind(str, Enum):
    EXACT = "exact"
    EXPRESSION = "expression"
    RANGE = "range"


@dataclass(frozen=True, slots=True)
class IndexedQuery:
    """Lookup against a named index; `index_name=None` means the type's default index."""

    property: str
    kind: IndexQueryKind
    value: Any
    index_name: str | None = None

    @classmethod
    def exact(cls, property: str, value: Any, index_name: str | None = None) -> IndexedQuery:
        return cls(property, IndexQueryKind.EXACT, value, index_name)

    @classmethod
    def expression(cls, property: str, expr: Any, index_name: str | None = None) -> IndexedQuery:
        return cls(property, IndexQueryKind.EXPRESSION, expr, index_name)

    @classmethod
    def between(cls, property: str, start: float, end: float, index_name: str | None = None) -> IndexedQuery:
        return cls(property, IndexQueryKind.RANGE, (start, end), index_name)
