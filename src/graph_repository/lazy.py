from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, TypeVar

from .errors import IncorrectResultSize, UnsupportedOperation

T = TypeVar("T")
U = TypeVar("U")

_MISSING = object()


class LazySequence(Generic[T]):
    """Single-pass, resource-backed sequence of store results.

    Wraps a forward-only iterator plus an optional release callback (a driver
    session, a cursor, ...). The callback runs exactly once: on `close()`, on
    leaving a `with` block, or when iteration reaches the end.

    `has_next()` peeks one element without losing it, which is what lets the
    result window tell "more data" apart from "exhausted" without draining
    the store.
    """

    def __init__(self, source: Iterable[T], release: Callable[[], None] | None = None):
        self._it: Iterator[T] = iter(source)
        self._release = release
        self._peeked: Any = _MISSING
        self._started = False
        self._closed = False

    @classmethod
    def empty(cls) -> LazySequence[Any]:
        return cls(())

    @property
    def closed(self) -> bool:
        return self._closed

    def has_next(self) -> bool:
        if self._closed:
            return False
        self._started = True
        if self._peeked is _MISSING:
            try:
                self._peeked = next(self._it)
            except StopIteration:
                return False
        return True

    def next(self) -> T:
        if not self.has_next():
            self.close()
            raise StopIteration
        item, self._peeked = self._peeked, _MISSING
        return item

    def __next__(self) -> T:
        return self.next()

    def __iter__(self) -> Iterator[T]:
        # forward-only: iterating continues from the current position
        if self._closed:
            raise UnsupportedOperation("LazySequence is closed and cannot be iterated again")
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._peeked = _MISSING
        release, self._release = self._release, None
        if release is not None:
            release()

    # alias
    finish = close

    def __enter__(self) -> LazySequence[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def map(self, fn: Callable[[T], U]) -> LazySequence[U]:
        """Convert elements lazily; the new sequence owns this one's release."""
        return LazySequence((fn(x) for x in self._drain()), release=self.close)

    def _drain(self) -> Iterator[T]:
        while self.has_next():
            yield self.next()

    def to_list(self) -> list[T]:
        with self:
            return list(self._drain())

    def single_or_none(self) -> T | None:
        with self:
            if not self.has_next():
                return None
            item = self.next()
            if self.has_next():
                raise IncorrectResultSize(1, "more than one")
            return item

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("started" if self._started else "fresh")
        return f"<LazySequence {state}>"
