from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypeVar

from .lazy import LazySequence
from .models import Page, PageRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_page(
    source: LazySequence[T], offset: int, limit: int, page_request: PageRequest | None = None
) -> Page[T]:
    """Cut a page out of a forward-only sequence of unknown length.

    Walks `source` once: the first `offset` elements are discarded, the next
    `limit` are kept, then one more element is peeked (not consumed). The
    resulting `total_count` is the number of elements walked, plus one if
    the peek found more data. It is exact only when the source ran out
    inside the window.

    The caller still owns `source` and must close it.
    """
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")

    content: list[T] = []
    walked = 0
    skip = offset
    while len(content) < limit and source.has_next():
        item = source.next()
        walked += 1
        if skip > 0:
            skip -= 1
            continue
        content.append(item)

    total = walked + 1 if source.has_next() else walked
    logger.debug(f"Window offset={offset} limit={limit}: kept {len(content)} of {walked} walked, total={total}")
    return Page(content=content, total_count=total, page_request=page_request or PageRequest(offset, limit))


@dataclass(frozen=True, slots=True)
class ResultWindow:
    """A page request applied after retrieval, for stores without skip/limit pushdown."""

    page_request: PageRequest

    def apply(self, source: LazySequence[T]) -> Page[T]:
        with source:
            return extract_page(source, self.page_request.offset, self.page_request.page_size, self.page_request)
