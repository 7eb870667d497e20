from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class NotFound(RepositoryError):
    """An id or index lookup had no hit."""

    def __init__(self, what: str, key: object) -> None:
        self.what = what
        self.key = key
        super().__init__(f"{what} not found: {key!r}")


class IndexNotFound(RepositoryError):
    def __init__(self, index_name: str) -> None:
        self.index_name = index_name
        super().__init__(f"Index not found: {index_name!r}")


class InvalidQueryParameter(RepositoryError):
    """A query parameter (geo bounds, identifier, bbox string, ...) is malformed."""


class UnsupportedOperation(RepositoryError):
    pass


class IncorrectResultSize(RepositoryError):
    def __init__(self, expected: int, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected at most {expected} result(s), got {actual}")
