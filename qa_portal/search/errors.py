"""Error taxonomy for the search module.

``ValidationError`` covers caller mistakes (empty query, blank title or
content, mismatched vector lengths). ``DependencyError`` covers failures of
the embedding or tag-generation collaborators, timeouts included.

Both are converted into failure result objects by
:class:`~qa_portal.search.engine.QuestionSearchService` and never escape the
module boundary.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Kind of failure carried by a failed result object."""

    validation = "validation"
    dependency = "dependency"
    internal = "internal"


class SearchError(Exception):
    """Base class for search module errors."""

    kind: ErrorKind = ErrorKind.internal

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(SearchError):
    """Raised when caller input is invalid."""

    kind = ErrorKind.validation


class DependencyError(SearchError):
    """Raised when an external collaborator fails or times out."""

    kind = ErrorKind.dependency
