"""Search package: keyword search, similar questions, auto tags and suggestions."""

from qa_portal.search.embeddings import EmbeddingError, EmbeddingService
from qa_portal.search.engine import QuestionSearchService
from qa_portal.search.errors import DependencyError, ErrorKind, SearchError, ValidationError
from qa_portal.search.indexer import IndexResult, QuestionIndexer
from qa_portal.search.similarity import SimilarityEngine, cosine_similarity
from qa_portal.search.store import InMemoryQuestionStore, QuestionFilter, QuestionStore, SqlQuestionStore

__all__ = [
    "DependencyError",
    "EmbeddingError",
    "EmbeddingService",
    "ErrorKind",
    "IndexResult",
    "InMemoryQuestionStore",
    "QuestionFilter",
    "QuestionIndexer",
    "QuestionSearchService",
    "QuestionStore",
    "SearchError",
    "SimilarityEngine",
    "SqlQuestionStore",
    "ValidationError",
    "cosine_similarity",
]
