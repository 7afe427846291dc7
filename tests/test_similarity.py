"""Tests for cosine similarity and the SimilarityEngine.

All embedding calls go through a keyword-based fake embedder. Tests cover:
1. cosine_similarity math and length validation
2. Threshold filtering and ordering
3. exclude_id removal even when it is the best match
4. Per-candidate failures score 0 instead of failing the call
5. Query embedding failure / timeout -> DependencyError
6. Stored embeddings are used instead of re-embedding
7. Bounded concurrency of candidate embeddings
"""

import asyncio
import math

import pytest

from qa_portal.search.embeddings import EmbeddingError
from qa_portal.search.errors import DependencyError, ValidationError
from qa_portal.search.similarity import SimilarityEngine, cosine_similarity
from qa_portal.search.store import InMemoryQuestionStore
from tests.conftest import make_question

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _KeywordEmbedder:
    """Returns the vector of the first keyword found in the text."""

    def __init__(self, vectors, default=(0.0, 0.0, 1.0), fail_on=(), delay=0.0):
        self.vectors = vectors
        self.default = list(default)
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed_text(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            lowered = text.lower()
            if any(key in lowered for key in self.fail_on):
                raise EmbeddingError("embedding backend unavailable")
            for key, vector in self.vectors.items():
                if key in lowered:
                    return list(vector)
            return list(self.default)
        finally:
            self.in_flight -= 1


VECTORS = {
    "react hooks": [1.0, 0.0, 0.0],
    "react context": [0.8, 0.6, 0.0],
    "docker": [0.0, 1.0, 0.0],
}


def _make_corpus():
    return [
        make_question("q1", "React hooks basics", "How do React hooks work?", minutes=1),
        make_question("q2", "React context API", "Sharing state with context", minutes=2),
        make_question("q3", "Docker compose networking", "Containers cannot talk", minutes=3),
    ]


def _make_engine(store, embedder, **kwargs) -> SimilarityEngine:
    params = {"similarity_threshold": 0.7, "snippet_length": 200}
    return SimilarityEngine(store, embedder, params=params, **kwargs)


# ---------------------------------------------------------------------------
# 1. cosine_similarity
# ---------------------------------------------------------------------------


class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_known_angle(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector_is_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_symmetric(self):
        a, b = [0.3, -0.2, 0.9], [0.1, 0.4, -0.5]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_length_mismatch_raises(self):
        with pytest.raises(ValidationError, match="same length"):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


# ---------------------------------------------------------------------------
# 2-3. Ranking, threshold and exclusion
# ---------------------------------------------------------------------------


class TestFindSimilar:
    @pytest.mark.asyncio
    async def test_threshold_and_order(self):
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), _KeywordEmbedder(VECTORS))

        results = await engine.find_similar("Trouble with react hooks")

        assert [r.id for r in results] == ["q1", "q2"]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_exclude_id_removes_top_match(self):
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), _KeywordEmbedder(VECTORS))

        results = await engine.find_similar("Trouble with react hooks", exclude_id="q1", limit=5)

        assert [r.id for r in results] == ["q2"]

    @pytest.mark.asyncio
    async def test_limit_caps_results(self):
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), _KeywordEmbedder(VECTORS))

        results = await engine.find_similar("react hooks", limit=1)

        assert [r.id for r in results] == ["q1"]

    @pytest.mark.asyncio
    async def test_group_filter(self):
        corpus = _make_corpus()
        corpus[1] = corpus[1].model_copy(update={"group_id": "g2"})
        engine = _make_engine(InMemoryQuestionStore(corpus), _KeywordEmbedder(VECTORS))

        results = await engine.find_similar("react hooks", group_id="g2")

        assert [r.id for r in results] == ["q2"]

    @pytest.mark.asyncio
    async def test_summary_fields(self):
        store = InMemoryQuestionStore(_make_corpus(), answer_counts={"q1": 3})
        engine = _make_engine(store, _KeywordEmbedder(VECTORS))

        result = (await engine.find_similar("react hooks", limit=1))[0]

        assert result.title == "React hooks basics"
        assert result.snippet == "How do React hooks work?"
        assert result.answers_count == 3
        assert result.status.value == "unanswered"

    @pytest.mark.asyncio
    async def test_empty_corpus(self):
        engine = _make_engine(InMemoryQuestionStore(), _KeywordEmbedder(VECTORS))

        assert await engine.find_similar("react hooks") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_blank_query_raises(self, text):
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), _KeywordEmbedder(VECTORS))

        with pytest.raises(ValidationError, match="Query text is required"):
            await engine.find_similar(text)


# ---------------------------------------------------------------------------
# 4-5. Failure handling
# ---------------------------------------------------------------------------


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_candidate_failure_scores_zero(self):
        embedder = _KeywordEmbedder(VECTORS, fail_on=("context api",))
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), embedder)

        results = await engine.find_similar("react hooks")

        assert [r.id for r in results] == ["q1"]

    @pytest.mark.asyncio
    async def test_query_embedding_failure_raises_dependency_error(self):
        embedder = _KeywordEmbedder(VECTORS, fail_on=("broken",))
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), embedder)

        with pytest.raises(DependencyError) as exc_info:
            await engine.find_similar("broken query")

        assert isinstance(exc_info.value.__cause__, EmbeddingError)

    @pytest.mark.asyncio
    async def test_empty_query_embedding_raises_dependency_error(self):
        embedder = _KeywordEmbedder({"react hooks": []})
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), embedder)

        with pytest.raises(DependencyError):
            await engine.find_similar("react hooks")

    @pytest.mark.asyncio
    async def test_query_embedding_timeout(self):
        embedder = _KeywordEmbedder(VECTORS, delay=1.0)
        engine = _make_engine(InMemoryQuestionStore(_make_corpus()), embedder, timeout=0.01)

        with pytest.raises(DependencyError):
            await engine.find_similar("react hooks")

    @pytest.mark.asyncio
    async def test_answer_count_failure_defaults_to_zero(self):
        store = InMemoryQuestionStore(_make_corpus())

        async def _broken_count(question_id):
            raise RuntimeError("db down")

        store.count_answers = _broken_count
        engine = _make_engine(store, _KeywordEmbedder(VECTORS))

        results = await engine.find_similar("react hooks", limit=1)

        assert results[0].answers_count == 0


# ---------------------------------------------------------------------------
# 6-7. Stored embeddings and concurrency
# ---------------------------------------------------------------------------


class TestStoredEmbeddingsAndConcurrency:
    @pytest.mark.asyncio
    async def test_stored_embedding_is_used(self):
        corpus = _make_corpus()
        # The text says docker, the stored vector says react hooks
        corpus[2] = corpus[2].model_copy(update={"embedding": [1.0, 0.0, 0.0]})
        embedder = _KeywordEmbedder(VECTORS)
        engine = _make_engine(InMemoryQuestionStore(corpus), embedder)

        results = await engine.find_similar("react hooks")

        assert "q3" in [r.id for r in results]
        assert not any("Docker compose" in call for call in embedder.calls)

    @pytest.mark.asyncio
    async def test_stored_embedding_with_wrong_length_is_recomputed(self):
        corpus = _make_corpus()
        corpus[2] = corpus[2].model_copy(update={"embedding": [1.0, 0.0]})
        embedder = _KeywordEmbedder(VECTORS)
        engine = _make_engine(InMemoryQuestionStore(corpus), embedder)

        results = await engine.find_similar("react hooks")

        assert "q3" not in [r.id for r in results]
        assert any("Docker compose" in call for call in embedder.calls)

    @pytest.mark.asyncio
    async def test_candidate_embeddings_respect_max_concurrency(self):
        corpus = [make_question(f"q{i}", f"React hooks {i}", "body", minutes=i) for i in range(8)]
        embedder = _KeywordEmbedder(VECTORS, delay=0.01)
        engine = _make_engine(InMemoryQuestionStore(corpus), embedder, max_concurrency=2)

        results = await engine.find_similar("react hooks", limit=10)

        assert len(results) == 8
        assert embedder.max_in_flight <= 2
        assert len(embedder.calls) == 9

    @pytest.mark.asyncio
    async def test_per_call_concurrency_override(self):
        corpus = [make_question(f"q{i}", f"React hooks {i}", "body", minutes=i) for i in range(6)]
        embedder = _KeywordEmbedder(VECTORS, delay=0.01)
        engine = _make_engine(InMemoryQuestionStore(corpus), embedder, max_concurrency=4)

        await engine.find_similar("react hooks", max_concurrency=1)

        assert embedder.max_in_flight == 1
