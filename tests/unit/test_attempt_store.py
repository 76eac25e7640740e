# =============================================================================
# TESTES - Attempt Store (AgentFS KV)
# =============================================================================
# Testes unitarios para persistencia de tentativas no AgentFS
# =============================================================================

import asyncio
import gc
from datetime import timedelta

import pytest


def _grader(reason="manual"):
    from quiz.engine.scoring_engine import AnswerScorer
    from quiz.models.enums import CompletionReason

    return lambda attempt: AnswerScorer().grade(
        attempt.questions,
        attempt.answers,
        attempt.passing_score,
        CompletionReason(reason),
        attempt.started_at,
        attempt.started_at + timedelta(seconds=30),
    )


@pytest.fixture
def factory(sample_quiz, fake_clock):
    from quiz.models.state import Attempt

    return lambda number: Attempt.new(sample_quiz, "student-1", number, fake_clock())


class TestAttemptStoreKeys:
    """Testes para geracao de chaves."""

    def test_key_formats(self, mock_agentfs):
        from quiz.storage.attempt_store import AttemptStore

        store = AttemptStore(mock_agentfs)

        assert store._attempt_key("a-1") == "attempt:a-1"
        assert store._index_key("s1", "q1") == "attempt_index:s1:q1"
        assert store._active_key("s1", "q1") == "attempt_active:s1:q1"


class TestCreateIfAbsent:
    @pytest.mark.asyncio
    async def test_creates_and_indexes(self, attempt_store, factory, mock_agentfs_with_data):
        attempt, created = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        assert created is True
        storage = mock_agentfs_with_data._storage
        assert storage["attempt_index:student-1:quiz-1"] == [attempt.id]
        assert storage["attempt_active:student-1:quiz-1"] == attempt.id
        assert storage[f"attempt:{attempt.id}"]["status"] == "in_progress"

    @pytest.mark.asyncio
    async def test_returns_existing_in_progress(self, attempt_store, factory):
        first, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
        second, created = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        assert created is False
        assert second.id == first.id

    @pytest.mark.asyncio
    async def test_limit_counts_completed_attempts(self, attempt_store, factory):
        from quiz.errors import AttemptLimitExceeded

        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory, 1)
        await attempt_store.finalize(attempt.id, _grader())

        with pytest.raises(AttemptLimitExceeded):
            await attempt_store.create_if_absent("student-1", "quiz-1", factory, 1)

    @pytest.mark.asyncio
    async def test_concurrent_creates_single_in_progress(self, attempt_store, factory):
        results = await asyncio.gather(
            *[attempt_store.create_if_absent("student-1", "quiz-1", factory, 2) for _ in range(4)]
        )

        assert len({a.id for a, _ in results}) == 1


class TestUpsertAnswer:
    @pytest.mark.asyncio
    async def test_upsert_in_progress(self, attempt_store, factory):
        from quiz.models.schemas import AnswerRecord, IndexAnswer

        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        updated = await attempt_store.upsert_answer(
            attempt.id, 0, AnswerRecord(answer=IndexAnswer(index=2), is_correct=True, points_earned=1)
        )

        assert updated.answers[0].is_correct is True

    @pytest.mark.asyncio
    async def test_upsert_completed_returns_none(self, attempt_store, factory):
        from quiz.models.schemas import AnswerRecord, IndexAnswer

        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
        await attempt_store.finalize(attempt.id, _grader())

        result = await attempt_store.upsert_answer(attempt.id, 0, AnswerRecord(answer=IndexAnswer(index=2)))

        assert result is None
        stored = await attempt_store.get(attempt.id)
        assert stored.answers == {}


class TestFinalize:
    @pytest.mark.asyncio
    async def test_finalize_applies_once(self, attempt_store, factory):
        from quiz.models.enums import CompletionReason

        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        stored, applied = await attempt_store.finalize(attempt.id, _grader("manual"))
        again, applied_again = await attempt_store.finalize(attempt.id, _grader("timeout"))

        assert applied is True
        assert applied_again is False
        assert again.completion_reason == CompletionReason.MANUAL
        assert again.completed_at == stored.completed_at

    @pytest.mark.asyncio
    async def test_concurrent_finalize_first_writer_wins(self, attempt_store, factory):
        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        results = await asyncio.gather(
            attempt_store.finalize(attempt.id, _grader("manual")),
            attempt_store.finalize(attempt.id, _grader("timeout")),
        )

        assert sorted(applied for _, applied in results) == [False, True]
        reasons = {stored.completion_reason for stored, _ in results}
        assert len(reasons) == 1

    @pytest.mark.asyncio
    async def test_finalize_clears_active_pointer(self, attempt_store, factory, mock_agentfs_with_data):
        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        await attempt_store.finalize(attempt.id, _grader())

        assert "attempt_active:student-1:quiz-1" not in mock_agentfs_with_data._storage
        assert await attempt_store.find_in_progress("student-1", "quiz-1") is None

    @pytest.mark.asyncio
    async def test_finalize_unknown_attempt(self, attempt_store, factory):
        from quiz.errors import AttemptNotFound

        with pytest.raises(AttemptNotFound):
            await attempt_store.finalize("missing", _grader())

    @pytest.mark.asyncio
    async def test_finalize_grades_answers_stored_at_commit(self, attempt_store, factory):
        from quiz.models.schemas import AnswerRecord, IndexAnswer

        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
        # Resposta gravada depois que o chamador leu a tentativa
        await attempt_store.upsert_answer(attempt.id, 1, AnswerRecord(answer=IndexAnswer(index=1)))
        seen = []
        grade = _grader()

        stored, applied = await attempt_store.finalize(
            attempt.id, lambda current: seen.append(current) or grade(current)
        )

        assert applied is True
        assert 1 in seen[0].answers
        assert stored.answers[1].is_correct is True
        assert stored.score == 1

    @pytest.mark.asyncio
    async def test_grader_not_called_when_already_completed(self, attempt_store, factory):
        attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
        await attempt_store.finalize(attempt.id, _grader())
        calls = []

        _, applied = await attempt_store.finalize(attempt.id, calls.append)

        assert applied is False
        assert calls == []


class TestLocks:
    @pytest.mark.asyncio
    async def test_locks_released_after_use(self, attempt_store, factory):
        from quiz.models.schemas import AnswerRecord, IndexAnswer

        for _ in range(3):
            attempt, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
            await attempt_store.upsert_answer(attempt.id, 0, AnswerRecord(answer=IndexAnswer(index=2)))
            await attempt_store.finalize(attempt.id, _grader())
        gc.collect()

        assert len(attempt_store._locks) == 0


class TestListing:
    @pytest.mark.asyncio
    async def test_list_newest_first(self, attempt_store, factory):
        first, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)
        await attempt_store.finalize(first.id, _grader())
        second, _ = await attempt_store.create_if_absent("student-1", "quiz-1", factory)

        attempts = await attempt_store.list_by_student_and_quiz("student-1", "quiz-1")

        assert [a.id for a in attempts] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_list_in_progress(self, attempt_store, sample_quiz, fake_clock):
        from quiz.models.state import Attempt

        def factory_for(student):
            return lambda n: Attempt.new(sample_quiz, student, n, fake_clock())

        a, _ = await attempt_store.create_if_absent("s1", "quiz-1", factory_for("s1"))
        b, _ = await attempt_store.create_if_absent("s2", "quiz-1", factory_for("s2"))
        await attempt_store.finalize(b.id, _grader())

        in_progress = await attempt_store.list_in_progress()

        assert [x.id for x in in_progress] == [a.id]
