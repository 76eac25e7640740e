# =============================================================================
# TESTES - Activity Notifier
# =============================================================================

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest


@pytest.fixture
def record():
    from quiz.models.enums import ActivityEvent
    from quiz.notifier import ActivityRecord

    return ActivityRecord(
        student_id="student-1",
        quiz_id="quiz-1",
        attempt_id="attempt-1",
        event=ActivityEvent.PASSED,
        timestamp=datetime(2026, 3, 2, 14, 0, tzinfo=timezone.utc),
        score=2,
        percentage=100,
    )


class TestLoggingNotifier:
    @pytest.mark.asyncio
    async def test_logs_event(self, record, capture_logs):
        from quiz.notifier import LoggingActivityNotifier

        await LoggingActivityNotifier().notify(record)

        assert "passed" in capture_logs.text
        assert "attempt-1" in capture_logs.text


class TestKVNotifier:
    @pytest.mark.asyncio
    async def test_stores_and_lists_events(self, mock_agentfs_with_data, record):
        from quiz.models.enums import ActivityEvent
        from quiz.notifier import KVActivityNotifier

        notifier = KVActivityNotifier(mock_agentfs_with_data)
        started = record.model_copy(
            update={"event": ActivityEvent.STARTED, "timestamp": datetime(2026, 3, 2, 13, 50, tzinfo=timezone.utc)}
        )

        await notifier.notify(record)
        await notifier.notify(started)

        events = await notifier.list_for_student("student-1")

        assert [e.event for e in events] == [ActivityEvent.STARTED, ActivityEvent.PASSED]
        assert await notifier.list_for_student("other") == []


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_posts_json(self, record):
        from quiz.notifier import WebhookActivityNotifier

        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        notifier = WebhookActivityNotifier("http://feed.test/events", client=client)

        await notifier.notify(record)
        await notifier.close()

        assert received[0].method == "POST"
        assert b'"event":"passed"' in received[0].content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_http_error_raises(self, record):
        from quiz.notifier import WebhookActivityNotifier

        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        notifier = WebhookActivityNotifier("http://feed.test/events", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await notifier.notify(record)


class TestEngineDispatch:
    @pytest.mark.asyncio
    async def test_failures_are_logged_not_raised(self, record, capture_logs):
        from quiz.engine.state_machine import AttemptStateMachine
        from quiz.notifier import ActivityNotifier

        notifier = MagicMock(spec=ActivityNotifier)
        notifier.notify = AsyncMock(side_effect=httpx.ConnectError("offline"))
        engine = AttemptStateMachine(MagicMock(), MagicMock(), notifier=notifier)

        await engine._deliver(record)

        assert "Falha ao notificar passed" in capture_logs.text

    @pytest.mark.asyncio
    async def test_no_notifier_is_noop(self, sample_quiz, make_attempt):
        from quiz.engine.state_machine import AttemptStateMachine
        from quiz.models.enums import ActivityEvent

        engine = AttemptStateMachine(MagicMock(), MagicMock())

        engine._notify(ActivityEvent.STARTED, make_attempt(sample_quiz))

        assert engine._background_tasks == set()
