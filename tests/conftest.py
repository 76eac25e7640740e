# =============================================================================
# CONFTEST - Fixtures compartilhadas para todos os testes
# =============================================================================
# Centraliza mocks, fixtures e configurações comuns
# =============================================================================

import asyncio
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Configura ambiente de testes globalmente."""
    env_vars = {
        "AUTH_ENABLED": "false",
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "ERROR",  # Reduzir logs em testes
    }
    with patch.dict(os.environ, env_vars):
        yield


@pytest.fixture
def clean_env():
    """Limpa variáveis de ambiente para testes isolados."""
    with patch.dict(os.environ, {}, clear=True):
        yield


# =============================================================================
# FIXTURES DO AGENTFS
# =============================================================================


@pytest.fixture
def mock_agentfs():
    """Mock do AgentFS (KV vazio, chamadas verificáveis)."""
    mock = MagicMock()

    mock.kv = AsyncMock()
    mock.kv.get = AsyncMock(return_value=None)
    mock.kv.set = AsyncMock()
    mock.kv.delete = AsyncMock()
    mock.kv.list = AsyncMock(return_value=[])

    mock.close = AsyncMock()

    return mock


@pytest.fixture
def mock_agentfs_with_data():
    """Mock do AgentFS com KV em dicionário.

    Cada operação cede o event loop (asyncio.sleep(0)) para que chamadas
    concorrentes se intercalem como no backend real.
    """
    mock = MagicMock()
    _storage = {}

    async def mock_get(key):
        await asyncio.sleep(0)
        return _storage.get(key)

    async def mock_set(key, value):
        await asyncio.sleep(0)
        _storage[key] = value

    async def mock_delete(key):
        await asyncio.sleep(0)
        _storage.pop(key, None)

    async def mock_list(prefix=""):
        await asyncio.sleep(0)
        return [{"key": k} for k in _storage if k.startswith(prefix)]

    mock.kv = AsyncMock()
    mock.kv.get = mock_get
    mock.kv.set = mock_set
    mock.kv.delete = mock_delete
    mock.kv.list = mock_list
    mock._storage = _storage

    mock.close = AsyncMock()

    return mock


# =============================================================================
# RELOGIO
# =============================================================================


class FakeClock:
    """Relógio controlado pelo teste."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 2, 14, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 0, minutes: float = 0) -> datetime:
        self.current += timedelta(seconds=seconds, minutes=minutes)
        return self.current


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def timer(fake_clock):
    from quiz.engine.timer_policy import TimerPolicy

    return TimerPolicy(clock=fake_clock)


# =============================================================================
# FIXTURES DO QUIZ
# =============================================================================


@pytest.fixture
def make_quiz():
    """Factory de QuizDefinition com overrides."""
    from quiz.models.schemas import QuizDefinition

    def _make(**overrides):
        data = {
            "id": "quiz-1",
            "title": "Fundamentos de Python",
            "course_id": "course-42",
            "questions": [
                {
                    "index": 0,
                    "text": "Qual estrutura é imutável?",
                    "type": "mcq",
                    "options": ["list", "dict", "tuple", "set"],
                    "correct_answer": 2,
                    "points": 1,
                },
                {
                    "index": 1,
                    "text": "Qual palavra-chave define uma função?",
                    "type": "mcq",
                    "options": ["func", "def", "fn"],
                    "correct_answer": 1,
                    "points": 1,
                },
            ],
            "passing_score": 50,
            "time_limit_minutes": 0,
            "attempts_allowed": -1,
        }
        data.update(overrides)
        return QuizDefinition.model_validate(data)

    return _make


@pytest.fixture
def sample_quiz(make_quiz):
    """Quiz com 2 questões mcq de 1 ponto, passing_score 50."""
    return make_quiz()


@pytest.fixture
def mixed_quiz(make_quiz):
    """Quiz com um tipo de questão de cada."""
    return make_quiz(
        id="quiz-mixed",
        questions=[
            {
                "index": 0,
                "text": "2 + 2?",
                "type": "mcq",
                "options": ["3", "4", "5"],
                "correct_answer": 1,
                "points": 2,
            },
            {
                "index": 1,
                "text": "Python é interpretado?",
                "type": "true-false",
                "correct_answer": True,
                "points": 1,
            },
            {
                "index": 2,
                "text": "Função que retorna o tamanho de uma lista",
                "type": "short-answer",
                "correct_answer": "len",
                "points": 1,
            },
        ],
        passing_score=70,
    )


@pytest.fixture
def quiz_store(mock_agentfs_with_data):
    from quiz.storage.quiz_store import QuizStore

    return QuizStore(mock_agentfs_with_data)


@pytest.fixture
def attempt_store(mock_agentfs_with_data):
    from quiz.storage.attempt_store import AttemptStore

    return AttemptStore(mock_agentfs_with_data)


@pytest.fixture
def mock_notifier():
    from quiz.notifier import ActivityNotifier

    notifier = MagicMock(spec=ActivityNotifier)
    notifier.notify = AsyncMock()
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def engine(attempt_store, quiz_store, timer, mock_notifier):
    """AttemptStateMachine sobre AgentFS em memória e relógio falso."""
    from quiz.engine.state_machine import AttemptStateMachine

    return AttemptStateMachine(attempt_store, quiz_store, timer=timer, notifier=mock_notifier)


@pytest.fixture
def make_attempt(fake_clock):
    """Factory de Attempt a partir de um QuizDefinition."""
    from quiz.models.state import Attempt

    def _make(quiz, student_id="student-1", attempt_number=1):
        return Attempt.new(quiz, student_id, attempt_number, fake_clock())

    return _make


# =============================================================================
# FIXTURES DE LOGGING
# =============================================================================


@pytest.fixture
def capture_logs(caplog):
    """Captura logs para verificação em testes."""
    import logging

    caplog.set_level(logging.DEBUG)
    return caplog
