"""Quiz Module - Motor de tentativas de quiz.

Arquitetura:
- models/: Enums, Schemas Pydantic, Attempt
- engine/: AttemptStateMachine, AnswerScorer, TimerPolicy, RetakePolicy, ExpirySweeper
- storage/: AttemptStore/QuizStore (AgentFS) e MongoAttemptStore/MongoQuizStore
- notifier.py: ActivityNotifier (log, AgentFS, webhook)
- errors.py: Excecoes do motor
- router.py: FastAPI endpoints
"""

from .engine import AnswerScorer, AttemptStateMachine, ExpirySweeper, RetakePolicy, TimerPolicy
from .errors import QuizEngineError
from .models import Attempt, AttemptStatus, CompletionReason, QuestionType, QuizDefinition
from .notifier import ActivityNotifier, ActivityRecord
from .storage import AttemptRepository, AttemptStore, QuizDefinitionStore, QuizStore

__all__ = [
    # Models
    "Attempt",
    "AttemptStatus",
    "CompletionReason",
    "QuestionType",
    "QuizDefinition",
    # Engines
    "AnswerScorer",
    "AttemptStateMachine",
    "ExpirySweeper",
    "RetakePolicy",
    "TimerPolicy",
    # Storage
    "AttemptRepository",
    "AttemptStore",
    "QuizDefinitionStore",
    "QuizStore",
    # Notifier / errors
    "ActivityNotifier",
    "ActivityRecord",
    "QuizEngineError",
]
