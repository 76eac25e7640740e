"""Quiz Storage - Repositorios de tentativas e definicoes."""

from .attempt_store import AttemptStore
from .base import AttemptRepository, Grader, QuizDefinitionStore, SnapshotFactory
from .mongo_store import MongoAttemptStore, MongoQuizStore
from .quiz_store import QuizStore

__all__ = [
    "AttemptRepository",
    "AttemptStore",
    "Grader",
    "MongoAttemptStore",
    "MongoQuizStore",
    "QuizDefinitionStore",
    "QuizStore",
    "SnapshotFactory",
]
