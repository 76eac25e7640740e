"""Quiz Enums - Tipos de questao, status e eventos."""

from enum import Enum


class QuestionType(str, Enum):
    """Tipos de questao suportados."""

    MCQ = "mcq"  # options + indice correto
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"  # comparacao exata normalizada


class AnswerKind(str, Enum):
    """Tag do AnswerValue."""

    INDEX = "index"
    BOOL = "bool"
    TEXT = "text"


# Tag esperada para cada tipo de questao
EXPECTED_ANSWER_KIND = {
    QuestionType.MCQ: AnswerKind.INDEX,
    QuestionType.TRUE_FALSE: AnswerKind.BOOL,
    QuestionType.SHORT_ANSWER: AnswerKind.TEXT,
}


class AttemptStatus(str, Enum):
    """Estados da tentativa. Transicao unica: in_progress -> completed."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CompletionReason(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"


class ActivityEvent(str, Enum):
    """Eventos enviados ao ActivityNotifier."""

    STARTED = "started"
    PASSED = "passed"
    FAILED = "failed"


class StartMode(str, Enum):
    ATTEMPT = "attempt"
    REVIEW = "review"
