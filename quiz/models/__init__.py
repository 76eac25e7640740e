"""Quiz Models - Enums, Schemas e State."""

from .enums import (
    EXPECTED_ANSWER_KIND,
    ActivityEvent,
    AnswerKind,
    AttemptStatus,
    CompletionReason,
    QuestionType,
    StartMode,
)
from .schemas import (
    AnswerItem,
    AnswerRecord,
    AnswerValue,
    AttemptResult,
    AttemptStatusResponse,
    AttemptSummary,
    AttemptView,
    BatchAnswerResult,
    BoolAnswer,
    IndexAnswer,
    PublicQuestion,
    Question,
    QuizDefinition,
    RecordAnswersRequest,
    RejectedAnswer,
    StartOutcome,
    SubmitRequest,
    TextAnswer,
)
from .state import Attempt, GradeResult

__all__ = [
    # Enums
    "ActivityEvent",
    "AnswerKind",
    "AttemptStatus",
    "CompletionReason",
    "EXPECTED_ANSWER_KIND",
    "QuestionType",
    "StartMode",
    # Schemas
    "AnswerItem",
    "AnswerRecord",
    "AnswerValue",
    "AttemptResult",
    "AttemptStatusResponse",
    "AttemptSummary",
    "AttemptView",
    "BatchAnswerResult",
    "BoolAnswer",
    "IndexAnswer",
    "PublicQuestion",
    "Question",
    "QuizDefinition",
    "RecordAnswersRequest",
    "RejectedAnswer",
    "StartOutcome",
    "SubmitRequest",
    "TextAnswer",
    # State
    "Attempt",
    "GradeResult",
]
