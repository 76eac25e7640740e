"""Attempt State - Registro persistido de uma tentativa e resultado de correcao."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .enums import AttemptStatus, CompletionReason
from .schemas import (
    AnswerRecord,
    AttemptResult,
    AttemptSummary,
    AttemptView,
    Question,
    QuizDefinition,
)


def _dt_to_str(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class GradeResult:
    """Resultado calculado pelo AnswerScorer, aplicado atomicamente no finalize."""

    score: int
    total_points: int
    percentage: int
    passed: bool
    correct_count: int
    answers: dict[int, AnswerRecord]
    completion_reason: CompletionReason
    completed_at: datetime
    time_taken_seconds: int
    breakdown: dict[str, dict[str, int]] = field(default_factory=dict)

    def to_update(self) -> dict[str, Any]:
        """Campos gravados ao selar a tentativa (status -> completed)."""
        return {
            "status": AttemptStatus.COMPLETED.value,
            "completion_reason": self.completion_reason.value,
            "answers": {str(k): v.model_dump(mode="json") for k, v in self.answers.items()},
            "score": self.score,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "passed": self.passed,
            "correct_count": self.correct_count,
            "time_taken_seconds": self.time_taken_seconds,
            "completed_at": _dt_to_str(self.completed_at),
        }


@dataclass
class Attempt:
    """Uma passagem de um aluno por um quiz.

    Attributes:
        id: ID unico da tentativa
        quiz_id: ID do quiz
        student_id: Dono da tentativa
        questions: Snapshot congelado das questoes no momento do start
        started_at: Inicio (UTC)
        attempt_number: Ordinal da tentativa para o par (aluno, quiz), a partir de 1
        passing_score: Snapshot do percentual de aprovacao
        time_limit_minutes: Snapshot do limite de tempo (0 = sem limite)
        status: in_progress ou completed
        completion_reason: manual ou timeout (apenas quando completed)
        answers: Dict question_index -> AnswerRecord
        answers_version: Contador de escritas em answers (compare-and-set do finalize)
    """

    id: str
    quiz_id: str
    student_id: str
    questions: list[Question]
    started_at: datetime
    attempt_number: int = 1
    course_id: str | None = None
    passing_score: int = 70
    time_limit_minutes: int = 0
    status: AttemptStatus = AttemptStatus.IN_PROGRESS
    completion_reason: CompletionReason | None = None
    answers: dict[int, AnswerRecord] = field(default_factory=dict)
    score: int = 0
    total_points: int = 0
    percentage: int = 0
    passed: bool = False
    correct_count: int = 0
    time_taken_seconds: int = 0
    completed_at: datetime | None = None
    answers_version: int = 0

    @classmethod
    def new(
        cls,
        quiz: QuizDefinition,
        student_id: str,
        attempt_number: int,
        started_at: datetime,
    ) -> "Attempt":
        """Cria tentativa com copia profunda das questoes atuais do quiz."""
        return cls(
            id=str(uuid.uuid4()),
            quiz_id=quiz.id,
            student_id=student_id,
            questions=[q.model_copy(deep=True) for q in quiz.questions],
            started_at=started_at,
            attempt_number=attempt_number,
            course_id=quiz.course_id,
            passing_score=quiz.passing_score,
            time_limit_minutes=quiz.time_limit_minutes,
            total_points=quiz.total_points,
        )

    @property
    def is_in_progress(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.status == AttemptStatus.COMPLETED

    def question_at(self, index: int) -> Question | None:
        for question in self.questions:
            if question.index == index:
                return question
        return None

    def record_answer(self, index: int, record: AnswerRecord) -> None:
        """Substitui a resposta da questao (idempotente por indice)."""
        self.answers[index] = record
        self.answers_version += 1

    def apply_result(self, result: GradeResult) -> None:
        """Sela a tentativa com o resultado calculado."""
        self.status = AttemptStatus.COMPLETED
        self.completion_reason = result.completion_reason
        self.answers = dict(result.answers)
        self.score = result.score
        self.total_points = result.total_points
        self.percentage = result.percentage
        self.passed = result.passed
        self.correct_count = result.correct_count
        self.time_taken_seconds = result.time_taken_seconds
        self.completed_at = result.completed_at

    # -------------------------------------------------------------------------
    # Projecoes
    # -------------------------------------------------------------------------

    def to_view(
        self,
        server_time: datetime,
        deadline: datetime | None = None,
        remaining_seconds: int | None = None,
    ) -> AttemptView:
        return AttemptView(
            attempt_id=self.id,
            quiz_id=self.quiz_id,
            attempt_number=self.attempt_number,
            status=self.status,
            started_at=self.started_at,
            time_limit_minutes=self.time_limit_minutes,
            deadline=deadline,
            remaining_seconds=remaining_seconds,
            server_time=server_time,
            questions=[q.public() for q in self.questions],
            answers={k: v.answer for k, v in self.answers.items()},
        )

    def to_result(self) -> AttemptResult:
        return AttemptResult(
            attempt_id=self.id,
            quiz_id=self.quiz_id,
            student_id=self.student_id,
            attempt_number=self.attempt_number,
            status=self.status,
            completion_reason=self.completion_reason,
            score=self.score,
            total_points=self.total_points,
            percentage=self.percentage,
            passed=self.passed,
            passing_score=self.passing_score,
            correct_count=self.correct_count,
            time_taken_seconds=self.time_taken_seconds,
            started_at=self.started_at,
            completed_at=self.completed_at,
            questions=self.questions,
            answers=self.answers,
        )

    def to_summary(self) -> AttemptSummary:
        done = self.is_completed
        return AttemptSummary(
            attempt_id=self.id,
            attempt_number=self.attempt_number,
            status=self.status,
            completion_reason=self.completion_reason,
            score=self.score if done else None,
            total_points=self.total_points,
            percentage=self.percentage if done else None,
            passed=self.passed if done else None,
            time_taken_seconds=self.time_taken_seconds if done else None,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )

    # -------------------------------------------------------------------------
    # Persistencia
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Converte para dicionario JSON-compativel (chaves de answers viram str)."""
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "attempt_number": self.attempt_number,
            "questions": [q.model_dump(mode="json") for q in self.questions],
            "passing_score": self.passing_score,
            "time_limit_minutes": self.time_limit_minutes,
            "started_at": _dt_to_str(self.started_at),
            "status": self.status.value,
            "completion_reason": self.completion_reason.value if self.completion_reason else None,
            "answers": {str(k): v.model_dump(mode="json") for k, v in self.answers.items()},
            "score": self.score,
            "total_points": self.total_points,
            "percentage": self.percentage,
            "passed": self.passed,
            "correct_count": self.correct_count,
            "time_taken_seconds": self.time_taken_seconds,
            "completed_at": _dt_to_str(self.completed_at),
            "answers_version": self.answers_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Attempt":
        """Cria instancia a partir de dicionario (KV ou documento MongoDB)."""
        reason = data.get("completion_reason")
        return cls(
            id=data.get("id") or data["_id"],
            quiz_id=data["quiz_id"],
            student_id=data["student_id"],
            course_id=data.get("course_id"),
            attempt_number=data.get("attempt_number", 1),
            questions=[Question.model_validate(q) for q in data.get("questions", [])],
            passing_score=data.get("passing_score", 70),
            time_limit_minutes=data.get("time_limit_minutes", 0),
            started_at=_parse_dt(data["started_at"]),
            status=AttemptStatus(data.get("status", AttemptStatus.IN_PROGRESS.value)),
            completion_reason=CompletionReason(reason) if reason else None,
            answers={
                int(k): AnswerRecord.model_validate(v) for k, v in data.get("answers", {}).items()
            },
            score=data.get("score", 0),
            total_points=data.get("total_points", 0),
            percentage=data.get("percentage", 0),
            passed=data.get("passed", False),
            correct_count=data.get("correct_count", 0),
            time_taken_seconds=data.get("time_taken_seconds", 0),
            completed_at=_parse_dt(data.get("completed_at")),
            answers_version=data.get("answers_version", 0),
        )
