"""Quiz Schemas - Modelos Pydantic para definicoes, respostas e request/response."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr, field_validator, model_validator

from .enums import AttemptStatus, CompletionReason, QuestionType, StartMode

# =============================================================================
# DEFINICAO DO QUIZ (somente leitura para o motor)
# =============================================================================


class PublicQuestion(BaseModel):
    """Questao sem a resposta correta (exibida durante a tentativa)."""

    index: int = Field(..., description="Posicao da questao no quiz")
    text: str = Field(..., description="Enunciado")
    type: QuestionType = Field(..., description="mcq, true_false ou short_answer")
    options: list[str] = Field(default_factory=list, description="Alternativas (apenas mcq)")
    points: int = Field(..., description="Pontos da questao")


class Question(BaseModel):
    """Questao completa, incluindo a resposta correta."""

    index: int = Field(..., ge=0, description="Posicao estavel dentro do quiz")
    text: str = Field(..., min_length=1, description="Enunciado da questao")
    type: QuestionType = Field(default=QuestionType.MCQ, description="Tipo da questao")
    options: list[str] = Field(default_factory=list, description="Alternativas (apenas mcq)")
    correct_answer: bool | int | str = Field(
        ..., description="Indice (mcq), booleano (true_false) ou texto (short_answer)"
    )
    points: int = Field(default=1, gt=0, description="Pontos atribuidos se correta")

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        # Dados antigos usam "true-false" / "short-answer"
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @model_validator(mode="after")
    def _check_correct_answer(self) -> "Question":
        answer = self.correct_answer
        if self.type == QuestionType.MCQ:
            if not self.options:
                raise ValueError("Questão mcq requer pelo menos uma alternativa")
            if isinstance(answer, bool) or not isinstance(answer, int):
                raise ValueError("correct_answer de questão mcq deve ser um índice inteiro")
            if not 0 <= answer < len(self.options):
                raise ValueError(f"correct_answer {answer} fora do intervalo de alternativas")
        elif self.type == QuestionType.TRUE_FALSE:
            if not isinstance(answer, bool):
                raise ValueError("correct_answer de questão true_false deve ser booleano")
        elif not isinstance(answer, str):
            raise ValueError("correct_answer de questão short_answer deve ser texto")
        return self

    def public(self) -> PublicQuestion:
        return PublicQuestion(
            index=self.index,
            text=self.text,
            type=self.type,
            options=list(self.options),
            points=self.points,
        )


class QuizDefinition(BaseModel):
    """Quiz criado pelo subsistema de autoria."""

    id: str = Field(..., description="ID do quiz")
    title: str = Field(..., description="Titulo do quiz")
    description: str = Field(default="", description="Descricao")
    course_id: str | None = Field(default=None, description="Curso ao qual o quiz pertence")
    questions: list[Question] = Field(default_factory=list, description="Questoes em ordem")
    passing_score: int = Field(default=70, ge=0, le=100, description="Percentual minimo para aprovacao")
    time_limit_minutes: int = Field(default=0, ge=0, description="Limite de tempo (0 = sem limite)")
    attempts_allowed: int = Field(default=-1, description="Tentativas permitidas (-1 = ilimitado)")
    is_required: bool = Field(default=False)
    is_active: bool = Field(default=True)

    @field_validator("attempts_allowed")
    @classmethod
    def _check_attempts_allowed(cls, value: int) -> int:
        if value != -1 and value < 1:
            raise ValueError("attempts_allowed deve ser -1 (ilimitado) ou um inteiro positivo")
        return value

    @model_validator(mode="after")
    def _check_unique_indexes(self) -> "QuizDefinition":
        indexes = [q.index for q in self.questions]
        if len(indexes) != len(set(indexes)):
            raise ValueError("Índices de questão duplicados")
        return self

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @property
    def has_attempt_limit(self) -> bool:
        return self.attempts_allowed != -1


# =============================================================================
# ANSWER VALUE (union discriminada por "kind")
# =============================================================================


class IndexAnswer(BaseModel):
    """Resposta de questao mcq."""

    kind: Literal["index"] = "index"
    index: StrictInt


class BoolAnswer(BaseModel):
    """Resposta de questao true_false."""

    kind: Literal["bool"] = "bool"
    value: StrictBool


class TextAnswer(BaseModel):
    """Resposta de questao short_answer."""

    kind: Literal["text"] = "text"
    text: StrictStr


AnswerValue = Annotated[IndexAnswer | BoolAnswer | TextAnswer, Field(discriminator="kind")]


class AnswerRecord(BaseModel):
    """Resposta registrada numa tentativa, ja avaliada."""

    answer: AnswerValue
    is_correct: bool = False
    points_earned: int = 0
    answered_at: datetime | None = None


# =============================================================================
# REQUESTS
# =============================================================================


class AnswerItem(BaseModel):
    question_index: int = Field(..., description="Indice da questao no snapshot")
    answer: AnswerValue


class RecordAnswersRequest(BaseModel):
    """Lote de respostas (pode ser enviado de uma vez ou incrementalmente)."""

    answers: list[AnswerItem] = Field(..., min_length=1)


class SubmitRequest(BaseModel):
    is_timeout: bool = Field(default=False, description="Cliente acredita que o tempo esgotou")


# =============================================================================
# RESPONSES
# =============================================================================


class RejectedAnswer(BaseModel):
    question_index: int
    error: str
    message: str


class BatchAnswerResult(BaseModel):
    """Resultado de record_answers: aceitas e rejeitadas por questao."""

    attempt_id: str
    accepted: list[int] = Field(default_factory=list)
    rejected: list[RejectedAnswer] = Field(default_factory=list)


class AttemptView(BaseModel):
    """Tentativa em andamento, sem respostas corretas.

    O countdown do cliente e apenas informativo e deve ser derivado de
    started_at + time_limit_minutes (ou de deadline - server_time).
    """

    attempt_id: str
    quiz_id: str
    attempt_number: int
    status: AttemptStatus
    started_at: datetime
    time_limit_minutes: int
    deadline: datetime | None = None
    remaining_seconds: int | None = None
    server_time: datetime
    questions: list[PublicQuestion]
    answers: dict[int, AnswerValue] = Field(default_factory=dict)


class AttemptResult(BaseModel):
    """Resultado de uma tentativa finalizada (tambem usado no modo revisao)."""

    attempt_id: str
    quiz_id: str
    student_id: str
    attempt_number: int
    status: AttemptStatus
    completion_reason: CompletionReason | None = None
    score: int
    total_points: int
    percentage: int
    passed: bool
    passing_score: int
    correct_count: int
    time_taken_seconds: int
    started_at: datetime
    completed_at: datetime | None = None
    questions: list[Question]
    answers: dict[int, AnswerRecord] = Field(default_factory=dict)


class AttemptSummary(BaseModel):
    """Linha da listagem de tentativas do aluno."""

    attempt_id: str
    attempt_number: int
    status: AttemptStatus
    completion_reason: CompletionReason | None = None
    score: int | None = None
    total_points: int
    percentage: int | None = None
    passed: bool | None = None
    time_taken_seconds: int | None = None
    started_at: datetime
    completed_at: datetime | None = None


class StartOutcome(BaseModel):
    """Resposta de startOrResume: nova tentativa/retomada ou revisao."""

    mode: StartMode
    resumed: bool = Field(default=False, description="True se uma tentativa em andamento foi retomada")
    attempt: AttemptView | None = None
    review: AttemptResult | None = None


class AttemptStatusResponse(BaseModel):
    status: AttemptStatus
    attempt: AttemptView | None = None
    result: AttemptResult | None = None
