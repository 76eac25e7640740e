"""Attempt State Machine - Ciclo de vida de uma tentativa de quiz.

    not_started --start--> in_progress --submit/expire--> completed

Toda leitura passa por expiracao preguicosa: uma tentativa in_progress cujo
prazo ja passou e finalizada com completion_reason=timeout antes de qualquer
outra acao.
"""

import asyncio
import logging

from ..errors import (
    AttemptClosed,
    AttemptNotFound,
    InvalidAnswerType,
    QuestionNotFound,
    Unauthorized,
)
from ..models.enums import ActivityEvent, CompletionReason
from ..models.schemas import (
    AnswerItem,
    AnswerRecord,
    AnswerValue,
    AttemptResult,
    AttemptStatusResponse,
    AttemptSummary,
    AttemptView,
    BatchAnswerResult,
    RejectedAnswer,
)
from ..models.state import Attempt, GradeResult
from ..notifier import ActivityNotifier, ActivityRecord
from ..storage.base import AttemptRepository, QuizDefinitionStore
from .scoring_engine import AnswerScorer
from .timer_policy import TimerPolicy

logger = logging.getLogger(__name__)


class AttemptStateMachine:
    """Motor de tentativas: start, answer, submit e expire.

    Args:
        repository: Persistencia com transicoes atomicas
        quiz_store: Fonte das definicoes de quiz
        scorer: Motor de correcao (default: AnswerScorer)
        timer: Politica de prazo com relogio injetavel (default: TimerPolicy)
        notifier: Sink de eventos de atividade (opcional)

    Example:
        >>> engine = AttemptStateMachine(AttemptStore(afs), QuizStore(afs))
        >>> attempt, created = await engine.start("student-1", "quiz-1")
        >>> await engine.answer(attempt.id, "student-1", 0, IndexAnswer(index=2))
        >>> result = await engine.submit(attempt.id, "student-1")
    """

    def __init__(
        self,
        repository: AttemptRepository,
        quiz_store: QuizDefinitionStore,
        scorer: AnswerScorer | None = None,
        timer: TimerPolicy | None = None,
        notifier: ActivityNotifier | None = None,
    ):
        self.repository = repository
        self.quiz_store = quiz_store
        self.scorer = scorer or AnswerScorer()
        self.timer = timer or TimerPolicy()
        self.notifier = notifier
        self._background_tasks: set[asyncio.Task] = set()

    # =========================================================================
    # START
    # =========================================================================

    async def start(self, student_id: str, quiz_id: str) -> tuple[Attempt, bool]:
        """Retoma a tentativa em andamento ou cria uma nova.

        Returns:
            Tuple de (attempt, created)

        Raises:
            QuizNotFound: quiz inexistente
            QuizInactive: quiz desativado
            AttemptLimitExceeded: limite de tentativas atingido
        """
        quiz = await self.quiz_store.get_active_quiz(quiz_id)

        existing = await self.repository.find_in_progress(student_id, quiz_id)
        if existing is not None:
            await self._expire_if_due(existing)

        attempt, created = await self.repository.create_if_absent(
            student_id,
            quiz_id,
            lambda number: Attempt.new(quiz, student_id, number, self.timer.now()),
            attempts_allowed=quiz.attempts_allowed,
        )

        if created:
            logger.info(
                f"[Attempt {attempt.id}] Iniciada: quiz={quiz_id} student={student_id} "
                f"#{attempt.attempt_number}"
            )
            self._notify(ActivityEvent.STARTED, attempt)
        else:
            logger.debug(f"[Attempt {attempt.id}] Retomada")

        return attempt, created

    # =========================================================================
    # ANSWERS
    # =========================================================================

    async def answer(
        self, attempt_id: str, student_id: str, question_index: int, value: AnswerValue
    ) -> AnswerRecord:
        """Registra (ou substitui) a resposta de uma questao.

        Raises:
            AttemptNotFound, Unauthorized, AttemptClosed,
            QuestionNotFound, InvalidAnswerType
        """
        attempt = await self._open_attempt(attempt_id, student_id)
        return await self._apply_answer(attempt, question_index, value)

    async def record_answers(
        self, attempt_id: str, student_id: str, items: list[AnswerItem]
    ) -> BatchAnswerResult:
        """Aplica um lote de respostas.

        Erros por questao (tipo invalido, questao inexistente) sao coletados
        em ``rejected`` sem abortar as demais. Erros da tentativa abortam.
        """
        attempt = await self._open_attempt(attempt_id, student_id)
        result = BatchAnswerResult(attempt_id=attempt.id)

        for item in items:
            try:
                await self._apply_answer(attempt, item.question_index, item.answer)
            except (InvalidAnswerType, QuestionNotFound) as e:
                result.rejected.append(
                    RejectedAnswer(question_index=item.question_index, error=e.code, message=e.message)
                )
            else:
                result.accepted.append(item.question_index)

        logger.debug(
            f"[Attempt {attempt.id}] Respostas: {len(result.accepted)} aceitas, "
            f"{len(result.rejected)} rejeitadas"
        )
        return result

    async def _apply_answer(
        self, attempt: Attempt, question_index: int, value: AnswerValue
    ) -> AnswerRecord:
        question = attempt.question_at(question_index)
        if question is None:
            raise QuestionNotFound(question_index)

        record = self.scorer.evaluate_answer(question, value, self.timer.now())
        updated = await self.repository.upsert_answer(attempt.id, question_index, record)
        if updated is None:
            raise AttemptClosed(attempt.id)
        return record

    # =========================================================================
    # SUBMIT / EXPIRE
    # =========================================================================

    async def submit(
        self, attempt_id: str, student_id: str, is_timeout: bool = False
    ) -> AttemptResult:
        """Finaliza a tentativa e retorna o resultado persistido.

        Idempotente: se ja estiver completed, retorna o resultado gravado sem
        recalcular. Em corrida, o primeiro finalize vence e todos recebem o
        mesmo resultado.
        """
        attempt = await self._load_owned(attempt_id, student_id)
        if attempt.is_completed:
            return attempt.to_result()

        now = self.timer.now()
        timed_out = is_timeout or self.timer.is_expired(attempt, now)
        reason = CompletionReason.TIMEOUT if timed_out else CompletionReason.MANUAL

        stored = await self._finalize(attempt, reason)
        return stored.to_result()

    async def expire(self, attempt_id: str) -> AttemptResult | None:
        """Finaliza a tentativa com timeout (sweeper e verificacoes preguicosas).

        Returns:
            Resultado persistido, ou None se a tentativa nao existe
        """
        attempt = await self.repository.get(attempt_id)
        if attempt is None:
            return None
        if attempt.is_completed:
            return attempt.to_result()

        stored = await self._finalize(attempt, CompletionReason.TIMEOUT)
        return stored.to_result()

    async def _finalize(self, attempt: Attempt, reason: CompletionReason) -> Attempt:
        completed_at = self.timer.now()

        # Corrige a tentativa como gravada no commit, nao a copia lida antes
        def grade(current: Attempt) -> GradeResult:
            return self.scorer.grade(
                current.questions,
                current.answers,
                current.passing_score,
                reason,
                current.started_at,
                completed_at,
            )

        stored, applied = await self.repository.finalize(attempt.id, grade)

        if applied:
            logger.info(
                f"[Attempt {stored.id}] Finalizada ({stored.completion_reason.value}): "
                f"{stored.score}/{stored.total_points} = {stored.percentage}% "
                f"{'aprovado' if stored.passed else 'reprovado'}"
            )
            event = ActivityEvent.PASSED if stored.passed else ActivityEvent.FAILED
            self._notify(event, stored)

        return stored

    async def _expire_if_due(self, attempt: Attempt) -> Attempt:
        if self.timer.is_expired(attempt):
            logger.debug(f"[Attempt {attempt.id}] Prazo esgotado, expirando")
            return await self._finalize(attempt, CompletionReason.TIMEOUT)
        return attempt

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    async def get_attempt(self, attempt_id: str, student_id: str) -> AttemptStatusResponse:
        """Estado atual: visao em andamento (sem gabarito) ou resultado."""
        attempt = await self._load_owned(attempt_id, student_id)
        attempt = await self._expire_if_due(attempt)

        if attempt.is_in_progress:
            return AttemptStatusResponse(status=attempt.status, attempt=self.view(attempt))
        return AttemptStatusResponse(status=attempt.status, result=attempt.to_result())

    async def list_attempts(self, student_id: str, quiz_id: str) -> list[AttemptSummary]:
        """Tentativas do aluno no quiz, mais recentes primeiro."""
        in_progress = await self.repository.find_in_progress(student_id, quiz_id)
        if in_progress is not None:
            await self._expire_if_due(in_progress)

        attempts = await self.repository.list_by_student_and_quiz(student_id, quiz_id)
        return [a.to_summary() for a in attempts]

    def view(self, attempt: Attempt) -> AttemptView:
        """Projecao para o aluno durante a tentativa."""
        now = self.timer.now()
        return attempt.to_view(
            server_time=now,
            deadline=self.timer.deadline(attempt),
            remaining_seconds=self.timer.remaining_seconds(attempt, now),
        )

    async def _load_owned(self, attempt_id: str, student_id: str) -> Attempt:
        attempt = await self.repository.get(attempt_id)
        if attempt is None:
            raise AttemptNotFound(attempt_id)
        if attempt.student_id != student_id:
            logger.warning(f"[Attempt {attempt_id}] Acesso negado para {student_id}")
            raise Unauthorized(attempt_id)
        return attempt

    async def _open_attempt(self, attempt_id: str, student_id: str) -> Attempt:
        attempt = await self._load_owned(attempt_id, student_id)
        attempt = await self._expire_if_due(attempt)
        if not attempt.is_in_progress:
            raise AttemptClosed(attempt_id)
        return attempt

    # =========================================================================
    # NOTIFICACOES
    # =========================================================================

    def _notify(self, event: ActivityEvent, attempt: Attempt) -> None:
        """Dispara o evento em background. Falhas nao afetam o aluno."""
        if self.notifier is None:
            return

        record = ActivityRecord(
            student_id=attempt.student_id,
            quiz_id=attempt.quiz_id,
            attempt_id=attempt.id,
            event=event,
            timestamp=self.timer.now(),
            course_id=attempt.course_id,
            score=attempt.score if attempt.is_completed else None,
            percentage=attempt.percentage if attempt.is_completed else None,
        )
        task = asyncio.create_task(self._deliver(record))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _deliver(self, record: ActivityRecord) -> None:
        try:
            await self.notifier.notify(record)
        except Exception as e:
            logger.warning(
                f"[Attempt {record.attempt_id}] Falha ao notificar {record.event.value}: {e}"
            )

    async def drain_notifications(self) -> None:
        """Aguarda notificacoes pendentes (shutdown e testes)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))
