"""Retake Policy - Decide entre revisao e nova tentativa."""

import logging

from ..models.enums import StartMode
from ..models.schemas import StartOutcome
from ..models.state import Attempt
from ..storage.base import AttemptRepository
from .state_machine import AttemptStateMachine

logger = logging.getLogger(__name__)


class RetakePolicy:
    """Ponto de entrada do "iniciar quiz".

    Sem retake, um aluno que ja foi aprovado recebe a tentativa aprovada mais
    recente em modo revisao (sem criar tentativa). Com retake, delega para o
    motor: aprovacao anterior nao bloqueia e o limite de tentativas continua
    valendo.
    """

    def __init__(self, engine: AttemptStateMachine, repository: AttemptRepository | None = None):
        self.engine = engine
        self.repository = repository or engine.repository

    async def latest_passed(self, student_id: str, quiz_id: str) -> Attempt | None:
        attempts = await self.repository.list_by_student_and_quiz(student_id, quiz_id)
        for attempt in attempts:
            if attempt.is_completed and attempt.passed:
                return attempt
        return None

    async def resolve(self, student_id: str, quiz_id: str, retake: bool = False) -> StartOutcome:
        if not retake:
            passed = await self.latest_passed(student_id, quiz_id)
            if passed is not None:
                logger.debug(f"[Quiz {quiz_id}] {student_id} ja aprovado, modo revisao")
                return StartOutcome(mode=StartMode.REVIEW, review=passed.to_result())

        attempt, created = await self.engine.start(student_id, quiz_id)
        return StartOutcome(
            mode=StartMode.ATTEMPT,
            resumed=not created,
            attempt=self.engine.view(attempt),
        )
