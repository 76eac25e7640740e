"""Expiry Sweeper - Varredura periodica de tentativas com prazo esgotado.

Opcional: a expiracao ja acontece de forma preguicosa em toda leitura. O
sweeper apenas garante que tentativas abandonadas sejam finalizadas (e os
eventos passed/failed emitidos) sem depender de um novo acesso do aluno.
"""

import asyncio
import logging

from ..storage.base import AttemptRepository
from .state_machine import AttemptStateMachine

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        engine: AttemptStateMachine,
        repository: AttemptRepository | None = None,
        interval_seconds: float = 30.0,
    ):
        self.engine = engine
        self.repository = repository or engine.repository
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        """Expira as tentativas vencidas. Retorna quantas foram finalizadas."""
        expired = 0
        now = self.engine.timer.now()

        for attempt in await self.repository.list_in_progress():
            if not self.engine.timer.is_expired(attempt, now):
                continue
            try:
                await self.engine.expire(attempt.id)
                expired += 1
            except Exception as e:
                logger.error(f"[Attempt {attempt.id}] Erro ao expirar: {e}")

        if expired:
            logger.info(f"Sweeper: {expired} tentativa(s) expirada(s)")
        return expired

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error(f"Sweeper: erro na varredura: {e}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Sweeper iniciado (intervalo {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Sweeper parado")
