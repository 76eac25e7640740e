"""Attempt Store - Repositorio de tentativas sobre o KV store do AgentFS."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

from ..errors import AttemptLimitExceeded, AttemptNotFound
from ..models.schemas import AnswerRecord
from ..models.state import Attempt
from .base import AttemptRepository, Grader, SnapshotFactory

logger = logging.getLogger(__name__)


class AttemptStore(AttemptRepository):
    """AttemptRepository persistido no KV store do AgentFS.

    O KV nao oferece escrita condicional, entao cada read-modify-write e
    serializado por um asyncio.Lock por tentativa (answers/finalize) e por
    par aluno+quiz (create). Os locks ficam num WeakValueDictionary e somem
    quando nenhuma corrotina os referencia. Correto dentro de um unico processo; para
    multiplas instancias use MongoAttemptStore.

    Estrutura de chaves:
        - attempt:{attempt_id} -> Tentativa completa (Attempt.to_dict)
        - attempt_index:{student_id}:{quiz_id} -> Lista de attempt_ids em ordem
        - attempt_active:{student_id}:{quiz_id} -> attempt_id em andamento

    Example:
        >>> store = AttemptStore(agentfs)
        >>> attempt, created = await store.create_if_absent("s1", "q1", factory)
        >>> attempt, applied = await store.finalize(attempt.id, grader)
    """

    KEY_PREFIX = "attempt"
    INDEX_PREFIX = "attempt_index"
    ACTIVE_PREFIX = "attempt_active"

    def __init__(self, agentfs: AgentFS):
        """Inicializa store com instância do AgentFS.

        Args:
            agentfs: Instância configurada do AgentFS
        """
        self.agentfs = agentfs
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _attempt_key(self, attempt_id: str) -> str:
        return f"{self.KEY_PREFIX}:{attempt_id}"

    def _index_key(self, student_id: str, quiz_id: str) -> str:
        return f"{self.INDEX_PREFIX}:{student_id}:{quiz_id}"

    def _active_key(self, student_id: str, quiz_id: str) -> str:
        return f"{self.ACTIVE_PREFIX}:{student_id}:{quiz_id}"

    def _lock(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    async def _load(self, attempt_id: str) -> Attempt | None:
        data = await self.agentfs.kv.get(self._attempt_key(attempt_id))
        if not data:
            return None
        return Attempt.from_dict(data)

    async def _save(self, attempt: Attempt) -> None:
        await self.agentfs.kv.set(self._attempt_key(attempt.id), attempt.to_dict())

    async def get(self, attempt_id: str) -> Attempt | None:
        return await self._load(attempt_id)

    async def find_in_progress(self, student_id: str, quiz_id: str) -> Attempt | None:
        attempt_id = await self.agentfs.kv.get(self._active_key(student_id, quiz_id))
        if not attempt_id:
            return None

        attempt = await self._load(attempt_id)
        if attempt is None or not attempt.is_in_progress:
            return None
        return attempt

    async def create_if_absent(
        self,
        student_id: str,
        quiz_id: str,
        snapshot_factory: SnapshotFactory,
        attempts_allowed: int = -1,
    ) -> tuple[Attempt, bool]:
        async with self._lock(f"pair:{student_id}:{quiz_id}"):
            existing = await self.find_in_progress(student_id, quiz_id)
            if existing is not None:
                return existing, False

            index_key = self._index_key(student_id, quiz_id)
            attempt_ids = await self.agentfs.kv.get(index_key) or []

            if attempts_allowed != -1 and len(attempt_ids) >= attempts_allowed:
                raise AttemptLimitExceeded(quiz_id, attempts_allowed)

            attempt = snapshot_factory(len(attempt_ids) + 1)
            await self._save(attempt)
            await self.agentfs.kv.set(index_key, [*attempt_ids, attempt.id])
            await self.agentfs.kv.set(self._active_key(student_id, quiz_id), attempt.id)

        logger.debug(f"[Attempt {attempt.id}] Criada (#{attempt.attempt_number})")
        return attempt, True

    async def upsert_answer(
        self, attempt_id: str, question_index: int, record: AnswerRecord
    ) -> Attempt | None:
        async with self._lock(f"attempt:{attempt_id}"):
            attempt = await self._load(attempt_id)
            if attempt is None or not attempt.is_in_progress:
                return None

            attempt.record_answer(question_index, record)
            await self._save(attempt)
            return attempt

    async def finalize(self, attempt_id: str, grader: Grader) -> tuple[Attempt, bool]:
        async with self._lock(f"attempt:{attempt_id}"):
            attempt = await self._load(attempt_id)
            if attempt is None:
                raise AttemptNotFound(attempt_id)

            if attempt.is_completed:
                logger.debug(f"[Attempt {attempt_id}] Já finalizada, retornando registro existente")
                return attempt, False

            attempt.apply_result(grader(attempt))
            await self._save(attempt)

        await self._clear_active(attempt)
        return attempt, True

    async def _clear_active(self, attempt: Attempt) -> None:
        """Remove o ponteiro de tentativa ativa se ainda apontar para esta."""
        async with self._lock(f"pair:{attempt.student_id}:{attempt.quiz_id}"):
            active_key = self._active_key(attempt.student_id, attempt.quiz_id)
            if await self.agentfs.kv.get(active_key) == attempt.id:
                await self.agentfs.kv.delete(active_key)

    async def list_by_student_and_quiz(self, student_id: str, quiz_id: str) -> list[Attempt]:
        attempt_ids = await self.agentfs.kv.get(self._index_key(student_id, quiz_id)) or []

        attempts = []
        for attempt_id in attempt_ids:
            attempt = await self._load(attempt_id)
            if attempt is not None:
                attempts.append(attempt)

        return sorted(attempts, key=lambda a: a.attempt_number, reverse=True)

    async def list_in_progress(self) -> list[Attempt]:
        entries = await self.agentfs.kv.list(prefix=f"{self.ACTIVE_PREFIX}:")

        attempts = []
        for entry in entries:
            key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
            attempt_id = await self.agentfs.kv.get(key)
            if not attempt_id:
                continue
            attempt = await self._load(attempt_id)
            if attempt is not None and attempt.is_in_progress:
                attempts.append(attempt)

        return attempts
