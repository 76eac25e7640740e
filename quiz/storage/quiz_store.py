"""Quiz Store - Definicoes de quiz no KV store do AgentFS."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

from ..models.schemas import QuizDefinition
from .base import QuizDefinitionStore

logger = logging.getLogger(__name__)


class QuizStore(QuizDefinitionStore):
    """Abstração sobre AgentFS para leitura de definicoes de quiz.

    Para o motor de tentativas e somente leitura; save_quiz/delete_quiz
    existem para o script de seed e para os testes.

    Estrutura de chaves:
        - quiz:{quiz_id}:definition -> QuizDefinition serializado

    Example:
        >>> store = QuizStore(agentfs)
        >>> await store.save_quiz(quiz)
        >>> quiz = await store.get_active_quiz("quiz-1")
    """

    KEY_PREFIX = "quiz"

    def __init__(self, agentfs: AgentFS):
        self.agentfs = agentfs

    def _definition_key(self, quiz_id: str) -> str:
        """Gera chave para definicao do quiz."""
        return f"{self.KEY_PREFIX}:{quiz_id}:definition"

    async def get_quiz(self, quiz_id: str) -> QuizDefinition | None:
        data = await self.agentfs.kv.get(self._definition_key(quiz_id))
        if not data:
            logger.debug(f"Quiz não encontrado: {quiz_id}")
            return None
        return QuizDefinition.model_validate(data)

    async def save_quiz(self, quiz: QuizDefinition) -> None:
        await self.agentfs.kv.set(self._definition_key(quiz.id), quiz.model_dump(mode="json"))
        logger.info(f"[Quiz {quiz.id}] Definição salva ({len(quiz.questions)} questões)")

    async def delete_quiz(self, quiz_id: str) -> None:
        await self.agentfs.kv.delete(self._definition_key(quiz_id))
        logger.info(f"[Quiz {quiz_id}] Definição removida")

    async def list_quizzes(self) -> list[str]:
        """Lista todos os quiz IDs armazenados."""
        entries = await self.agentfs.kv.list(prefix=f"{self.KEY_PREFIX}:")

        quiz_ids = set()
        for entry in entries:
            key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
            parts = key.split(":")
            if len(parts) >= 3 and parts[-1] == "definition":
                quiz_ids.add(":".join(parts[1:-1]))

        return sorted(quiz_ids)
