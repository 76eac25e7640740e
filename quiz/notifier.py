"""Activity Notifier - Eventos de atividade emitidos pelo motor de tentativas.

O motor so conhece a interface ActivityNotifier. Falhas de entrega sao
registradas em log e nunca propagam para o fluxo do aluno.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, Field

from .models.enums import ActivityEvent

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS

logger = logging.getLogger(__name__)


class ActivityRecord(BaseModel):
    """Evento publicado para o feed de atividades / analytics."""

    student_id: str
    quiz_id: str
    attempt_id: str
    event: ActivityEvent
    timestamp: datetime
    course_id: str | None = None
    score: int | None = Field(default=None, description="Apenas em passed/failed")
    percentage: int | None = None


class ActivityNotifier(ABC):
    """Sink de eventos. Implementacoes podem levantar; o motor captura."""

    @abstractmethod
    async def notify(self, record: ActivityRecord) -> None: ...

    async def close(self) -> None:
        return None


class LoggingActivityNotifier(ActivityNotifier):
    """Apenas registra o evento no log (sink padrao)."""

    async def notify(self, record: ActivityRecord) -> None:
        logger.info(
            f"[Activity] {record.event.value} student={record.student_id} "
            f"quiz={record.quiz_id} attempt={record.attempt_id}"
        )


class KVActivityNotifier(ActivityNotifier):
    """Grava eventos no KV store do AgentFS.

    Estrutura de chaves:
        - activity:{student_id}:{timestamp}:{attempt_id}:{event} -> ActivityRecord
    """

    KEY_PREFIX = "activity"

    def __init__(self, agentfs: AgentFS):
        self.agentfs = agentfs

    def _key(self, record: ActivityRecord) -> str:
        return (
            f"{self.KEY_PREFIX}:{record.student_id}:{record.timestamp.isoformat()}"
            f":{record.attempt_id}:{record.event.value}"
        )

    async def notify(self, record: ActivityRecord) -> None:
        await self.agentfs.kv.set(self._key(record), record.model_dump(mode="json"))

    async def list_for_student(self, student_id: str) -> list[ActivityRecord]:
        """Lista eventos de um aluno em ordem cronologica."""
        entries = await self.agentfs.kv.list(prefix=f"{self.KEY_PREFIX}:{student_id}:")

        records = []
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get("value"), dict):
                data = entry["value"]
            else:
                key = entry.get("key", "") if isinstance(entry, dict) else str(entry)
                data = await self.agentfs.kv.get(key)
            if data:
                records.append(ActivityRecord.model_validate(data))

        return sorted(records, key=lambda r: r.timestamp)


class WebhookActivityNotifier(ActivityNotifier):
    """Envia eventos via HTTP POST para um endpoint externo."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def notify(self, record: ActivityRecord) -> None:
        response = await self._client.post(self.url, json=record.model_dump(mode="json"))
        response.raise_for_status()

    async def close(self) -> None:
        await self._client.aclose()
