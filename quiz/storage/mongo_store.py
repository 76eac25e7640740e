"""Mongo Store - Repositorio de tentativas e quizzes no MongoDB (pymongo async)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

if TYPE_CHECKING:
    from pymongo.asynchronous.database import AsyncDatabase

from ..errors import AttemptConflict, AttemptLimitExceeded, AttemptNotFound
from ..models.enums import AttemptStatus
from ..models.schemas import AnswerRecord, QuizDefinition
from ..models.state import Attempt
from .base import AttemptRepository, Grader, QuizDefinitionStore, SnapshotFactory

logger = logging.getLogger(__name__)

IN_PROGRESS = AttemptStatus.IN_PROGRESS.value


class MongoAttemptStore(AttemptRepository):
    """AttemptRepository com escritas condicionais no MongoDB.

    - finalize/upsert_answer usam find_one_and_update filtrando por
      status == in_progress (compare-and-set no proprio documento)
    - upsert_answer incrementa answers_version; finalize so grava se a versao
      lida ainda for a atual, senao rele e corrige de novo
    - indice unico parcial em (student_id, quiz_id) para status in_progress
      garante no maximo uma tentativa em andamento
    - indice unico em (student_id, quiz_id, attempt_number) impede que duas
      instancias criem a mesma tentativa N e furem o limite
    """

    CREATE_RETRIES = 3
    FINALIZE_RETRIES = 5

    def __init__(self, db: AsyncDatabase, collection_name: str = "quiz_attempts"):
        self.db = db
        self.collection = db[collection_name]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("student_id", ASCENDING), ("quiz_id", ASCENDING)],
            name="one_in_progress_per_student_quiz",
            unique=True,
            partialFilterExpression={"status": IN_PROGRESS},
        )
        await self.collection.create_index(
            [("student_id", ASCENDING), ("quiz_id", ASCENDING), ("attempt_number", ASCENDING)],
            name="attempt_number_per_student_quiz",
            unique=True,
        )
        await self.collection.create_index([("status", ASCENDING)], name="status")

    @staticmethod
    def _to_document(attempt: Attempt) -> dict[str, Any]:
        doc = attempt.to_dict()
        doc["_id"] = doc.pop("id")
        return doc

    async def get(self, attempt_id: str) -> Attempt | None:
        doc = await self.collection.find_one({"_id": attempt_id})
        return Attempt.from_dict(doc) if doc else None

    async def find_in_progress(self, student_id: str, quiz_id: str) -> Attempt | None:
        doc = await self.collection.find_one(
            {"student_id": student_id, "quiz_id": quiz_id, "status": IN_PROGRESS}
        )
        return Attempt.from_dict(doc) if doc else None

    async def create_if_absent(
        self,
        student_id: str,
        quiz_id: str,
        snapshot_factory: SnapshotFactory,
        attempts_allowed: int = -1,
    ) -> tuple[Attempt, bool]:
        for _ in range(self.CREATE_RETRIES):
            existing = await self.find_in_progress(student_id, quiz_id)
            if existing is not None:
                return existing, False

            started = await self.collection.count_documents(
                {"student_id": student_id, "quiz_id": quiz_id}
            )
            if attempts_allowed != -1 and started >= attempts_allowed:
                raise AttemptLimitExceeded(quiz_id, attempts_allowed)

            attempt = snapshot_factory(started + 1)
            try:
                await self.collection.insert_one(self._to_document(attempt))
            except DuplicateKeyError:
                # Outra requisicao criou a tentativa concorrentemente; reavaliar
                logger.debug(f"[Quiz {quiz_id}] Criação concorrente detectada para {student_id}")
                continue

            logger.debug(f"[Attempt {attempt.id}] Criada (#{attempt.attempt_number})")
            return attempt, True

        existing = await self.find_in_progress(student_id, quiz_id)
        if existing is not None:
            return existing, False
        raise AttemptConflict(
            "Início concorrente da tentativa, tente novamente",
            {"quiz_id": quiz_id, "student_id": student_id},
        )

    async def upsert_answer(
        self, attempt_id: str, question_index: int, record: AnswerRecord
    ) -> Attempt | None:
        doc = await self.collection.find_one_and_update(
            {"_id": attempt_id, "status": IN_PROGRESS},
            {
                "$set": {f"answers.{question_index}": record.model_dump(mode="json")},
                "$inc": {"answers_version": 1},
            },
            return_document=ReturnDocument.AFTER,
        )
        return Attempt.from_dict(doc) if doc else None

    async def finalize(self, attempt_id: str, grader: Grader) -> tuple[Attempt, bool]:
        for _ in range(self.FINALIZE_RETRIES):
            doc = await self.collection.find_one({"_id": attempt_id})
            if doc is None:
                raise AttemptNotFound(attempt_id)

            attempt = Attempt.from_dict(doc)
            if attempt.is_completed:
                logger.debug(f"[Attempt {attempt_id}] Já finalizada, retornando registro existente")
                return attempt, False

            result = grader(attempt)
            updated = await self.collection.find_one_and_update(
                {
                    "_id": attempt_id,
                    "status": IN_PROGRESS,
                    "answers_version": attempt.answers_version,
                },
                {"$set": result.to_update()},
                return_document=ReturnDocument.AFTER,
            )
            if updated:
                return Attempt.from_dict(updated), True

            # Resposta gravada (ou finalize concorrente) entre a leitura e o commit
            logger.debug(f"[Attempt {attempt_id}] Versão mudou durante finalize, recorrigindo")

        raise AttemptConflict(
            "Tentativa modificada concorrentemente, tente novamente",
            {"attempt_id": attempt_id},
        )

    async def list_by_student_and_quiz(self, student_id: str, quiz_id: str) -> list[Attempt]:
        cursor = self.collection.find({"student_id": student_id, "quiz_id": quiz_id}).sort(
            "attempt_number", DESCENDING
        )
        return [Attempt.from_dict(doc) for doc in await cursor.to_list(length=None)]

    async def list_in_progress(self) -> list[Attempt]:
        cursor = self.collection.find({"status": IN_PROGRESS})
        return [Attempt.from_dict(doc) for doc in await cursor.to_list(length=None)]


class MongoQuizStore(QuizDefinitionStore):
    """Leitura de definicoes de quiz na colecao ``quizzes``."""

    def __init__(self, db: AsyncDatabase, collection_name: str = "quizzes"):
        self.db = db
        self.collection = db[collection_name]

    async def get_quiz(self, quiz_id: str) -> QuizDefinition | None:
        doc = await self.collection.find_one({"_id": quiz_id})
        if not doc:
            return None
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        return QuizDefinition.model_validate(data)

    async def save_quiz(self, quiz: QuizDefinition) -> None:
        doc = quiz.model_dump(mode="json")
        doc["_id"] = doc.pop("id")
        await self.collection.replace_one({"_id": doc["_id"]}, doc, upsert=True)
        logger.info(f"[Quiz {quiz.id}] Definição salva ({len(quiz.questions)} questões)")
