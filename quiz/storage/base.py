"""Storage contracts - AttemptRepository e QuizDefinitionStore."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from ..errors import QuizInactive, QuizNotFound
from ..models.schemas import AnswerRecord, QuizDefinition
from ..models.state import Attempt, GradeResult

# Recebe o attempt_number e devolve a nova tentativa (com snapshot)
SnapshotFactory = Callable[[int], Attempt]

# Recebe a tentativa como gravada no momento do commit e devolve a correcao
Grader = Callable[[Attempt], GradeResult]


class AttemptRepository(ABC):
    """Persistencia e transicoes atomicas de tentativas.

    Implementacoes devem garantir:
        - no maximo uma tentativa in_progress por (student_id, quiz_id)
        - create_if_absent verifica o limite de tentativas atomicamente
        - finalize e compare-and-set em status in_progress -> completed
          (first-writer-wins; o perdedor recebe o registro do vencedor)
        - a correcao usa as respostas gravadas no instante do commit: uma
          resposta confirmada antes do finalize nunca e descartada
    """

    @abstractmethod
    async def create_if_absent(
        self,
        student_id: str,
        quiz_id: str,
        snapshot_factory: SnapshotFactory,
        attempts_allowed: int = -1,
    ) -> tuple[Attempt, bool]:
        """Retorna a tentativa in_progress existente ou cria uma nova.

        Returns:
            Tuple de (attempt, created)

        Raises:
            AttemptLimitExceeded: se nao ha tentativa em andamento e o limite
                de tentativas ja foi atingido
        """

    @abstractmethod
    async def get(self, attempt_id: str) -> Attempt | None:
        """Busca tentativa por ID."""

    @abstractmethod
    async def find_in_progress(self, student_id: str, quiz_id: str) -> Attempt | None:
        """Busca a tentativa in_progress do par, se houver."""

    @abstractmethod
    async def upsert_answer(
        self, attempt_id: str, question_index: int, record: AnswerRecord
    ) -> Attempt | None:
        """Grava a resposta se a tentativa ainda estiver in_progress.

        Returns:
            Tentativa atualizada, ou None se ela ja foi finalizada
        """

    @abstractmethod
    async def finalize(self, attempt_id: str, grader: Grader) -> tuple[Attempt, bool]:
        """Sela a tentativa (compare-and-set em status).

        ``grader`` e chamado dentro do passo atomico com a tentativa relida,
        de modo que a nota reflete a ultima resposta de cada questao.

        Returns:
            Tuple de (registro persistido, applied). applied=False quando outra
            chamada ja havia finalizado; nesse caso grader nao e aplicado.

        Raises:
            AttemptNotFound: se a tentativa nao existe
        """

    @abstractmethod
    async def list_by_student_and_quiz(self, student_id: str, quiz_id: str) -> list[Attempt]:
        """Lista tentativas do par, mais recentes primeiro."""

    @abstractmethod
    async def list_in_progress(self) -> list[Attempt]:
        """Lista todas as tentativas em andamento (usado pelo sweeper)."""


class QuizDefinitionStore(ABC):
    """Fonte somente-leitura de definicoes de quiz."""

    @abstractmethod
    async def get_quiz(self, quiz_id: str) -> QuizDefinition | None:
        """Busca definicao (ativa ou nao)."""

    async def get_active_quiz(self, quiz_id: str) -> QuizDefinition:
        """Leitura pontual usada para montar o snapshot no start.

        Raises:
            QuizNotFound: se nao existe
            QuizInactive: se esta inativo
        """
        quiz = await self.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)
        if not quiz.is_active:
            raise QuizInactive(quiz_id)
        return quiz
