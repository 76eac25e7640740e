"""Answer Scoring Engine - Motor de correcao de respostas."""

from datetime import datetime

from ..errors import InvalidAnswerType
from ..models.enums import EXPECTED_ANSWER_KIND, CompletionReason, QuestionType
from ..models.schemas import AnswerRecord, AnswerValue, Question
from ..models.state import GradeResult


def normalize_text(value: str) -> str:
    """Normalizacao de short_answer: trim + case-insensitive."""
    return value.strip().lower()


def percentage_of(score: int, total_points: int) -> int:
    """round(score / total * 100) com arredondamento half-up; 0 se total == 0."""
    if total_points <= 0:
        return 0
    return (score * 200 + total_points) // (2 * total_points)


class AnswerScorer:
    """Motor de correcao puro e deterministico.

    Regras de comparacao:
        - mcq: indice exato
        - true_false: booleano exato
        - short_answer: igualdade exata apos trim e lowercase (sem fuzzy)

    Example:
        >>> scorer = AnswerScorer()
        >>> scorer.is_correct(question, IndexAnswer(index=2))
        True
    """

    def check_answer_type(self, question: Question, answer: AnswerValue) -> None:
        """Valida a tag do AnswerValue contra o tipo da questao.

        Raises:
            InvalidAnswerType: se a tag nao corresponde
        """
        expected = EXPECTED_ANSWER_KIND[question.type]
        if answer.kind != expected.value:
            raise InvalidAnswerType(question.index, question.type.value, answer.kind)

    def is_correct(self, question: Question, answer: AnswerValue) -> bool:
        """Avalia se a resposta esta correta.

        Args:
            question: Questao do snapshot
            answer: Resposta enviada

        Returns:
            True se correta
        """
        self.check_answer_type(question, answer)

        if question.type == QuestionType.MCQ:
            return answer.index == question.correct_answer
        if question.type == QuestionType.TRUE_FALSE:
            return answer.value == question.correct_answer
        return normalize_text(answer.text) == normalize_text(question.correct_answer)

    def points(self, question: Question, answer: AnswerValue | None) -> int:
        if answer is None:
            return 0
        return question.points if self.is_correct(question, answer) else 0

    def total_points(self, questions: list[Question]) -> int:
        return sum(q.points for q in questions)

    def evaluate_answer(
        self, question: Question, answer: AnswerValue, answered_at: datetime | None = None
    ) -> AnswerRecord:
        """Avalia uma resposta individual e monta o AnswerRecord."""
        is_correct = self.is_correct(question, answer)
        return AnswerRecord(
            answer=answer,
            is_correct=is_correct,
            points_earned=question.points if is_correct else 0,
            answered_at=answered_at,
        )

    def grade(
        self,
        questions: list[Question],
        answers: dict[int, AnswerRecord],
        passing_score: int,
        completion_reason: CompletionReason,
        started_at: datetime,
        completed_at: datetime,
    ) -> GradeResult:
        """Calcula o resultado completo da tentativa a partir do snapshot.

        A correcao de cada resposta e recalculada aqui (nao usa is_correct
        gravado no answer). Questoes sem resposta valem 0.

        Args:
            questions: Snapshot das questoes
            answers: Respostas registradas (question_index -> AnswerRecord)
            passing_score: Percentual minimo de aprovacao
            completion_reason: manual ou timeout
            started_at: Inicio da tentativa
            completed_at: Momento da finalizacao

        Returns:
            GradeResult com score, percentage, passed e breakdown por tipo
        """
        score = 0
        correct_count = 0
        graded: dict[int, AnswerRecord] = {}
        breakdown = {t.value: {"correct": 0, "total": 0} for t in QuestionType}

        for question in questions:
            breakdown[question.type.value]["total"] += 1
            record = answers.get(question.index)
            if record is None:
                continue

            rescored = self.evaluate_answer(question, record.answer, record.answered_at)
            graded[question.index] = rescored
            score += rescored.points_earned
            if rescored.is_correct:
                correct_count += 1
                breakdown[question.type.value]["correct"] += 1

        total = self.total_points(questions)
        percentage = percentage_of(score, total)
        elapsed = (completed_at - started_at).total_seconds()

        return GradeResult(
            score=score,
            total_points=total,
            percentage=percentage,
            passed=percentage >= passing_score,
            correct_count=correct_count,
            answers=graded,
            completion_reason=completion_reason,
            completed_at=completed_at,
            time_taken_seconds=max(0, int(elapsed + 0.5)),
            breakdown=breakdown,
        )
