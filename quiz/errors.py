"""Quiz Errors - Excecoes do motor de tentativas.

Todas as falhas sao locais a uma tentativa/aluno. O router converte cada
excecao em HTTPException usando ``status_code`` e ``to_dict()``.
"""

from typing import Any


class QuizEngineError(Exception):
    """Erro base do motor de tentativas."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class QuizNotFound(QuizEngineError):
    status_code = 404

    def __init__(self, quiz_id: str):
        super().__init__("Quiz não encontrado", {"quiz_id": quiz_id})


class QuizInactive(QuizEngineError):
    def __init__(self, quiz_id: str):
        super().__init__("Este quiz não está disponível", {"quiz_id": quiz_id})


class AttemptLimitExceeded(QuizEngineError):
    def __init__(self, quiz_id: str, attempts_allowed: int):
        super().__init__(
            f"Número máximo de tentativas ({attempts_allowed}) atingido para este quiz",
            {"quiz_id": quiz_id, "attempts_allowed": attempts_allowed},
        )


class AttemptNotFound(QuizEngineError):
    status_code = 404

    def __init__(self, attempt_id: str):
        super().__init__("Tentativa não encontrada", {"attempt_id": attempt_id})


class Unauthorized(QuizEngineError):
    """Tentativa existe mas pertence a outro aluno."""

    status_code = 403

    def __init__(self, attempt_id: str):
        super().__init__("Não autorizado", {"attempt_id": attempt_id})


class AttemptClosed(QuizEngineError):
    """Resposta enviada para uma tentativa ja finalizada."""

    status_code = 409

    def __init__(self, attempt_id: str):
        super().__init__("Esta tentativa já foi finalizada", {"attempt_id": attempt_id})


class InvalidAnswerType(QuizEngineError):
    """Tipo da resposta nao corresponde ao tipo da questao (por questao)."""

    status_code = 422

    def __init__(self, question_index: int, expected: str, received: str):
        super().__init__(
            f"Resposta do tipo '{received}' inválida para questão do tipo '{expected}'",
            {"question_index": question_index, "expected": expected, "received": received},
        )


class QuestionNotFound(QuizEngineError):
    status_code = 422

    def __init__(self, question_index: int):
        super().__init__(
            f"Questão {question_index} não existe nesta tentativa",
            {"question_index": question_index},
        )


class AttemptConflict(QuizEngineError):
    """Escrita concorrente nao resolvida apos as retentativas do repositorio."""

    status_code = 409

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details)
