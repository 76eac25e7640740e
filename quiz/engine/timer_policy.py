"""Timer Policy - Prazo e expiracao de tentativas.

O servidor e a unica autoridade de expiracao. Qualquer countdown exibido
pelo cliente e derivado de started_at + time_limit_minutes e nunca entra
na correcao.
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from ..models.state import Attempt

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimerPolicy:
    """Calcula deadlines e expiracao usando um relogio injetavel.

    Usa o time_limit_minutes gravado no snapshot da tentativa, de modo que
    editar o quiz depois do start nao altera o prazo.

    Args:
        clock: Funcao que retorna o instante atual (UTC)
        grace_seconds: Tolerancia apos o deadline antes de considerar expirada
    """

    def __init__(self, clock: Clock | None = None, grace_seconds: int = 0):
        self._clock = clock or utc_now
        self.grace_seconds = max(0, grace_seconds)

    def now(self) -> datetime:
        return self._clock()

    def deadline(self, attempt: Attempt) -> datetime | None:
        if attempt.time_limit_minutes <= 0:
            return None
        return attempt.started_at + timedelta(minutes=attempt.time_limit_minutes)

    def is_expired(self, attempt: Attempt, now: datetime | None = None) -> bool:
        deadline = self.deadline(attempt)
        if deadline is None or not attempt.is_in_progress:
            return False
        now = now or self.now()
        return now >= deadline + timedelta(seconds=self.grace_seconds)

    def remaining_seconds(self, attempt: Attempt, now: datetime | None = None) -> int | None:
        """Segundos restantes (informativo). None se sem limite."""
        deadline = self.deadline(attempt)
        if deadline is None:
            return None
        now = now or self.now()
        return max(0, int((deadline - now).total_seconds()))
