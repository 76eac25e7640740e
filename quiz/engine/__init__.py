"""Quiz Engines - Logica de tentativas."""

from .expiry_sweeper import ExpirySweeper
from .retake_policy import RetakePolicy
from .scoring_engine import AnswerScorer, normalize_text, percentage_of
from .state_machine import AttemptStateMachine
from .timer_policy import Clock, TimerPolicy, utc_now

__all__ = [
    "AnswerScorer",
    "AttemptStateMachine",
    "Clock",
    "ExpirySweeper",
    "RetakePolicy",
    "TimerPolicy",
    "normalize_text",
    "percentage_of",
    "utc_now",
]
