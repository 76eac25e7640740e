"""Quiz Router - Endpoints FastAPI de tentativas."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query

import app_state
from config import get_config

from .engine.retake_policy import RetakePolicy
from .engine.state_machine import AttemptStateMachine
from .errors import QuizEngineError
from .models.schemas import (
    AttemptResult,
    AttemptStatusResponse,
    AttemptSummary,
    BatchAnswerResult,
    RecordAnswersRequest,
    StartOutcome,
    SubmitRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["Quiz Attempts"])


# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================


async def get_engine() -> AttemptStateMachine:
    """Dependency para obter AttemptStateMachine configurado."""
    return await app_state.get_engine()


async def get_retake_policy() -> RetakePolicy:
    return await app_state.get_retake_policy()


def get_student_id(x_student_id: str | None = Header(default=None)) -> str:
    """Aluno autenticado (identidade resolvida pelo gateway)."""
    if not x_student_id or not x_student_id.strip():
        raise HTTPException(status_code=401, detail="Header X-Student-Id obrigatório")
    return x_student_id.strip()


def verify_api_key(x_api_key: str | None = Header(default=None)) -> str | None:
    """Valida X-API-Key quando AUTH_ENABLED=true."""
    config = get_config()
    if not config.auth_enabled:
        return None
    if not x_api_key or x_api_key not in config.api_keys:
        raise HTTPException(status_code=401, detail="API key inválida ou ausente")
    return x_api_key


def _http_error(exc: QuizEngineError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.to_dict())


# =============================================================================
# START / RESUME / REVIEW
# =============================================================================


@router.post("/{quiz_id}/start", response_model=StartOutcome)
async def start_quiz(
    quiz_id: str,
    retake: bool = Query(default=False, description="Iniciar nova tentativa mesmo se aprovado"),
    student_id: str = Depends(get_student_id),
    policy: RetakePolicy = Depends(get_retake_policy),
    _api_key: str | None = Depends(verify_api_key),
):
    """Inicia ou retoma uma tentativa.

    - Se o aluno ja foi aprovado e retake=false, retorna modo revisao
    - Se existe tentativa em andamento (e no prazo), ela e retomada
    - Caso contrario cria nova tentativa, respeitando attempts_allowed
    """
    try:
        return await policy.resolve(student_id, quiz_id, retake=retake)
    except QuizEngineError as e:
        logger.info(f"[Quiz {quiz_id}] Start recusado para {student_id}: {e.code}")
        raise _http_error(e) from e


# =============================================================================
# ANSWERS & SUBMIT
# =============================================================================


@router.post("/attempts/{attempt_id}/answers", response_model=BatchAnswerResult)
async def record_answers(
    attempt_id: str,
    request: RecordAnswersRequest,
    student_id: str = Depends(get_student_id),
    engine: AttemptStateMachine = Depends(get_engine),
    _api_key: str | None = Depends(verify_api_key),
):
    """Registra respostas (lote completo ou incremental).

    Respostas com tipo incompativel ou indice inexistente aparecem em
    ``rejected``; as demais sao gravadas normalmente.
    """
    try:
        return await engine.record_answers(attempt_id, student_id, request.answers)
    except QuizEngineError as e:
        raise _http_error(e) from e


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResult)
async def submit_attempt(
    attempt_id: str,
    request: SubmitRequest | None = None,
    student_id: str = Depends(get_student_id),
    engine: AttemptStateMachine = Depends(get_engine),
    _api_key: str | None = Depends(verify_api_key),
):
    """Finaliza a tentativa. Reenvios retornam o mesmo resultado."""
    is_timeout = request.is_timeout if request else False
    try:
        return await engine.submit(attempt_id, student_id, is_timeout=is_timeout)
    except QuizEngineError as e:
        raise _http_error(e) from e


# =============================================================================
# CONSULTAS
# =============================================================================


@router.get("/attempts/{attempt_id}", response_model=AttemptStatusResponse)
async def get_attempt(
    attempt_id: str,
    student_id: str = Depends(get_student_id),
    engine: AttemptStateMachine = Depends(get_engine),
    _api_key: str | None = Depends(verify_api_key),
):
    """Tentativa em andamento (sem gabarito) ou resultado final."""
    try:
        return await engine.get_attempt(attempt_id, student_id)
    except QuizEngineError as e:
        raise _http_error(e) from e


@router.get("/{quiz_id}/my-attempts", response_model=list[AttemptSummary])
async def list_my_attempts(
    quiz_id: str,
    student_id: str = Depends(get_student_id),
    engine: AttemptStateMachine = Depends(get_engine),
    _api_key: str | None = Depends(verify_api_key),
):
    return await engine.list_attempts(student_id, quiz_id)
