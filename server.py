"""
Quiz Attempt Server

FastAPI server com:
- Motor de tentativas (start/resume, respostas, submit, timeout)
- Storage em AgentFS KV ou MongoDB
- Expiracao preguicosa + sweeper opcional
- Eventos de atividade (log, AgentFS ou webhook)
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app_state
from config import get_config, setup_logging
from quiz.router import router as quiz_router

setup_logging()


# =============================================================================
# FASTAPI APP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle."""
    import logging

    logger = logging.getLogger("server")
    config = get_config()
    logger.info(f"Iniciando Quiz Attempt Server ({config.environment}, storage={config.storage_backend})")

    if config.expiry_sweep_enabled:
        await app_state.start_sweeper()

    yield

    await app_state.cleanup()
    logger.info("Recursos liberados")


app = FastAPI(
    title="Quiz Attempt Engine",
    description="Tentativas de quiz com snapshot, prazo e correcao no servidor",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz_router)


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================

@app.get("/")
async def root():
    """Health check."""
    config = get_config()
    return {
        "status": "ok",
        "message": "Quiz Attempt Engine",
        "storage_backend": config.storage_backend,
        "auth_enabled": config.auth_enabled,
    }


@app.get("/health")
async def health_check():
    """Detailed health check."""
    config = get_config()
    return {
        "status": "healthy",
        "environment": config.environment,
        "engine_ready": app_state.engine is not None,
        "sweeper_running": app_state.sweeper is not None and app_state.sweeper.is_running,
        "config": config.to_dict(),
    }


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
