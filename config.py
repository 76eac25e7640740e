# =============================================================================
# CONFIGURACAO - Quiz Attempt Engine
# =============================================================================
# Valores lidos de variaveis de ambiente (e .env, se existir)
# =============================================================================

import logging
import os
from dataclasses import asdict, dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

STORAGE_BACKENDS = ("agentfs", "mongo")
ACTIVITY_SINKS = ("log", "agentfs", "webhook")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    value = os.getenv(name, default).strip().lower()
    return value if value in choices else default


@dataclass
class EngineConfig:
    """Configuracao do servico de tentativas."""

    environment: str = "development"
    log_level: str = "INFO"

    # Auth
    auth_enabled: bool = False
    api_keys: tuple[str, ...] = ()

    # Storage
    storage_backend: str = "agentfs"
    agentfs_id: str = "quiz-attempts"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "lms"

    # Timer
    timer_grace_seconds: int = 0
    expiry_sweep_enabled: bool = False
    expiry_sweep_interval_seconds: float = 30.0

    # Activity
    activity_sink: str = "log"
    activity_webhook_url: str = ""
    activity_webhook_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "EngineConfig":
        keys = os.getenv("API_KEYS", "")
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            auth_enabled=_env_bool("AUTH_ENABLED", False),
            api_keys=tuple(k.strip() for k in keys.split(",") if k.strip()),
            storage_backend=_env_choice("STORAGE_BACKEND", STORAGE_BACKENDS, "agentfs"),
            agentfs_id=os.getenv("AGENTFS_ID", "quiz-attempts"),
            mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
            mongo_database=os.getenv("MONGO_DATABASE", "lms"),
            timer_grace_seconds=max(0, _env_int("TIMER_GRACE_SECONDS", 0)),
            expiry_sweep_enabled=_env_bool("EXPIRY_SWEEP_ENABLED", False),
            expiry_sweep_interval_seconds=_env_float("EXPIRY_SWEEP_INTERVAL_SECONDS", 30.0),
            activity_sink=_env_choice("ACTIVITY_SINK", ACTIVITY_SINKS, "log"),
            activity_webhook_url=os.getenv("ACTIVITY_WEBHOOK_URL", ""),
            activity_webhook_timeout=_env_float("ACTIVITY_WEBHOOK_TIMEOUT", 5.0),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["api_keys"] = len(self.api_keys)  # nunca expor as chaves
        data.pop("mongo_uri")
        return data


_config: Optional[EngineConfig] = None


def get_config() -> EngineConfig:
    global _config
    if _config is None:
        _config = EngineConfig.from_env()
    return _config


def reload_config() -> EngineConfig:
    global _config
    _config = EngineConfig.from_env()
    return _config


def setup_logging(level: Optional[str] = None) -> None:
    """Configura o root logger (nivel via LOG_LEVEL)."""
    name = (level or get_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
