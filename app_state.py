"""Core module - shared state and helper functions.

Singletons criados sob demanda na primeira requisicao e liberados em
cleanup(). Os repositorios precisam ser unicos por processo: os locks do
AttemptStore vivem na instancia.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from config import get_config
from quiz.engine import AttemptStateMachine, ExpirySweeper, RetakePolicy, TimerPolicy
from quiz.notifier import (
    ActivityNotifier,
    KVActivityNotifier,
    LoggingActivityNotifier,
    WebhookActivityNotifier,
)
from quiz.storage import (
    AttemptRepository,
    AttemptStore,
    MongoAttemptStore,
    MongoQuizStore,
    QuizDefinitionStore,
    QuizStore,
)

if TYPE_CHECKING:
    from agentfs_sdk import AgentFS
    from pymongo import AsyncMongoClient

logger = logging.getLogger(__name__)

# Global instances
agentfs: Optional[AgentFS] = None
mongo_client: Optional[AsyncMongoClient] = None
repository: Optional[AttemptRepository] = None
quiz_store: Optional[QuizDefinitionStore] = None
notifier: Optional[ActivityNotifier] = None
engine: Optional[AttemptStateMachine] = None
retake_policy: Optional[RetakePolicy] = None
sweeper: Optional[ExpirySweeper] = None

_init_lock = asyncio.Lock()


# =============================================================================
# BACKENDS
# =============================================================================


async def get_agentfs() -> AgentFS:
    """Get AgentFS instance."""
    global agentfs
    if agentfs is None:
        from agentfs_sdk import AgentFS, AgentFSOptions

        config = get_config()
        agentfs = await AgentFS.open(AgentFSOptions(id=config.agentfs_id))
        logger.info(f"AgentFS aberto: {config.agentfs_id}")
    return agentfs


def get_mongo_client() -> AsyncMongoClient:
    global mongo_client
    if mongo_client is None:
        from pymongo import AsyncMongoClient

        mongo_client = AsyncMongoClient(get_config().mongo_uri)
    return mongo_client


async def _build_stores() -> tuple[AttemptRepository, QuizDefinitionStore]:
    config = get_config()

    if config.storage_backend == "mongo":
        db = get_mongo_client()[config.mongo_database]
        attempts = MongoAttemptStore(db)
        await attempts.ensure_indexes()
        logger.info(f"Storage: MongoDB ({config.mongo_database})")
        return attempts, MongoQuizStore(db)

    afs = await get_agentfs()
    logger.info("Storage: AgentFS KV")
    return AttemptStore(afs), QuizStore(afs)


async def _build_notifier() -> ActivityNotifier:
    config = get_config()

    if config.activity_sink == "webhook":
        if config.activity_webhook_url:
            return WebhookActivityNotifier(
                config.activity_webhook_url, timeout=config.activity_webhook_timeout
            )
        logger.warning("ACTIVITY_SINK=webhook sem ACTIVITY_WEBHOOK_URL, usando log")
    elif config.activity_sink == "agentfs":
        return KVActivityNotifier(await get_agentfs())

    return LoggingActivityNotifier()


# =============================================================================
# ENGINE
# =============================================================================


async def get_engine() -> AttemptStateMachine:
    """Get AttemptStateMachine singleton."""
    global repository, quiz_store, notifier, engine
    if engine is not None:
        return engine

    async with _init_lock:
        if engine is None:
            config = get_config()
            repository, quiz_store = await _build_stores()
            notifier = await _build_notifier()
            engine = AttemptStateMachine(
                repository,
                quiz_store,
                timer=TimerPolicy(grace_seconds=config.timer_grace_seconds),
                notifier=notifier,
            )
    return engine


async def get_retake_policy() -> RetakePolicy:
    global retake_policy
    if retake_policy is None:
        retake_policy = RetakePolicy(await get_engine())
    return retake_policy


async def start_sweeper() -> Optional[ExpirySweeper]:
    """Inicia o sweeper de expiracao se EXPIRY_SWEEP_ENABLED."""
    global sweeper
    config = get_config()
    if not config.expiry_sweep_enabled:
        return None

    if sweeper is None:
        sweeper = ExpirySweeper(
            await get_engine(), interval_seconds=config.expiry_sweep_interval_seconds
        )
    sweeper.start()
    return sweeper


async def cleanup():
    """Cleanup resources on shutdown."""
    global agentfs, mongo_client, repository, quiz_store, notifier, engine, retake_policy, sweeper

    if sweeper is not None:
        await sweeper.stop()
        sweeper = None

    if engine is not None:
        await engine.drain_notifications()
        engine = None
    retake_policy = None
    repository = None
    quiz_store = None

    if notifier is not None:
        try:
            await notifier.close()
        except Exception as e:
            logger.warning(f"Erro ao fechar notifier: {e}")
        notifier = None

    if mongo_client is not None:
        await mongo_client.close()
        mongo_client = None

    if agentfs is not None:
        try:
            await agentfs.close()
            logger.info("AgentFS fechado")
        except Exception as e:
            logger.warning(f"Erro ao fechar AgentFS: {e}")
        agentfs = None
