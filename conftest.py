# =============================================================================
# CONFTEST - Pytest Fixtures Globais
# =============================================================================
# Ambiente isolado: AgentFS mockado, sem MongoDB, sem webhook
# =============================================================================

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Adicionar root ao path
sys.path.insert(0, str(Path(__file__).parent))


# =============================================================================
# FIXTURES DE AMBIENTE
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_env():
    """Configura variáveis de ambiente para testes e recarrega a config."""
    from config import reload_config

    env_vars = {
        "ENVIRONMENT": "test",
        "AUTH_ENABLED": "false",
        "STORAGE_BACKEND": "agentfs",
        "ACTIVITY_SINK": "log",
        "EXPIRY_SWEEP_ENABLED": "false",
        "TIMER_GRACE_SECONDS": "0",
    }
    with patch.dict(os.environ, env_vars):
        reload_config()
        yield
    reload_config()
