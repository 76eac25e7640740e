# =============================================================================
# TESTES - Config Module
# =============================================================================
# Testes unitários para configuração via variáveis de ambiente
# =============================================================================

import os
from unittest.mock import patch


class TestEngineConfig:
    """Testes para EngineConfig dataclass."""

    def test_from_env_defaults(self):
        from config import EngineConfig

        with patch.dict(os.environ, {}, clear=True):
            config = EngineConfig.from_env()

        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.auth_enabled is False
        assert config.api_keys == ()
        assert config.storage_backend == "agentfs"
        assert config.agentfs_id == "quiz-attempts"
        assert config.mongo_database == "lms"
        assert config.timer_grace_seconds == 0
        assert config.expiry_sweep_enabled is False
        assert config.expiry_sweep_interval_seconds == 30.0
        assert config.activity_sink == "log"

    def test_from_env_custom_values(self):
        from config import EngineConfig

        env_vars = {
            "STORAGE_BACKEND": "mongo",
            "MONGO_URI": "mongodb://db:27017",
            "API_KEYS": "key-a, key-b,,",
            "TIMER_GRACE_SECONDS": "60",
            "EXPIRY_SWEEP_ENABLED": "true",
            "EXPIRY_SWEEP_INTERVAL_SECONDS": "2.5",
            "ACTIVITY_SINK": "webhook",
            "ACTIVITY_WEBHOOK_URL": "http://feed/events",
            "LOG_LEVEL": "debug",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = EngineConfig.from_env()

        assert config.storage_backend == "mongo"
        assert config.mongo_uri == "mongodb://db:27017"
        assert config.api_keys == ("key-a", "key-b")
        assert config.timer_grace_seconds == 60
        assert config.expiry_sweep_enabled is True
        assert config.expiry_sweep_interval_seconds == 2.5
        assert config.activity_sink == "webhook"
        assert config.log_level == "DEBUG"

    def test_to_dict_hides_secrets(self):
        from config import EngineConfig

        with patch.dict(os.environ, {"API_KEYS": "secret"}, clear=True):
            data = EngineConfig.from_env().to_dict()

        assert data["api_keys"] == 1
        assert "mongo_uri" not in data
        assert data["storage_backend"] == "agentfs"


class TestConfigValidation:
    """Testes de validação de configuração."""

    def test_invalid_choices_fall_back(self):
        from config import EngineConfig

        env_vars = {"STORAGE_BACKEND": "redis", "ACTIVITY_SINK": "kafka"}

        with patch.dict(os.environ, env_vars, clear=True):
            config = EngineConfig.from_env()

        assert config.storage_backend == "agentfs"
        assert config.activity_sink == "log"

    def test_invalid_numbers_fall_back(self):
        from config import EngineConfig

        env_vars = {"TIMER_GRACE_SECONDS": "abc", "ACTIVITY_WEBHOOK_TIMEOUT": "x"}

        with patch.dict(os.environ, env_vars, clear=True):
            config = EngineConfig.from_env()

        assert config.timer_grace_seconds == 0
        assert config.activity_webhook_timeout == 5.0

    def test_negative_grace_clamped(self):
        from config import EngineConfig

        with patch.dict(os.environ, {"TIMER_GRACE_SECONDS": "-10"}, clear=True):
            assert EngineConfig.from_env().timer_grace_seconds == 0

    def test_boolean_env_vars_parsed(self):
        from config import EngineConfig

        with patch.dict(os.environ, {"AUTH_ENABLED": "TRUE"}, clear=True):
            assert EngineConfig.from_env().auth_enabled is True

        with patch.dict(os.environ, {"AUTH_ENABLED": "false"}, clear=True):
            assert EngineConfig.from_env().auth_enabled is False


class TestGetConfig:
    """Testes para get_config singleton."""

    def test_returns_same_instance(self):
        from config import get_config, reload_config

        reload_config()

        assert get_config() is get_config()

    def test_reload_creates_new_instance(self):
        from config import get_config, reload_config

        old = get_config()
        new = reload_config()

        assert new is not old
        assert get_config() is new
