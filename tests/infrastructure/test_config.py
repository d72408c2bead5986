"""Tests for environment-driven settings."""

from datetime import timedelta
from pathlib import Path

import pytest

from orderflow.config import ConfigurationError, Settings
from orderflow.domain.repository.unit_of_work import ConsistencyMode
from orderflow.infrastructure.bootstrap import Container, unit_of_work
from orderflow.infrastructure.persistence.json_store import JsonUnitOfWork
from orderflow.infrastructure.persistence.memory_store import InMemoryUnitOfWork


class TestSettingsFromEnv:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.data_dir == Path("data")
        assert settings.storage == "json"
        assert settings.consistency is ConsistencyMode.TRANSACTIONAL
        assert settings.reservation_window == timedelta(minutes=15)
        assert settings.sweep_interval_seconds == 60.0
        assert settings.payment_success_rate == 0.9
        assert settings.environment == "development"
        assert settings.log_level is None

    def test_overrides(self):
        settings = Settings.from_env({
            "ORDERFLOW_DATA_DIR": "/tmp/of",
            "ORDERFLOW_STORAGE": "Memory",
            "ORDERFLOW_CONSISTENCY": "compare_and_swap",
            "ORDERFLOW_RESERVATION_MINUTES": "5",
            "ORDERFLOW_SWEEP_INTERVAL_SECONDS": "2.5",
            "ORDERFLOW_PAYMENT_SUCCESS_RATE": "1",
            "ORDERFLOW_ENV": "production",
            "LOG_LEVEL": "ERROR",
        })
        assert settings.data_dir == Path("/tmp/of")
        assert settings.storage == "memory"
        assert settings.consistency is ConsistencyMode.COMPARE_AND_SWAP
        assert settings.reservation_window == timedelta(minutes=5)
        assert settings.sweep_interval_seconds == 2.5
        assert settings.payment_success_rate == 1.0
        assert settings.environment == "production"
        assert settings.log_level == "ERROR"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("ORDERFLOW_STORAGE", "postgres"),
            ("ORDERFLOW_CONSISTENCY", "eventual"),
            ("ORDERFLOW_RESERVATION_MINUTES", "0"),
            ("ORDERFLOW_RESERVATION_MINUTES", "soon"),
            ("ORDERFLOW_SWEEP_INTERVAL_SECONDS", "-1"),
            ("ORDERFLOW_PAYMENT_SUCCESS_RATE", "1.5"),
        ],
    )
    def test_invalid_values_name_the_variable(self, name, value):
        with pytest.raises(ConfigurationError, match=name):
            Settings.from_env({name: value})


class TestBootstrap:

    def test_memory_storage(self):
        uow = unit_of_work(Settings(storage="memory"))
        assert isinstance(uow, InMemoryUnitOfWork)

    def test_json_storage(self, tmp_path):
        uow = unit_of_work(Settings(data_dir=tmp_path, consistency=ConsistencyMode.COMPARE_AND_SWAP))
        assert isinstance(uow, JsonUnitOfWork)
        assert uow.mode is ConsistencyMode.COMPARE_AND_SWAP

    def test_sweeper_reconciles_only_under_compare_and_swap(self):
        tx_app = Container.from_settings(Settings(storage="memory"))
        cas_app = Container.from_settings(
            Settings(storage="memory", consistency=ConsistencyMode.COMPARE_AND_SWAP)
        )
        assert tx_app.sweeper()._reconcile is None
        assert cas_app.sweeper()._reconcile is not None
