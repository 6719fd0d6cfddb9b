"""
Testes para a configuração de planeamento (env + .env)
"""
import os

import pytest

from stockwise.config import PlanningConfig, PlanningSettings
from stockwise.inventory_intelligence.planner import InventoryPlanner


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, reset_settings):
    """Ambiente sem variáveis STOCKWISE_* (o .env carregado não vaza entre testes)."""
    clean = {k: v for k, v in os.environ.items() if not k.startswith("STOCKWISE_")}
    monkeypatch.setattr(os, "environ", clean)


@pytest.fixture
def missing_env_file(tmp_path):
    return str(tmp_path / "missing.env")


class TestC1_Defaults:
    """C1: Valores por omissão."""

    def test_defaults(self, missing_env_file):
        config = PlanningSettings.get_config(missing_env_file)

        assert config.service_level == 0.95
        assert config.forecast_horizon == 14
        assert config.band_error_pct == 20.0
        assert config.band_from_error is False
        assert config.transfer_cost_per_unit is None
        assert config.currency == "USD"

    def test_singleton(self, missing_env_file):
        assert PlanningSettings.get_config(missing_env_file) is PlanningSettings.get_config()

    def test_to_dict(self):
        data = PlanningConfig().to_dict()
        assert data["service_level"] == 0.95
        assert "stockout_risk_threshold" in data


class TestC2_Environment:
    """C2: Overrides via variáveis de ambiente e ficheiro .env."""

    def test_env_overrides(self, monkeypatch, missing_env_file):
        monkeypatch.setenv("STOCKWISE_SERVICE_LEVEL", "0.99")
        monkeypatch.setenv("STOCKWISE_FORECAST_HORIZON", "28")
        monkeypatch.setenv("STOCKWISE_BAND_FROM_ERROR", "yes")
        monkeypatch.setenv("STOCKWISE_CURRENCY", "EUR")

        config = PlanningSettings.get_config(missing_env_file)

        assert config.service_level == 0.99
        assert config.forecast_horizon == 28
        assert config.band_from_error is True
        assert config.currency == "EUR"

    def test_invalid_value_keeps_default(self, monkeypatch, missing_env_file):
        monkeypatch.setenv("STOCKWISE_OUTLIER_Z", "abc")
        assert PlanningSettings.get_config(missing_env_file).outlier_z == 3.0

    def test_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("STOCKWISE_TRANSFER_COST_PER_UNIT=1.5\nSTOCKWISE_REVIEW_PERIOD_DAYS=7\n")

        config = PlanningSettings.get_config(str(env_file))

        assert config.transfer_cost_per_unit == 1.5
        assert config.review_period_days == 7.0

    def test_reset_reloads(self, monkeypatch, missing_env_file):
        PlanningSettings.get_config(missing_env_file)
        monkeypatch.setenv("STOCKWISE_SERVICE_LEVEL", "0.9")
        PlanningSettings.reset()

        assert PlanningSettings.get_config(missing_env_file).service_level == 0.9


class TestC3_Runtime:
    """C3: Alterações em runtime."""

    def test_set_value(self, missing_env_file):
        PlanningSettings.get_config(missing_env_file)

        assert PlanningSettings.set_value("service_level", "0.9")
        assert PlanningSettings.to_dict()["service_level"] == 0.9

    def test_set_unknown_or_invalid(self, missing_env_file):
        PlanningSettings.get_config(missing_env_file)

        assert not PlanningSettings.set_value("does_not_exist", "1")
        assert not PlanningSettings.set_value("forecast_horizon", "many")
        assert PlanningSettings.get_config().forecast_horizon == 14

    def test_planner_uses_settings(self, monkeypatch, missing_env_file):
        monkeypatch.setenv("STOCKWISE_FORECAST_HORIZON", "5")
        PlanningSettings.get_config(missing_env_file)

        assert InventoryPlanner().config.forecast_horizon == 5
