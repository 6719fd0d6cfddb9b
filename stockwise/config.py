"""
StockWise - Planning Configuration
==================================

Parâmetros por omissão do motor de planeamento de inventário.
O core é puro: as funções recebem os parâmetros explicitamente. Esta camada
só existe para o host (e para o InventoryPlanner) obter valores consistentes.

Uso:
    from stockwise.config import PlanningSettings

    config = PlanningSettings.get_config()
    config.service_level  # 0.95

Configuração via variáveis de ambiente (ou ficheiro .env):
    STOCKWISE_SERVICE_LEVEL=0.97
    STOCKWISE_FORECAST_HORIZON=28
    STOCKWISE_BAND_FROM_ERROR=true
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIG DATACLASS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PlanningConfig:
    """
    Configuração de um passo de planeamento.

    Attributes:
        service_level: Nível de serviço alvo (0.95 = 95%)
        default_lead_time_days: Lead time usado quando não há amostras do fornecedor
        review_period_days: Período de revisão da política periódica
        outlier_z: Limite de z-score para corte de outliers
        promo_uplift_pct: Uplift aplicado a pontos PROMO
        forecast_horizon: Número de períodos projetados
        band_error_pct: Largura da banda de confiança (%)
        band_from_error: Derivar a banda do WAPE/MAPE medido em vez do valor fixo
        forecast_error_threshold: WAPE/MAPE acima do qual se gera exceção
        lead_time_spike_pct: Fração acima da mediana que conta como pico
        supplier_on_time_target_pct: Pontualidade mínima aceitável do fornecedor
        stockout_risk_threshold: Probabilidade de rutura que gera exceção
        min_display_qty: Quantidade mínima exposta em loja (não transferível)
        transfer_lead_time_days: Lead time das transferências (opcional)
        transfer_cost_per_unit: Custo de transferência por unidade (opcional)
        currency: Moeda dos totais
    """
    service_level: float = 0.95
    default_lead_time_days: float = 7.0
    review_period_days: float = 14.0
    outlier_z: float = 3.0
    promo_uplift_pct: float = 0.2
    forecast_horizon: int = 14
    band_error_pct: float = 20.0
    band_from_error: bool = False
    forecast_error_threshold: float = 25.0
    lead_time_spike_pct: float = 0.25
    supplier_on_time_target_pct: float = 85.0
    stockout_risk_threshold: float = 0.5
    min_display_qty: float = 0.0
    transfer_lead_time_days: Optional[float] = None
    transfer_cost_per_unit: Optional[float] = None
    currency: str = "USD"

    def to_dict(self) -> Dict[str, Any]:
        """Exporta configuração como dict."""
        return asdict(self)


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS LOADER
# ═══════════════════════════════════════════════════════════════════════════════

_ENV_PREFIX = "STOCKWISE_"

_FLOAT_FIELDS = (
    "service_level",
    "default_lead_time_days",
    "review_period_days",
    "outlier_z",
    "promo_uplift_pct",
    "band_error_pct",
    "forecast_error_threshold",
    "lead_time_spike_pct",
    "supplier_on_time_target_pct",
    "stockout_risk_threshold",
    "min_display_qty",
)
_OPTIONAL_FLOAT_FIELDS = ("transfer_lead_time_days", "transfer_cost_per_unit")
_INT_FIELDS = ("forecast_horizon",)
_BOOL_FIELDS = ("band_from_error",)
_STR_FIELDS = ("currency",)


def _coerce(attr_name: str, raw: str) -> Any:
    if attr_name in _BOOL_FIELDS:
        return raw.strip().lower() in ("true", "1", "yes")
    if attr_name in _INT_FIELDS:
        return int(raw)
    if attr_name in _FLOAT_FIELDS or attr_name in _OPTIONAL_FLOAT_FIELDS:
        return float(raw)
    return raw.strip()


class PlanningSettings:
    """
    Singleton para a configuração de planeamento.

    Carrega configuração de variáveis de ambiente ou usa defaults.

    Uso:
        config = PlanningSettings.get_config()
        PlanningSettings.set_value("service_level", "0.99")
        PlanningSettings.reset()
    """

    _instance: Optional[PlanningConfig] = None

    @classmethod
    def _load_from_env(cls, env_file: Optional[str] = None) -> PlanningConfig:
        """Carrega configuração de variáveis de ambiente (e .env, se existir)."""
        load_dotenv(dotenv_path=env_file)
        config = PlanningConfig()

        fields = _FLOAT_FIELDS + _OPTIONAL_FLOAT_FIELDS + _INT_FIELDS + _BOOL_FIELDS + _STR_FIELDS
        for attr_name in fields:
            env_var = f"{_ENV_PREFIX}{attr_name.upper()}"
            value = os.environ.get(env_var)
            if not value:
                continue
            try:
                setattr(config, attr_name, _coerce(attr_name, value))
                logger.info(f"Planning setting {attr_name} = {value}")
            except ValueError:
                logger.warning(f"Invalid value for {env_var}: {value}")

        return config

    @classmethod
    def get_config(cls, env_file: Optional[str] = None) -> PlanningConfig:
        """Obtém configuração atual."""
        if cls._instance is None:
            cls._instance = cls._load_from_env(env_file)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset para recarregar config."""
        cls._instance = None

    @classmethod
    def set_value(cls, attr_name: str, value: str) -> bool:
        """
        Define um parâmetro em runtime (para testes).

        Returns:
            True se sucesso
        """
        config = cls.get_config()
        if not hasattr(config, attr_name):
            logger.warning(f"Unknown planning setting: {attr_name}")
            return False
        try:
            setattr(config, attr_name, _coerce(attr_name, value))
            logger.info(f"Planning setting {attr_name} set to {value}")
            return True
        except ValueError:
            logger.warning(f"Invalid value {value} for {attr_name}")
            return False

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Exporta configuração como dict."""
        return cls.get_config().to_dict()
