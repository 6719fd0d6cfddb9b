"""
StockWise - Forecast Evaluator
==============================

Avalia todos os métodos candidatos contra o histórico, escolhe o melhor e
projeta o horizonte com banda de confiança.

Métricas (actual a_i vs fitted f_i, excluindo o primeiro ponto):
    MAPE  = mean(|a - f| / a) * 100            (só períodos com a != 0)
    WAPE  = Σ|a - f| / Σ|a| * 100              (0 se Σ|a| = 0)
    SMAPE = mean(2|a - f| / (|a| + |f|)) * 100 (ignora períodos com a = f = 0)

Seleção: menor WAPE → MAPE → SMAPE → +inf; empates ficam com o primeiro método
na ordem de entrada.

A projeção repete o último valor ajustado do método escolhido (forecast plano).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import numpy as np

from .demand_processor import extract_demand_values, normalize_demand_series
from .forecast_methods import generate_fitted
from .models import (
    DemandSeries,
    Forecast,
    ForecastError,
    ForecastMethod,
    ForecastPeriod,
    ForecastPoint,
)

logger = logging.getLogger(__name__)

DEFAULT_METHODS: List[ForecastMethod] = [
    ForecastMethod.SMA,
    ForecastMethod.SES,
    ForecastMethod.HOLT,
    ForecastMethod.SEASONAL,
    ForecastMethod.CROSTON,
    ForecastMethod.TSB,
]

DEFAULT_BAND_ERROR_PCT = 20.0
DEFAULT_HORIZON = 14

_PERIOD_DELTA = {
    ForecastPeriod.DAY: timedelta(days=1),
    ForecastPeriod.WEEK: timedelta(weeks=1),
}


@dataclass
class ForecastEvaluation:
    """Resultado da avaliação de um método."""
    method: ForecastMethod
    error: ForecastError
    series: List[float] = field(default_factory=list)

    @property
    def score(self) -> float:
        for value in (self.error.wape, self.error.mape, self.error.smape):
            if value is not None:
                return value
        return float("inf")


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR METRICS
# ═══════════════════════════════════════════════════════════════════════════════

def _aligned(actual: Sequence[float], forecast: Sequence[float]):
    a = np.asarray(actual, dtype=float)
    f = np.zeros_like(a)
    n = min(len(forecast), a.size)
    f[:n] = np.asarray(forecast[:n], dtype=float)
    return a, f


def compute_mape(actual: Sequence[float], forecast: Sequence[float]) -> Optional[float]:
    """MAPE (%) sobre períodos com procura; None se não houver nenhum."""
    a, f = _aligned(actual, forecast)
    mask = a != 0
    if not mask.any():
        return None
    return float(np.mean(np.abs((a[mask] - f[mask]) / a[mask])) * 100)


def compute_wape(actual: Sequence[float], forecast: Sequence[float]) -> float:
    """WAPE (%); tolera períodos de procura zero."""
    a, f = _aligned(actual, forecast)
    denominator = float(np.abs(a).sum())
    if denominator == 0:
        return 0.0
    return float(np.abs(a - f).sum() / denominator * 100)


def compute_smape(actual: Sequence[float], forecast: Sequence[float]) -> float:
    """SMAPE (%); períodos com real e forecast a zero contam como erro zero."""
    a, f = _aligned(actual, forecast)
    denom = np.abs(a) + np.abs(f)
    mask = denom != 0
    if not mask.any():
        return 0.0
    return float(np.sum(2 * np.abs(a[mask] - f[mask]) / denom[mask]) / a.size * 100)


# ═══════════════════════════════════════════════════════════════════════════════
# EVALUATION & SELECTION
# ═══════════════════════════════════════════════════════════════════════════════

def evaluate_forecasts(
    demand: DemandSeries,
    methods: Optional[Sequence[ForecastMethod]] = None,
    z: float = 3.0,
    uplift_pct: float = 0.2,
) -> List[ForecastEvaluation]:
    """
    Avalia cada método sobre o histórico normalizado.

    O valor ajustado no índice i é comparado com a procura real em i+1.
    """
    methods = list(methods) if methods is not None else list(DEFAULT_METHODS)
    normalized = normalize_demand_series(demand, z, uplift_pct)
    values = extract_demand_values(normalized)
    actual = values[1:]

    evaluations: List[ForecastEvaluation] = []
    for method in methods:
        method = ForecastMethod(method)
        series = generate_fitted(method, values)
        fitted = series[:len(actual)]
        error = ForecastError(
            mape=compute_mape(actual, fitted),
            wape=compute_wape(actual, fitted),
            smape=compute_smape(actual, fitted),
        )
        evaluations.append(ForecastEvaluation(method=method, error=error, series=series))
        logger.debug(f"{demand.sku_id}@{demand.location_id} {method.value}: WAPE={error.wape:.2f}")

    return evaluations


def pick_best_forecast(evaluations: Sequence[ForecastEvaluation]) -> Optional[ForecastEvaluation]:
    """Menor score; em empate mantém o primeiro."""
    best: Optional[ForecastEvaluation] = None
    for current in evaluations:
        if best is None or current.score < best.score:
            best = current
    return best


# ═══════════════════════════════════════════════════════════════════════════════
# PROJECTION
# ═══════════════════════════════════════════════════════════════════════════════

def build_confidence_band(
    forecast: Sequence[float],
    error_pct: float = DEFAULT_BAND_ERROR_PCT,
) -> tuple:
    """
    Banda simétrica em torno do forecast.

    Returns:
        (low, high) com low = max(f·(1-e), 0) e high = f·(1+e)
    """
    factor = error_pct / 100
    low = [max(value * (1 - factor), 0.0) for value in forecast]
    high = [value * (1 + factor) for value in forecast]
    return low, high


def _projection_start(demand: DemandSeries, now: Optional[datetime]) -> datetime:
    if demand.points:
        return demand.points[-1].at
    return now or datetime.now(timezone.utc)


def build_forecast(
    demand: DemandSeries,
    method: ForecastMethod,
    horizon: int = DEFAULT_HORIZON,
    error_pct: float = DEFAULT_BAND_ERROR_PCT,
    period: ForecastPeriod = ForecastPeriod.DAY,
    z: float = 3.0,
    uplift_pct: float = 0.2,
    now: Optional[datetime] = None,
) -> Forecast:
    """
    Projeta o horizonte repetindo o último valor ajustado do método.

    As datas começam um período depois do último ponto de procura.
    """
    method = ForecastMethod(method)
    normalized = normalize_demand_series(demand, z, uplift_pct)
    series = generate_fitted(method, extract_demand_values(normalized))
    anchor = series[-1] if series else 0.0
    projection = [anchor] * horizon
    low, high = build_confidence_band(projection, error_pct)

    start = _projection_start(demand, now)
    step = _PERIOD_DELTA[period]
    values = [
        ForecastPoint(at=start + step * (index + 1), mean=mean, low=low[index], high=high[index])
        for index, mean in enumerate(projection)
    ]

    return Forecast(
        sku_id=demand.sku_id,
        location_id=demand.location_id,
        method=method,
        horizon=horizon,
        period=period,
        values=values,
    )


def create_forecast_summary(
    demand: DemandSeries,
    methods: Optional[Sequence[ForecastMethod]] = None,
    horizon: int = DEFAULT_HORIZON,
    error_pct: Optional[float] = None,
    band_from_error: bool = False,
    period: ForecastPeriod = ForecastPeriod.DAY,
    z: float = 3.0,
    uplift_pct: float = 0.2,
    now: Optional[datetime] = None,
) -> Forecast:
    """
    Avalia → escolhe → projeta → anexa o erro do vencedor.

    Args:
        error_pct: Largura explícita da banda (%); tem prioridade
        band_from_error: Usar o WAPE (ou MAPE) do vencedor como largura da banda
    """
    evaluations = evaluate_forecasts(demand, methods, z, uplift_pct)
    best = pick_best_forecast(evaluations)
    if best is None:
        best = ForecastEvaluation(method=ForecastMethod.SMA, error=ForecastError())

    width = DEFAULT_BAND_ERROR_PCT
    if error_pct is not None:
        width = error_pct
    elif band_from_error:
        measured = best.error.wape if best.error.wape is not None else best.error.mape
        if measured is not None:
            width = measured

    forecast = build_forecast(
        demand, best.method, horizon, width, period, z, uplift_pct, now,
    )
    forecast.error = best.error
    logger.info(
        f"Forecast {demand.sku_id}@{demand.location_id}: {best.method.value} "
        f"(WAPE={best.error.wape}), horizon={horizon}"
    )
    return forecast
