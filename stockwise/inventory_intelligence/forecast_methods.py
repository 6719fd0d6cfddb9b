"""
StockWise - Forecast Method Library
===================================

Six independent extrapolation methods over a plain numeric series.
Every method returns a fitted series with the same length as its input.

Methods:
- SMA: trailing simple moving average
- SES: single exponential smoothing
- HOLT: level + trend (double exponential smoothing)
- SEASONAL: seasonal naive
- CROSTON: intermittent demand (size / interval)
- TSB: Teunter-Syntetos-Babai (size * occurrence probability)

Mathematical Formulation:
─────────────────────────
    SES:     l_i = α·y_i + (1-α)·l_{i-1}
    Holt:    l_i = α·y_i + (1-α)·(l_{i-1} + b_{i-1})
             b_i = β·(l_i - l_{i-1}) + (1-β)·b_{i-1}
             ŷ_i = l_i + b_i
    Croston: ŷ_i = z_i / p_i       (z = smoothed size, p = smoothed interval)
    TSB:     ŷ_i = z_i · π_i       (π = smoothed occurrence probability)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

import numpy as np

from .models import ForecastMethod

logger = logging.getLogger(__name__)


class InvalidArgumentError(ValueError):
    """Raised when a method parameter violates its contract (window, season length)."""
    pass


@dataclass
class HoltResult:
    level: List[float] = field(default_factory=list)
    trend: List[float] = field(default_factory=list)
    forecast: List[float] = field(default_factory=list)


@dataclass
class CrostonResult:
    demand: List[float] = field(default_factory=list)
    interval: List[float] = field(default_factory=list)
    forecast: List[float] = field(default_factory=list)


@dataclass
class TSBResult:
    demand: List[float] = field(default_factory=list)
    probability: List[float] = field(default_factory=list)
    forecast: List[float] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# SMOOTHING METHODS
# ═══════════════════════════════════════════════════════════════════════════════

def simple_moving_average(values: Sequence[float], window: int = 3) -> List[float]:
    """
    Trailing mean of the last `window` observations.

    The first points average over whatever history exists so far.
    """
    if window <= 0:
        raise InvalidArgumentError(f"Window must be greater than 0, got {window}")
    if len(values) == 0:
        return []

    arr = np.asarray(values, dtype=float)
    return [
        float(arr[max(0, index - window + 1):index + 1].mean())
        for index in range(arr.size)
    ]


def single_exponential_smoothing(values: Sequence[float], alpha: float = 0.3) -> List[float]:
    if len(values) == 0:
        return []
    smoothed = [float(values[0])]
    for value in values[1:]:
        smoothed.append(alpha * value + (1 - alpha) * smoothed[-1])
    return smoothed


def holt_trend_smoothing(
    values: Sequence[float],
    alpha: float = 0.3,
    beta: float = 0.1,
) -> HoltResult:
    """Holt linear trend. forecast[0] is the first observation."""
    if len(values) == 0:
        return HoltResult()

    level = [float(values[0])]
    trend = [float(values[1] - values[0]) if len(values) > 1 else 0.0]
    forecast = [float(values[0])]

    for i in range(1, len(values)):
        last_level = level[i - 1]
        last_trend = trend[i - 1]
        current_level = alpha * values[i] + (1 - alpha) * (last_level + last_trend)
        current_trend = beta * (current_level - last_level) + (1 - beta) * last_trend
        level.append(current_level)
        trend.append(current_trend)
        forecast.append(current_level + current_trend)

    return HoltResult(level=level, trend=trend, forecast=forecast)


def seasonal_naive(values: Sequence[float], season_length: int) -> List[float]:
    """Value one season ago once available, else the observation itself."""
    if season_length <= 0:
        raise InvalidArgumentError(f"Season length must be positive, got {season_length}")
    return [
        float(values[i - season_length]) if i >= season_length else float(values[i])
        for i in range(len(values))
    ]


# ═══════════════════════════════════════════════════════════════════════════════
# INTERMITTENT DEMAND
# ═══════════════════════════════════════════════════════════════════════════════

def _first_nonzero(values: Sequence[float]) -> float:
    return next((float(v) for v in values if v > 0), 0.0)


def _first_interval(values: Sequence[float]) -> float:
    # 1-based position of the first demand; 1 when there is none
    return next((float(i + 1) for i, v in enumerate(values) if v > 0), 1.0)


def croston(values: Sequence[float], alpha: float = 0.3) -> CrostonResult:
    """
    Croston's method for intermittent demand.

    On a demand period both size and interval are smoothed (the interval toward 1);
    on a zero period the interval inflates by (1-α)·(interval+1).
    """
    if len(values) == 0:
        return CrostonResult()

    result = CrostonResult()
    last_demand = _first_nonzero(values)
    last_interval = _first_interval(values)

    for qty in values:
        if qty > 0:
            last_demand = alpha * qty + (1 - alpha) * last_demand
            last_interval = alpha * 1 + (1 - alpha) * last_interval
        else:
            last_interval = (1 - alpha) * (last_interval + 1)
        result.demand.append(last_demand)
        result.interval.append(last_interval)
        result.forecast.append(0.0 if last_interval == 0 else last_demand / last_interval)

    return result


def tsb(values: Sequence[float], alpha: float = 0.3, beta: float = 0.1) -> TSBResult:
    """
    Teunter-Syntetos-Babai.

    Probability is updated every period; size only when demand occurs.
    """
    if len(values) == 0:
        return TSBResult()

    result = TSBResult()
    last_demand = _first_nonzero(values)
    last_probability = sum(1 for v in values if v > 0) / len(values)

    for qty in values:
        occurred = 1.0 if qty > 0 else 0.0
        last_probability = beta * occurred + (1 - beta) * last_probability
        if occurred:
            last_demand = alpha * qty + (1 - alpha) * last_demand
        result.demand.append(last_demand)
        result.probability.append(last_probability)
        result.forecast.append(last_demand * last_probability)

    return result


# ═══════════════════════════════════════════════════════════════════════════════
# GENERATORS (parameterisation used by the evaluator)
# ═══════════════════════════════════════════════════════════════════════════════

METHOD_GENERATORS: Dict[ForecastMethod, Callable[[Sequence[float]], List[float]]] = {
    ForecastMethod.SMA: lambda values: simple_moving_average(values, 3),
    ForecastMethod.SES: lambda values: single_exponential_smoothing(values, 0.35),
    ForecastMethod.HOLT: lambda values: holt_trend_smoothing(values, 0.35, 0.2).forecast,
    ForecastMethod.SEASONAL: lambda values: seasonal_naive(values, max(min(len(values), 7), 1)),
    ForecastMethod.CROSTON: lambda values: croston(values).forecast,
    ForecastMethod.TSB: lambda values: tsb(values).forecast,
}


def generate_fitted(method: ForecastMethod, values: Sequence[float]) -> List[float]:
    """Fitted series of `method` over `values`."""
    return METHOD_GENERATORS[ForecastMethod(method)](values)
