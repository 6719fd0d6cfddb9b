"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    DEMAND PROCESSOR (Limpeza do Histórico de Procura)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Este módulo normaliza o histórico de procura antes do forecasting.

Mathematical Formulation:
─────────────────────────
    Corte de outliers (apenas pontos não-PROMO):
        z_i = (q_i - μ) / σ          σ = desvio padrão amostral (n-1)
        se |z_i| > z:
            q_i' = max(μ + sign(z_i) * z * σ, 0)

    Uplift promocional (apenas pontos PROMO):
        q_i' = round(q_i * (1 + uplift))

    Normalização = corte de outliers → uplift promocional (por esta ordem)

Os picos promocionais são sinal legítimo: os pontos PROMO nunca são cortados,
mesmo quando são eles os outliers.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np

from .models import DemandPoint, DemandSeries
from .numeric import round_half_up

logger = logging.getLogger(__name__)


def _mean_and_sample_std(values: Sequence[float]) -> Tuple[float, float]:
    """Média e desvio padrão amostral; um único ponto tem desvio 0."""
    if len(values) == 0:
        return 0.0, 0.0
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    if arr.size < 2:
        return mean, 0.0
    return mean, float(arr.std(ddof=1))


def trim_outliers(points: List[DemandPoint], z: float = 3.0) -> List[DemandPoint]:
    """
    Corta outliers não promocionais para o limite μ ± z·σ.

    Args:
        points: Pontos de procura (ordem cronológica)
        z: Limite de z-score

    Returns:
        Nova lista; pontos inalterados são devolvidos tal como vieram
    """
    if not points:
        return list(points)

    mean, sd = _mean_and_sample_std([point.qty for point in points])
    if sd == 0:
        return list(points)

    trimmed: List[DemandPoint] = []
    for point in points:
        if point.is_promo:
            trimmed.append(point)
            continue
        z_score = (point.qty - mean) / sd
        if abs(z_score) <= z:
            trimmed.append(point)
            continue
        clamped = max(mean + float(np.sign(z_score)) * z * sd, 0.0)
        logger.debug(f"Outlier em {point.at}: {point.qty} -> {clamped:.2f} (z={z_score:.2f})")
        trimmed.append(replace(point, qty=clamped))

    return trimmed


def apply_promo_uplift(points: List[DemandPoint], uplift_pct: float = 0.2) -> List[DemandPoint]:
    """Aplica uplift aos pontos PROMO (arredondado ao inteiro)."""
    return [
        replace(point, qty=round_half_up(point.qty * (1 + uplift_pct))) if point.is_promo else point
        for point in points
    ]


def normalize_demand_series(
    series: DemandSeries,
    z: float = 3.0,
    uplift_pct: float = 0.2,
) -> DemandSeries:
    """Corte de outliers seguido de uplift promocional."""
    trimmed = trim_outliers(series.points, z)
    uplifted = apply_promo_uplift(trimmed, uplift_pct)
    return DemandSeries(sku_id=series.sku_id, location_id=series.location_id, points=uplifted)


def extract_demand_values(series: DemandSeries) -> List[float]:
    return series.values()


def demand_statistics(values: Sequence[float]) -> Tuple[float, float]:
    """
    Média e desvio padrão amostral da procura por período.

    Usado para alimentar safety stock / ROP. Série vazia → (0, 0).
    """
    return _mean_and_sample_std(values)
