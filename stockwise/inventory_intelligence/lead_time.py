"""
StockWise - Lead Time Analyzer
==============================

Estatísticas de lead time por fornecedor a partir de amostras históricas (dias).

    median = mediana das amostras (arredondada)
    p95    = percentil 95 por nearest-rank (arredondado)
    on_time_pct = % de amostras ≤ limite (por omissão a mediana)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .models import LeadTimeStats
from .numeric import round_half_up, safe_divide

logger = logging.getLogger(__name__)

DEFAULT_SCORE_WEIGHTS: Dict[str, float] = {
    "delivery": 0.5,
    "cost": 0.2,
    "quality": 0.2,
    "communications": 0.1,
}


def _median(samples: Sequence[float]) -> float:
    if len(samples) == 0:
        return 0.0
    return float(np.median(np.asarray(samples, dtype=float)))


def _percentile(samples: Sequence[float], pct: float) -> float:
    if len(samples) == 0:
        return 0.0
    return float(np.percentile(np.asarray(samples, dtype=float), pct, method="inverted_cdf"))


def calculate_lead_time_stats(
    samples: Sequence[float],
    on_time_threshold: Optional[float] = None,
) -> Tuple[int, int, int]:
    """
    Returns:
        (median_days, p95_days, on_time_pct)
    """
    median_days = round_half_up(_median(samples))
    p95_days = round_half_up(_percentile(samples, 95))
    threshold = on_time_threshold if on_time_threshold is not None else median_days
    on_time = sum(1 for sample in samples if sample <= threshold)
    on_time_pct = round_half_up(safe_divide(on_time, len(samples)) * 100)
    return median_days, p95_days, on_time_pct


def build_lead_time_stats(
    supplier_id: str,
    samples: Sequence[float],
    sku_id: Optional[str] = None,
    location_id: Optional[str] = None,
    on_time_threshold: Optional[float] = None,
    last_updated: Optional[datetime] = None,
) -> LeadTimeStats:
    median_days, p95_days, on_time_pct = calculate_lead_time_stats(samples, on_time_threshold)
    return LeadTimeStats(
        supplier_id=supplier_id,
        sku_id=sku_id,
        location_id=location_id,
        median_days=median_days,
        p95_days=p95_days,
        on_time_pct=on_time_pct,
        last_updated=last_updated,
    )


def detect_lead_time_spike(
    samples: Sequence[float],
    baseline_median: float,
    spike_threshold_pct: float = 0.35,
) -> bool:
    """True quando a amostra mais recente excede a mediana base em mais do que o limite."""
    if len(samples) == 0:
        return False
    return samples[-1] > baseline_median * (1 + spike_threshold_pct)


def update_lead_time_score(
    current: LeadTimeStats,
    samples: Sequence[float],
    weightings: Optional[Dict[str, float]] = None,
) -> int:
    """
    Score composto do fornecedor (0..100).

    Entrega penaliza o aumento da mediana (até 30 pontos); pontualidade é medida
    contra o p95 atual.
    """
    weightings = weightings or DEFAULT_SCORE_WEIGHTS
    median_days, _, on_time_pct = calculate_lead_time_stats(samples, current.p95_days)
    delivery_score = 100 - min(median_days - current.median_days, 30)
    composite = (
        delivery_score * weightings.get("delivery", 0.0)
        + on_time_pct * (weightings.get("quality", 0.0) + weightings.get("communications", 0.0))
    )
    return round_half_up(max(min(composite, 100), 0))


def lead_time_demand_parameters(samples: Sequence[float]) -> Tuple[float, float]:
    """Média e desvio padrão amostral do lead time (0, 0 sem amostras)."""
    if len(samples) == 0:
        return 0.0, 0.0
    arr = np.asarray(samples, dtype=float)
    if arr.size < 2:
        return float(arr.mean()), 0.0
    return float(arr.mean()), float(arr.std(ddof=1))
