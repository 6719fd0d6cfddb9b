"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    EXCEPTION ENGINE (Feed de Exceções Priorizado)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Este módulo converte snapshots, forecasts e estatísticas de lead time em exceções.

Categorias (por ordem de prioridade):
─────────────────────────────────────
    BELOW_SAFETY → UNDER_ROP → STOCKOUT_RISK → SUPPLIER_DELAY →
    INTERMITTENT_DEMAND → FORECAST_ERROR_HIGH → KIT_BLOCKED → LEAD_TIME_SPIKE

Severidade por défice relativo:
    δ > 0.4 → HIGH, δ > 0.2 → MEDIUM, senão LOW

Risco de rutura (aproximação normal):
    P(D_L > coverage) = 1 - Φ((coverage - μ_d·L) / (σ_d·sqrt(L)))

Procura intermitente (Syntetos-Boylan):
    ADI = n_períodos / n_períodos_com_procura > 1.32
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd
from scipy.stats import norm

from .models import (
    DemandSeries,
    ExceptionAction,
    ExceptionBucket,
    Forecast,
    InventoryException,
    LeadTimeStats,
    Severity,
    StockSnapshot,
)

logger = logging.getLogger(__name__)

BUCKET_ORDER: List[ExceptionBucket] = [
    ExceptionBucket.BELOW_SAFETY,
    ExceptionBucket.UNDER_ROP,
    ExceptionBucket.STOCKOUT_RISK,
    ExceptionBucket.SUPPLIER_DELAY,
    ExceptionBucket.INTERMITTENT_DEMAND,
    ExceptionBucket.FORECAST_ERROR_HIGH,
    ExceptionBucket.KIT_BLOCKED,
    ExceptionBucket.LEAD_TIME_SPIKE,
]

SEVERITY_RANK: Dict[Severity, int] = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}

SYNTETOS_BOYLAN_ADI = 1.32


def severity_from_delta(delta: float) -> Severity:
    if delta > 0.4:
        return Severity.HIGH
    if delta > 0.2:
        return Severity.MEDIUM
    return Severity.LOW


def _now(detected_at: Optional[datetime]) -> datetime:
    return detected_at or datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════════
# DETECTORS
# ═══════════════════════════════════════════════════════════════════════════════

def detect_inventory_exceptions(
    snapshot: StockSnapshot,
    detected_at: Optional[datetime] = None,
) -> List[InventoryException]:
    """
    BELOW_SAFETY (severidade pelo défice relativo) e UNDER_ROP (MEDIUM).
    """
    detected_at = _now(detected_at)
    projected = snapshot.projected_coverage
    exceptions: List[InventoryException] = []

    if projected < snapshot.safety:
        delta = (snapshot.safety - projected) / max(snapshot.safety, 1)
        exceptions.append(InventoryException(
            id=f"{snapshot.sku_id}-{snapshot.location_id}-safety",
            sku_id=snapshot.sku_id,
            location_id=snapshot.location_id,
            bucket=ExceptionBucket.BELOW_SAFETY,
            severity=severity_from_delta(delta),
            message="Projected coverage below safety stock.",
            detected_at=detected_at,
            actions=[
                ExceptionAction(label="Raise Safety", action="adjust_safety"),
                ExceptionAction(label="Plan Reorder", action="open_replenishment"),
            ],
        ))

    if snapshot.reorder_point is not None and projected < snapshot.reorder_point:
        exceptions.append(InventoryException(
            id=f"{snapshot.sku_id}-{snapshot.location_id}-rop",
            sku_id=snapshot.sku_id,
            location_id=snapshot.location_id,
            bucket=ExceptionBucket.UNDER_ROP,
            severity=Severity.MEDIUM,
            message="Inventory under reorder point.",
            detected_at=detected_at,
            actions=[ExceptionAction(label="Create Proposal", action="open_replenishment")],
        ))

    return exceptions


def detect_forecast_exceptions(
    forecast: Forecast,
    threshold: float = 25,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """FORECAST_ERROR_HIGH quando o WAPE (ou MAPE) excede o limite."""
    error = forecast.error
    if error is None:
        return None
    value = error.wape if error.wape is not None else error.mape
    if value is None or value <= threshold:
        return None

    return InventoryException(
        id=f"{forecast.sku_id}-{forecast.location_id}-forecast",
        sku_id=forecast.sku_id,
        location_id=forecast.location_id,
        bucket=ExceptionBucket.FORECAST_ERROR_HIGH,
        severity=Severity.HIGH if value > 40 else Severity.MEDIUM,
        message=f"Forecast error {value:.1f}% exceeds threshold",
        detected_at=_now(detected_at),
        actions=[ExceptionAction(label="Change Method", action="switch_method")],
    )


def detect_lead_time_exceptions(
    stats: LeadTimeStats,
    latest_samples: Sequence[float],
    spike_threshold_pct: float = 0.25,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """LEAD_TIME_SPIKE quando a última amostra excede a mediana em mais do que o limite."""
    if len(latest_samples) == 0 or stats.median_days <= 0:
        return None
    latest = latest_samples[-1]
    delta = latest / stats.median_days - 1
    if delta <= spike_threshold_pct:
        return None

    return InventoryException(
        id=f"{stats.supplier_id}-{stats.sku_id or 'all'}-leadtime",
        supplier_id=stats.supplier_id,
        sku_id=stats.sku_id,
        location_id=stats.location_id,
        bucket=ExceptionBucket.LEAD_TIME_SPIKE,
        severity=severity_from_delta(delta),
        message=f"Lead time spiked to {latest:g} days (median {stats.median_days:g})",
        detected_at=_now(detected_at),
        actions=[
            ExceptionAction(label="Alert Supplier", action="notify_supplier"),
            ExceptionAction(label="Adjust Lead Time", action="adjust_leadtime"),
        ],
    )


def stockout_probability(
    projected_coverage: float,
    demand_mean: float,
    demand_std_dev: float,
    lead_time_days: float,
) -> float:
    """
    Probabilidade de a procura durante o lead time exceder a cobertura.

    Sem variabilidade o risco é binário.
    """
    horizon = max(lead_time_days, 1)
    mu = demand_mean * horizon
    sigma = demand_std_dev * math.sqrt(horizon)
    if mu <= 0:
        return 0.0
    if sigma <= 0:
        return 1.0 if mu > projected_coverage else 0.0
    return float(norm.sf(projected_coverage, loc=mu, scale=sigma))


def detect_stockout_risk_exceptions(
    snapshot: StockSnapshot,
    demand_mean: float,
    demand_std_dev: float,
    lead_time_days: float,
    threshold: float = 0.5,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """STOCKOUT_RISK quando P(rutura durante o lead time) ≥ limite."""
    risk = stockout_probability(snapshot.projected_coverage, demand_mean, demand_std_dev, lead_time_days)
    if risk < threshold:
        return None

    return InventoryException(
        id=f"{snapshot.sku_id}-{snapshot.location_id}-stockout",
        sku_id=snapshot.sku_id,
        location_id=snapshot.location_id,
        bucket=ExceptionBucket.STOCKOUT_RISK,
        severity=Severity.HIGH if risk >= 0.8 else Severity.MEDIUM,
        message=f"Stockout risk {risk * 100:.0f}% within {lead_time_days:g} days lead time",
        detected_at=_now(detected_at),
        actions=[
            ExceptionAction(label="Expedite Order", action="open_replenishment"),
            ExceptionAction(label="Request Transfer", action="open_balancer"),
        ],
    )


def average_demand_interval(values: Sequence[float]) -> float:
    """ADI = períodos / períodos com procura (inf sem procura)."""
    occurrences = sum(1 for v in values if v > 0)
    if occurrences == 0:
        return math.inf
    return len(values) / occurrences


def detect_intermittent_demand_exceptions(
    series: DemandSeries,
    adi_threshold: float = SYNTETOS_BOYLAN_ADI,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """INTERMITTENT_DEMAND quando o ADI excede o corte de Syntetos-Boylan."""
    values = series.values()
    if len(values) == 0:
        return None
    adi = average_demand_interval(values)
    if adi <= adi_threshold:
        return None

    adi_label = "no demand" if math.isinf(adi) else f"ADI {adi:.2f}"
    return InventoryException(
        id=f"{series.sku_id}-{series.location_id}-intermittent",
        sku_id=series.sku_id,
        location_id=series.location_id,
        bucket=ExceptionBucket.INTERMITTENT_DEMAND,
        severity=Severity.LOW,
        message=f"Intermittent demand ({adi_label}); prefer Croston or TSB",
        detected_at=_now(detected_at),
        actions=[ExceptionAction(label="Change Method", action="switch_method")],
    )


def detect_supplier_delay_exceptions(
    stats: LeadTimeStats,
    min_on_time_pct: float = 85,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """SUPPLIER_DELAY quando a pontualidade do fornecedor fica abaixo do alvo."""
    if stats.on_time_pct >= min_on_time_pct:
        return None
    gap = (min_on_time_pct - stats.on_time_pct) / max(min_on_time_pct, 1)
    return InventoryException(
        id=f"{stats.supplier_id}-{stats.sku_id or 'all'}-delay",
        supplier_id=stats.supplier_id,
        sku_id=stats.sku_id,
        location_id=stats.location_id,
        bucket=ExceptionBucket.SUPPLIER_DELAY,
        severity=severity_from_delta(gap),
        message=f"Supplier on-time {stats.on_time_pct:g}% below target {min_on_time_pct:g}%",
        detected_at=_now(detected_at),
        actions=[ExceptionAction(label="Alert Supplier", action="notify_supplier")],
    )


# ═══════════════════════════════════════════════════════════════════════════════
# FEED
# ═══════════════════════════════════════════════════════════════════════════════

def deduplicate_exceptions(exceptions: Iterable[InventoryException]) -> List[InventoryException]:
    """Uma exceção por id: fica a mais severa e, em empate, a mais recente."""
    kept: Dict[str, InventoryException] = {}
    for exc in exceptions:
        current = kept.get(exc.id)
        if current is None:
            kept[exc.id] = exc
            continue
        candidate_key = (SEVERITY_RANK[exc.severity], -exc.detected_at.timestamp())
        current_key = (SEVERITY_RANK[current.severity], -current.detected_at.timestamp())
        if candidate_key < current_key:
            kept[exc.id] = exc
    return list(kept.values())


def sort_exceptions(exceptions: Iterable[InventoryException]) -> List[InventoryException]:
    """Ordena por categoria, depois severidade, depois deteção mais recente (estável)."""
    return sorted(
        exceptions,
        key=lambda exc: (
            BUCKET_ORDER.index(exc.bucket),
            SEVERITY_RANK[exc.severity],
            -exc.detected_at.timestamp(),
        ),
    )


def exceptions_to_frame(exceptions: Sequence[InventoryException]) -> pd.DataFrame:
    """Feed de exceções como DataFrame."""
    columns = ["id", "bucket", "severity", "sku_id", "location_id", "supplier_id", "message", "detected_at"]
    rows = [
        {
            "id": exc.id,
            "bucket": exc.bucket.value,
            "severity": exc.severity.value,
            "sku_id": exc.sku_id,
            "location_id": exc.location_id,
            "supplier_id": exc.supplier_id,
            "message": exc.message,
            "detected_at": exc.detected_at,
        }
        for exc in exceptions
    ]
    return pd.DataFrame(rows, columns=columns)
