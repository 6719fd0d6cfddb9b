"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    INVENTORY INTELLIGENCE - DATA MODEL
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Objetos de valor partilhados por todos os motores (procura, forecast, reposição,
kits, transferências e exceções).

Invariante central:
───────────────────
    projected_coverage = on_hand + on_order - allocated

Todos os registos expõem to_dict() para serialização estruturada (datas em ISO-8601).
O core nunca persiste estes objetos: são recalculados a cada passo de planeamento.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class DemandTag(str, Enum):
    """Marcação de um ponto de procura."""
    PROMO = "PROMO"
    OUTLIER = "OUTLIER"


class ForecastMethod(str, Enum):
    """Métodos de forecast disponíveis (ordem = ordem de avaliação por omissão)."""
    SMA = "SMA"            # Simple Moving Average
    SES = "SES"            # Single Exponential Smoothing
    HOLT = "HOLT"          # Holt (nível + tendência)
    SEASONAL = "SEASONAL"  # Seasonal naive
    CROSTON = "CROSTON"    # Procura intermitente
    TSB = "TSB"            # Teunter-Syntetos-Babai


class ForecastPeriod(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"


class ReorderReason(str, Enum):
    BELOW_SAFETY = "BELOW_SAFETY"
    UNDER_ROP = "UNDER_ROP"
    KIT_COMPONENT = "KIT_COMPONENT"
    TRANSFER_ALT = "TRANSFER_ALT"


class ReplenishmentMethod(str, Enum):
    EOQ = "EOQ"
    MINMAX = "MINMAX"
    ROP = "ROP"
    PERIODIC_REVIEW = "PERIODIC_REVIEW"


class ProposalStatus(str, Enum):
    """Estados de uma proposta. O core só cria DRAFT."""
    DRAFT = "DRAFT"
    READY = "READY"
    CONFIRMED = "CONFIRMED"
    PO_CREATED = "PO_CREATED"


class TransferStatus(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"


class ExceptionBucket(str, Enum):
    """Conjunto fechado de categorias de exceção."""
    BELOW_SAFETY = "BELOW_SAFETY"
    UNDER_ROP = "UNDER_ROP"
    STOCKOUT_RISK = "STOCKOUT_RISK"
    SUPPLIER_DELAY = "SUPPLIER_DELAY"
    INTERMITTENT_DEMAND = "INTERMITTENT_DEMAND"
    FORECAST_ERROR_HIGH = "FORECAST_ERROR_HIGH"
    KIT_BLOCKED = "KIT_BLOCKED"
    LEAD_TIME_SPIKE = "LEAD_TIME_SPIKE"


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# ═══════════════════════════════════════════════════════════════════════════════
# DEMAND
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DemandPoint:
    """Procura observada num período."""
    at: datetime
    qty: float
    tag: Optional[DemandTag] = None

    @property
    def is_promo(self) -> bool:
        return self.tag == DemandTag.PROMO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "at": _iso(self.at),
            "qty": self.qty,
            "tag": self.tag.value if self.tag else None,
        }


@dataclass
class DemandSeries:
    """
    Histórico de procura de um SKU numa localização.

    Os pontos vêm ordenados cronologicamente; não há garantia de preenchimento de lacunas.
    """
    sku_id: str
    location_id: str
    points: List[DemandPoint] = field(default_factory=list)

    def values(self) -> List[float]:
        return [point.qty for point in self.points]

    def to_series(self) -> pd.Series:
        """Retorna o histórico como Series (index: datetime)."""
        return pd.Series(
            self.values(),
            index=pd.DatetimeIndex([point.at for point in self.points]),
            name=f"{self.sku_id}@{self.location_id}",
            dtype=float,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku_id": self.sku_id,
            "location_id": self.location_id,
            "points": [point.to_dict() for point in self.points],
        }


# ═══════════════════════════════════════════════════════════════════════════════
# FORECAST
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ForecastError:
    """Resumo de erro de um método (percentagens)."""
    mape: Optional[float] = None
    wape: Optional[float] = None
    smape: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"mape": self.mape, "wape": self.wape, "smape": self.smape}


@dataclass
class ForecastPoint:
    at: datetime
    mean: float
    low: Optional[float] = None
    high: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"at": _iso(self.at), "mean": self.mean, "low": self.low, "high": self.high}


@dataclass
class Forecast:
    """
    Forecast efémero de um SKU/localização.

    Attributes:
        sku_id: SKU previsto
        location_id: Localização
        method: Método escolhido
        horizon: Número de períodos projetados
        period: Unidade do período
        values: Pontos projetados com banda de confiança
        error: Resumo de erro do método vencedor
    """
    sku_id: str
    location_id: str
    method: ForecastMethod
    horizon: int
    period: ForecastPeriod = ForecastPeriod.DAY
    values: List[ForecastPoint] = field(default_factory=list)
    error: Optional[ForecastError] = None

    def get_series(self) -> pd.Series:
        """Retorna forecast como Series."""
        return pd.Series(
            [point.mean for point in self.values],
            index=pd.DatetimeIndex([point.at for point in self.values]),
            dtype=float,
        )

    def get_total(self) -> float:
        """Retorna soma total do forecast."""
        return float(sum(point.mean for point in self.values))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku_id": self.sku_id,
            "location_id": self.location_id,
            "method": self.method.value,
            "horizon": self.horizon,
            "period": self.period.value,
            "values": [point.to_dict() for point in self.values],
            "error": self.error.to_dict() if self.error else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# MASTER DATA & STOCK
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Money:
    currency: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"currency": self.currency, "value": self.value}


@dataclass
class Location:
    """Localização (loja/armazém). Prioridade menor = servida primeiro como dadora."""
    id: str
    name: str = ""
    priority: Optional[int] = None


@dataclass
class BOMLine:
    child_sku_id: str
    qty_per_kit: float


@dataclass
class SKU:
    """
    Dados mestre de um SKU.

    Attributes:
        id: Identificador
        supplier_id: Fornecedor principal
        unit_cost: Custo unitário
        holding_cost_pct_yr: Custo de posse anual (fração do custo unitário)
        order_cost: Custo fixo por encomenda
        moq: Quantidade mínima de encomenda
        lot_size: Múltiplo de encomenda
        is_kit: Se é um kit montado a partir da BOM
        bom: Lista de componentes do kit
    """
    id: str
    name: str = ""
    supplier_id: Optional[str] = None
    unit_cost: Optional[Money] = None
    holding_cost_pct_yr: Optional[float] = None
    order_cost: Optional[Money] = None
    moq: Optional[float] = None
    lot_size: Optional[float] = None
    is_kit: bool = False
    bom: List[BOMLine] = field(default_factory=list)


@dataclass
class StockSnapshot:
    """Posição de stock lida do ledger de inventário (só leitura)."""
    sku_id: str
    location_id: str
    on_hand: float
    on_order: float = 0.0
    allocated: float = 0.0
    safety: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    reorder_point: Optional[float] = None

    @property
    def projected_coverage(self) -> float:
        return self.on_hand + self.on_order - self.allocated

    @property
    def available(self) -> float:
        return self.on_hand - self.allocated

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku_id": self.sku_id,
            "location_id": self.location_id,
            "on_hand": self.on_hand,
            "on_order": self.on_order,
            "allocated": self.allocated,
            "safety": self.safety,
            "min": self.min,
            "max": self.max,
            "reorder_point": self.reorder_point,
            "projected_coverage": self.projected_coverage,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# REPLENISHMENT
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ReorderCalc:
    """Detalhe do cálculo de uma linha."""
    eoq: Optional[float] = None
    rop: Optional[float] = None
    safety: Optional[float] = None
    lead_time_days: Optional[float] = None
    service_level: Optional[float] = None
    target_level: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "eoq": self.eoq,
            "rop": self.rop,
            "safety": self.safety,
            "lead_time_days": self.lead_time_days,
            "service_level": self.service_level,
            "target_level": self.target_level,
        }


@dataclass
class ReorderLine:
    sku_id: str
    qty: float
    reason: ReorderReason
    method: ReplenishmentMethod
    calc: ReorderCalc = field(default_factory=ReorderCalc)
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sku_id": self.sku_id,
            "qty": self.qty,
            "reason": self.reason.value,
            "method": self.method.value,
            "calc": self.calc.to_dict(),
            "notes": self.notes,
        }


@dataclass
class ProposalTotals:
    """
    Totais de uma proposta.

    total_qty é a soma crua das quantidades; est_cost é monetário quando há custos
    unitários (ver group_proposals_by_supplier).
    """
    line_count: int
    total_qty: float
    est_cost: Money

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_count": self.line_count,
            "total_qty": self.total_qty,
            "est_cost": self.est_cost.to_dict(),
        }


@dataclass
class ReorderProposal:
    id: str
    supplier_id: str
    location_id: str
    lines: List[ReorderLine]
    totals: ProposalTotals
    created_at: datetime
    status: ProposalStatus = ProposalStatus.DRAFT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "location_id": self.location_id,
            "lines": [line.to_dict() for line in self.lines],
            "totals": self.totals.to_dict(),
            "created_at": _iso(self.created_at),
            "status": self.status.value,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSFERS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class TransferLine:
    sku_id: str
    qty: float


@dataclass
class TransferPlan:
    id: str
    from_location_id: str
    to_location_id: str
    lines: List[TransferLine]
    lead_time_days: Optional[float] = None
    transfer_cost: Optional[Money] = None
    status: TransferStatus = TransferStatus.DRAFT

    @property
    def total_qty(self) -> float:
        return sum(line.qty for line in self.lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "from_location_id": self.from_location_id,
            "to_location_id": self.to_location_id,
            "lines": [{"sku_id": line.sku_id, "qty": line.qty} for line in self.lines],
            "lead_time_days": self.lead_time_days,
            "transfer_cost": self.transfer_cost.to_dict() if self.transfer_cost else None,
            "status": self.status.value,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# LEAD TIME
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class LeadTimeStats:
    supplier_id: str
    median_days: float
    p95_days: float
    on_time_pct: float
    sku_id: Optional[str] = None
    location_id: Optional[str] = None
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "sku_id": self.sku_id,
            "location_id": self.location_id,
            "median_days": self.median_days,
            "p95_days": self.p95_days,
            "on_time_pct": self.on_time_pct,
            "last_updated": _iso(self.last_updated),
        }


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ExceptionAction:
    label: str
    action: str


@dataclass
class InventoryException:
    """
    Exceção derivada (nunca persistida pelo core).

    Attributes:
        id: Chave determinística (usada na deduplicação)
        bucket: Categoria
        severity: Severidade
        message: Mensagem legível
        detected_at: Momento da deteção
        actions: Ações sugeridas
    """
    id: str
    bucket: ExceptionBucket
    severity: Severity
    message: str
    detected_at: datetime
    sku_id: Optional[str] = None
    location_id: Optional[str] = None
    supplier_id: Optional[str] = None
    actions: List[ExceptionAction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sku_id": self.sku_id,
            "location_id": self.location_id,
            "supplier_id": self.supplier_id,
            "bucket": self.bucket.value,
            "severity": self.severity.value,
            "message": self.message,
            "detected_at": _iso(self.detected_at),
            "actions": [{"label": a.label, "action": a.action} for a in self.actions],
        }
