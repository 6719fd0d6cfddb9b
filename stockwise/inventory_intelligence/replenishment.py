"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    REPLENISHMENT CALCULATOR (Safety Stock, ROP, EOQ, Políticas)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Este módulo calcula quantidades de reposição e agrupa as linhas em propostas por fornecedor.

Mathematical Formulation:
─────────────────────────
    Safety Stock:
        SS = round(z * σ_d * sqrt(max(L, 1)))

    Reorder Point:
        ROP = round(μ_d * L + SS)

    EOQ:
        Q* = ceil(sqrt(2 * D * S / H))  → múltiplo de lote → ≥ MOQ

    Min/Max:
        Q = max(max - coverage, 0)

    Revisão periódica (R, S):
        T = μ_d * (R + L) + z * σ_d * sqrt(R + L)
        Q = max(round(T - coverage), 0)

    onde:
        μ_d, σ_d = média e desvio da procura por período
        L = lead time (dias), R = período de revisão
        z = quantil do nível de serviço (tabela fixa, lookup por teto)
        coverage = on_hand + on_order - allocated
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .kit_engine import aggregate_requirements, explode_kit_demand
from .models import (
    SKU,
    Money,
    ProposalStatus,
    ProposalTotals,
    ReorderCalc,
    ReorderLine,
    ReorderProposal,
    ReorderReason,
    ReplenishmentMethod,
    StockSnapshot,
)
from .numeric import round_half_up

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE LEVEL
# ═══════════════════════════════════════════════════════════════════════════════

Z_TABLE: Dict[float, float] = {
    0.80: 0.8416,
    0.85: 1.0364,
    0.90: 1.2816,
    0.95: 1.6449,
    0.97: 1.8808,
    0.98: 2.0537,
    0.99: 2.3263,
    0.995: 2.5758,
}

DEFAULT_HOLDING_COST_PCT = 0.25


def get_service_level_z(service_level: float) -> float:
    """
    Obtém z-score para um nível de serviço.

    Escolhe o menor nível tabelado ≥ pedido; acima da tabela usa a última entrada.
    """
    for level in sorted(Z_TABLE):
        if service_level <= level:
            return Z_TABLE[level]
    return Z_TABLE[max(Z_TABLE)]


# ═══════════════════════════════════════════════════════════════════════════════
# CORE FORMULAS
# ═══════════════════════════════════════════════════════════════════════════════

def safety_stock(std_dev: float, lead_time_days: float, service_level: float = 0.95) -> int:
    z = get_service_level_z(service_level)
    sigma_l = std_dev * math.sqrt(max(lead_time_days, 1))
    return max(round_half_up(z * sigma_l), 0)


def reorder_point(
    mean_demand: float,
    lead_time_days: float,
    std_dev: float,
    service_level: float = 0.95,
) -> int:
    safety = safety_stock(std_dev, lead_time_days, service_level)
    return round_half_up(mean_demand * lead_time_days + safety)


def economic_order_quantity(
    annual_demand: float,
    order_cost: float,
    holding_cost_per_unit: float,
    moq: Optional[float] = None,
    lot_size: Optional[float] = None,
) -> float:
    """
    Economic Order Quantity com arredondamento a lote e MOQ.

    Returns:
        0 se procura, custo de encomenda ou custo de posse não forem positivos
    """
    if annual_demand <= 0 or order_cost <= 0 or holding_cost_per_unit <= 0:
        return 0

    raw = math.sqrt(2 * annual_demand * order_cost / holding_cost_per_unit)
    quantity = math.ceil(raw)
    if lot_size and lot_size > 0:
        quantity = math.ceil(quantity / lot_size) * lot_size
    if moq and moq > 0:
        quantity = max(quantity, moq)
    return quantity


# ═══════════════════════════════════════════════════════════════════════════════
# POLICIES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class PolicyResult:
    """
    Resultado de uma política de reposição.

    Attributes:
        method: MINMAX ou PERIODIC_REVIEW
        reorder_qty: Quantidade a encomendar
        safety: Safety stock (min/max)
        reorder_level: Nível de disparo (min/max)
        target_level: Nível alvo (max ou T da revisão periódica)
    """
    method: ReplenishmentMethod
    reorder_qty: float
    safety: Optional[float] = None
    reorder_level: Optional[float] = None
    target_level: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "reorder_qty": self.reorder_qty,
            "safety": self.safety,
            "reorder_level": self.reorder_level,
            "target_level": self.target_level,
        }


def min_max_policy(
    snapshot: StockSnapshot,
    demand_mean: float,
    demand_std_dev: float,
    lead_time_days: float,
) -> PolicyResult:
    """Política min/max a 95%. Sem max no snapshot usa (μ+σ)·(L+7)."""
    safety = safety_stock(demand_std_dev, lead_time_days, 0.95)
    if snapshot.max is not None:
        target_max = snapshot.max
    else:
        target_max = round_half_up((demand_mean + demand_std_dev) * (lead_time_days + 7))
    if snapshot.min is not None:
        reorder_level = snapshot.min
    else:
        reorder_level = reorder_point(demand_mean, lead_time_days, demand_std_dev, 0.95)

    deficit = target_max - snapshot.projected_coverage
    return PolicyResult(
        method=ReplenishmentMethod.MINMAX,
        reorder_qty=deficit if deficit > 0 else 0,
        safety=safety,
        reorder_level=reorder_level,
        target_level=target_max,
    )


def periodic_review_policy(
    snapshot: StockSnapshot,
    demand_mean: float,
    demand_std_dev: float,
    review_period_days: float,
    lead_time_days: float,
    service_level: float = 0.95,
) -> PolicyResult:
    total_coverage = review_period_days + lead_time_days
    z = get_service_level_z(service_level)
    sigma = demand_std_dev * math.sqrt(max(total_coverage, 0))
    target_level = demand_mean * total_coverage + z * sigma
    reorder_qty = max(round_half_up(target_level - snapshot.projected_coverage), 0)
    return PolicyResult(
        method=ReplenishmentMethod.PERIODIC_REVIEW,
        reorder_qty=reorder_qty,
        target_level=round_half_up(target_level),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# REORDER LINES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ProposalInput:
    """
    Entradas para uma linha de reposição.

    annual_demand, order_cost e holding_cost_per_unit são derivados do SKU quando omitidos:
        annual_demand = μ_d * 365
        order_cost = sku.order_cost
        holding_cost_per_unit = sku.unit_cost * sku.holding_cost_pct_yr (0.25 por omissão)
    """
    sku: SKU
    snapshot: StockSnapshot
    demand_mean: float
    demand_std_dev: float
    lead_time_days: float
    service_level: float = 0.95
    annual_demand: Optional[float] = None
    order_cost: Optional[float] = None
    holding_cost_per_unit: Optional[float] = None

    def resolved_annual_demand(self) -> float:
        if self.annual_demand is not None:
            return self.annual_demand
        return self.demand_mean * 365

    def resolved_order_cost(self) -> float:
        if self.order_cost is not None:
            return self.order_cost
        return self.sku.order_cost.value if self.sku.order_cost else 0.0

    def resolved_holding_cost(self) -> float:
        if self.holding_cost_per_unit is not None:
            return self.holding_cost_per_unit
        unit_cost = self.sku.unit_cost.value if self.sku.unit_cost else 0.0
        pct = self.sku.holding_cost_pct_yr
        return unit_cost * (pct if pct is not None else DEFAULT_HOLDING_COST_PCT)


def build_reorder_line(proposal_input: ProposalInput) -> Optional[ReorderLine]:
    """
    Calcula a linha de reposição (método ROP) de um SKU/localização.

    Quantidade = max(ROP + SS - coverage, 0), elevada ao EOQ quando este é maior.
    A razão é BELOW_SAFETY quando a cobertura está no ou abaixo do campo safety
    do snapshot (não do SS recalculado), senão UNDER_ROP.

    Returns:
        None quando não há necessidade e a cobertura excede o ROP
    """
    sku = proposal_input.sku
    snapshot = proposal_input.snapshot
    lead_time = proposal_input.lead_time_days
    service_level = proposal_input.service_level

    safety = safety_stock(proposal_input.demand_std_dev, lead_time, service_level)
    rop = reorder_point(proposal_input.demand_mean, lead_time, proposal_input.demand_std_dev, service_level)
    projected = snapshot.projected_coverage
    eoq = economic_order_quantity(
        proposal_input.resolved_annual_demand(),
        proposal_input.resolved_order_cost(),
        proposal_input.resolved_holding_cost(),
        moq=sku.moq,
        lot_size=sku.lot_size,
    )
    need = max(rop + safety - projected, 0)

    if need <= 0 and projected > rop:
        logger.debug(f"{sku.id}@{snapshot.location_id}: coverage {projected} > ROP {rop}, no line")
        return None

    below_safety = projected <= snapshot.safety
    return ReorderLine(
        sku_id=sku.id,
        qty=max(need, eoq or need),
        reason=ReorderReason.BELOW_SAFETY if below_safety else ReorderReason.UNDER_ROP,
        method=ReplenishmentMethod.ROP,
        calc=ReorderCalc(
            eoq=eoq,
            rop=rop,
            safety=safety,
            lead_time_days=lead_time,
            service_level=service_level,
        ),
        notes="Projected coverage below safety stock." if below_safety else None,
    )


def build_policy_line(
    sku: SKU,
    snapshot: StockSnapshot,
    policy: PolicyResult,
    lead_time_days: Optional[float] = None,
) -> Optional[ReorderLine]:
    """Linha MINMAX / PERIODIC_REVIEW a partir do resultado da política."""
    if policy.reorder_qty <= 0:
        return None
    projected = snapshot.projected_coverage
    reason = ReorderReason.BELOW_SAFETY if projected <= snapshot.safety else ReorderReason.UNDER_ROP
    return ReorderLine(
        sku_id=sku.id,
        qty=policy.reorder_qty,
        reason=reason,
        method=policy.method,
        calc=ReorderCalc(
            rop=policy.reorder_level,
            safety=policy.safety,
            lead_time_days=lead_time_days,
            target_level=policy.target_level,
        ),
    )


def _round_to_lot(qty: float, sku: Optional[SKU]) -> float:
    if sku is None:
        return qty
    if sku.lot_size and sku.lot_size > 0:
        qty = math.ceil(qty / sku.lot_size) * sku.lot_size
    if sku.moq and sku.moq > 0:
        qty = max(qty, sku.moq)
    return qty


def build_kit_component_lines(
    kit: SKU,
    kit_demand: float,
    snapshots: Sequence[StockSnapshot],
    skus: Iterable[SKU],
    location_id: Optional[str] = None,
) -> List[ReorderLine]:
    """
    Linhas KIT_COMPONENT para a procura de kits que os componentes não cobrem.

    A necessidade líquida de cada componente (requerido - disponível) é arredondada
    ao lote/MOQ do componente.
    """
    sku_map = {sku.id: sku for sku in skus}
    required = aggregate_requirements(explode_kit_demand(kit, kit_demand))

    lines: List[ReorderLine] = []
    for component_id, required_qty in required.items():
        snapshot = next(
            (
                s for s in snapshots
                if s.sku_id == component_id and (location_id is None or s.location_id == location_id)
            ),
            None,
        )
        available = snapshot.available if snapshot else 0.0
        net = required_qty - available
        if net <= 0:
            continue
        lines.append(ReorderLine(
            sku_id=component_id,
            qty=_round_to_lot(net, sku_map.get(component_id)),
            reason=ReorderReason.KIT_COMPONENT,
            method=ReplenishmentMethod.ROP,
            notes=f"Component of {kit.id}: requires {required_qty:g}, available {available:g}.",
        ))
    return lines


# ═══════════════════════════════════════════════════════════════════════════════
# PROPOSALS
# ═══════════════════════════════════════════════════════════════════════════════

def group_proposals_by_supplier(
    lines: Sequence[ReorderLine],
    supplier_id: str,
    location_id: str,
    currency: str = "USD",
    unit_costs: Optional[Dict[str, float]] = None,
    created_at: Optional[datetime] = None,
) -> ReorderProposal:
    """
    Agrupa linhas numa proposta DRAFT.

    total_qty é sempre a soma das quantidades. est_cost usa quantidade × custo unitário
    quando unit_costs é fornecido; sem custos, est_cost mantém a soma das quantidades
    (comportamento histórico, que não é um valor monetário).
    """
    created_at = created_at or datetime.now(timezone.utc)
    total_qty = float(sum(line.qty for line in lines))
    if unit_costs is not None:
        est_cost = float(sum(line.qty * unit_costs.get(line.sku_id, 0.0) for line in lines))
    else:
        est_cost = total_qty

    return ReorderProposal(
        id=f"{supplier_id}-{location_id}-{int(created_at.timestamp() * 1000)}",
        supplier_id=supplier_id,
        location_id=location_id,
        lines=list(lines),
        totals=ProposalTotals(
            line_count=len(lines),
            total_qty=total_qty,
            est_cost=Money(currency=currency, value=est_cost),
        ),
        created_at=created_at,
        status=ProposalStatus.DRAFT,
    )


def group_lines_by_supplier(
    lines: Sequence[ReorderLine],
    skus: Iterable[SKU],
    location_id: str,
    currency: str = "USD",
    created_at: Optional[datetime] = None,
) -> List[ReorderProposal]:
    """Uma proposta por fornecedor, com custo estimado a partir do custo unitário de cada SKU."""
    sku_map = {sku.id: sku for sku in skus}
    by_supplier: Dict[str, List[ReorderLine]] = {}
    for line in lines:
        sku = sku_map.get(line.sku_id)
        if sku is None or not sku.supplier_id:
            logger.warning(f"SKU {line.sku_id} sem fornecedor, linha ignorada")
            continue
        by_supplier.setdefault(sku.supplier_id, []).append(line)

    unit_costs = {
        sku_id: sku.unit_cost.value
        for sku_id, sku in sku_map.items()
        if sku.unit_cost is not None
    }
    return [
        group_proposals_by_supplier(
            supplier_lines, supplier_id, location_id, currency, unit_costs, created_at,
        )
        for supplier_id, supplier_lines in by_supplier.items()
    ]
