"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    TRANSFER BALANCER (Redistribuição entre Localizações)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Este módulo equilibra excedentes e défices do mesmo SKU entre localizações.

Formulação:
───────────
    coverage[sku, loc] = on_hand + on_order - allocated
    surplus[sku, loc]  = max(coverage - max(safety, min_display), 0)
    deficit[sku, loc]  = max(safety - coverage, 0)

Heurística greedy:
    1. Percorrer snapshots com défice (ordem de entrada)
    2. Candidatos = outras localizações do mesmo SKU com excedente,
       ordenados por prioridade da localização (número menor primeiro, default 1)
    3. Alocar min(excedente, défice restante); o excedente é partilhado entre recetores
    4. Cada alocação gera o seu próprio TransferPlan

Défice não coberto não gera plano: fica visível apenas nas exceções (BELOW_SAFETY).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .models import Location, Money, StockSnapshot, TransferLine, TransferPlan, TransferStatus

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_PRIORITY = 1


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SurplusDeficit:
    """Excedente/défice de um SKU numa localização."""
    sku_id: str
    location_id: str
    surplus: float
    deficit: float


def build_surplus_map(
    snapshots: Sequence[StockSnapshot],
    min_display_qty: float = 0,
) -> Dict[Tuple[str, str], SurplusDeficit]:
    """Mapa (sku, localização) → excedente/défice."""
    surplus_map: Dict[Tuple[str, str], SurplusDeficit] = {}
    for snapshot in snapshots:
        projected = snapshot.projected_coverage
        surplus_map[(snapshot.sku_id, snapshot.location_id)] = SurplusDeficit(
            sku_id=snapshot.sku_id,
            location_id=snapshot.location_id,
            surplus=max(projected - max(snapshot.safety, min_display_qty), 0),
            deficit=max(snapshot.safety - projected, 0),
        )
    return surplus_map


def summarize_imbalances(
    snapshots: Sequence[StockSnapshot],
    min_display_qty: float = 0,
) -> pd.DataFrame:
    """Tabela de excedentes/défices por SKU e localização (para dashboards)."""
    rows = [
        {
            "sku_id": entry.sku_id,
            "location_id": entry.location_id,
            "surplus": entry.surplus,
            "deficit": entry.deficit,
        }
        for entry in build_surplus_map(snapshots, min_display_qty).values()
    ]
    return pd.DataFrame(rows, columns=["sku_id", "location_id", "surplus", "deficit"])


# ═══════════════════════════════════════════════════════════════════════════════
# OPTIMIZATION
# ═══════════════════════════════════════════════════════════════════════════════

def optimize_transfers(
    snapshots: Sequence[StockSnapshot],
    locations: Sequence[Location],
    min_display_qty: float = 0,
    transfer_lead_time_days: Optional[float] = None,
    transfer_cost: Optional[float] = None,
    currency: str = "USD",
) -> List[TransferPlan]:
    """
    Gera planos de transferência de excedentes para défices.

    Args:
        snapshots: Posições de stock (todas as localizações)
        locations: Localizações com prioridade de dadora
        min_display_qty: Quantidade mínima que nunca sai de uma localização
        transfer_lead_time_days: Lead time copiado para cada plano
        transfer_cost: Custo por unidade transferida

    Returns:
        Lista de TransferPlan (um por alocação, estado DRAFT)
    """
    surplus_map = build_surplus_map(snapshots, min_display_qty)
    priority = {
        loc.id: loc.priority if loc.priority is not None else DEFAULT_LOCATION_PRIORITY
        for loc in locations
    }
    plans: List[TransferPlan] = []

    for snapshot in snapshots:
        entry = surplus_map.get((snapshot.sku_id, snapshot.location_id))
        if entry is None or entry.deficit <= 0:
            continue

        candidates = [
            surplus_map[(other.sku_id, other.location_id)]
            for other in snapshots
            if other.sku_id == snapshot.sku_id and other.location_id != snapshot.location_id
        ]
        candidates = [c for c in candidates if c.surplus > 0]
        candidates.sort(key=lambda c: priority.get(c.location_id, DEFAULT_LOCATION_PRIORITY))

        remaining = entry.deficit
        for candidate in candidates:
            if remaining <= 0:
                break
            qty = min(candidate.surplus, remaining)
            if qty <= 0:
                continue
            candidate.surplus -= qty
            remaining -= qty
            plans.append(TransferPlan(
                id=f"{snapshot.sku_id}-{candidate.location_id}-{snapshot.location_id}-{len(plans) + 1}",
                from_location_id=candidate.location_id,
                to_location_id=snapshot.location_id,
                lines=[TransferLine(sku_id=snapshot.sku_id, qty=qty)],
                lead_time_days=transfer_lead_time_days,
                transfer_cost=Money(currency=currency, value=transfer_cost * qty) if transfer_cost else None,
                status=TransferStatus.DRAFT,
            ))
            logger.debug(
                f"Transfer {qty:g} x {snapshot.sku_id}: {candidate.location_id} -> {snapshot.location_id}"
            )

        if remaining > 0:
            logger.debug(f"{snapshot.sku_id}@{snapshot.location_id}: {remaining:g} unresolved deficit")

    logger.info(f"Transfer balancing produced {len(plans)} plan(s)")
    return plans
