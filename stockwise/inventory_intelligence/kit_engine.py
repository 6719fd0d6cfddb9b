"""
StockWise - Kit Availability Engine
===================================

Kit (bill of materials) availability and demand explosion.

Features:
- Weakest-link availability: a kit is as available as its scarcest component
- Single-level kit demand explosion
- Requirement aggregation across kits
- KIT_BLOCKED exception for the gating component
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .models import (
    SKU,
    ExceptionAction,
    ExceptionBucket,
    InventoryException,
    Severity,
    StockSnapshot,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class GatingComponent:
    """Component that limits how many kits can be built."""
    sku_id: str
    required: float  # quantity per kit
    available: float


@dataclass
class KitAvailability:
    sku_id: str
    available: float
    gated_by: Optional[GatingComponent] = None

    def to_dict(self) -> dict:
        return {
            "sku_id": self.sku_id,
            "available": self.available,
            "gated_by": (
                {
                    "sku_id": self.gated_by.sku_id,
                    "required": self.gated_by.required,
                    "available": self.gated_by.available,
                }
                if self.gated_by
                else None
            ),
        }


@dataclass
class ComponentRequirement:
    component_sku_id: str
    required_qty: float


# ═══════════════════════════════════════════════════════════════════════════════
# AVAILABILITY
# ═══════════════════════════════════════════════════════════════════════════════

def _available_for(sku_id: str, snapshots: Sequence[StockSnapshot]) -> float:
    snapshot = next((item for item in snapshots if item.sku_id == sku_id), None)
    return snapshot.available if snapshot else 0.0


def _is_kit(sku: SKU) -> bool:
    return bool(sku.is_kit and sku.bom)


def compute_kit_availability(kit: SKU, snapshots: Sequence[StockSnapshot]) -> KitAvailability:
    """
    Compute buildable quantity for a kit.

    For a non-kit SKU this is on_hand - allocated of its own snapshot. For a kit it is
    min(floor(available / qty_per_kit)) across components; ties on the minimum are
    resolved on the lowest component SKU id so the gating component does not depend
    on BOM ordering.
    """
    if not _is_kit(kit):
        return KitAvailability(sku_id=kit.id, available=_available_for(kit.id, snapshots))

    min_availability = math.inf
    gating: Optional[GatingComponent] = None

    for line in sorted(kit.bom, key=lambda item: item.child_sku_id):
        available = _available_for(line.child_sku_id, snapshots)
        possible = math.floor(available / line.qty_per_kit) if line.qty_per_kit > 0 else math.inf
        if possible < min_availability:
            min_availability = possible
            gating = GatingComponent(
                sku_id=line.child_sku_id,
                required=line.qty_per_kit,
                available=available,
            )

    if not math.isfinite(min_availability):
        min_availability = 0

    return KitAvailability(
        sku_id=kit.id,
        available=max(min_availability, 0),
        gated_by=gating,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# EXPLOSION
# ═══════════════════════════════════════════════════════════════════════════════

def explode_kit_demand(kit: SKU, kit_demand: float) -> List[ComponentRequirement]:
    """One requirement per BOM line (qty_per_kit * kit_demand), no aggregation."""
    if not _is_kit(kit):
        return []
    return [
        ComponentRequirement(
            component_sku_id=line.child_sku_id,
            required_qty=line.qty_per_kit * kit_demand,
        )
        for line in kit.bom
    ]


def aggregate_requirements(requirements: Sequence[ComponentRequirement]) -> Dict[str, float]:
    """
    Agrega requisitos de componentes (soma quantidades por componente).

    Útil para consolidar requisitos de vários kits.
    """
    aggregated: Dict[str, float] = {}
    for req in requirements:
        aggregated[req.component_sku_id] = aggregated.get(req.component_sku_id, 0.0) + req.required_qty
    return aggregated


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def detect_kit_exceptions(
    kit: SKU,
    availability: KitAvailability,
    detected_at: Optional[datetime] = None,
) -> Optional[InventoryException]:
    """
    KIT_BLOCKED exception naming the gating component.

    Severity is HIGH when no kit can be built, LOW otherwise.
    """
    gated = availability.gated_by
    if gated is None:
        return None

    shortfall = max(gated.required - gated.available, 0)
    severity = Severity.HIGH if availability.available <= 0 else Severity.LOW

    name = kit.name or kit.id
    return InventoryException(
        id=f"{kit.id}-kit",
        sku_id=kit.id,
        bucket=ExceptionBucket.KIT_BLOCKED,
        severity=severity,
        message=f"{name} blocked by {gated.sku_id} short {shortfall:g}",
        detected_at=detected_at or datetime.now(timezone.utc),
        actions=[ExceptionAction(label="Replenish Component", action="open_replenishment")],
    )
