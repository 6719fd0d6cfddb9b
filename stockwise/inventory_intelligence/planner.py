"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    INVENTORY PLANNER (Passo de Planeamento Completo)
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Compõe todos os motores num único passo sem estado:

    DemandSeries ──► Forecast (auto-seleção) ──► μ_d, σ_d
    Lead time samples ──► LeadTimeStats ──► L
    StockSnapshot + SKU + μ_d, σ_d, L ──► ReorderLine ──► ReorderProposal (por fornecedor)
    Kits + Snapshots ──► KitAvailability (+ linhas KIT_COMPONENT)
    Snapshots + Locations ──► TransferPlan
    Tudo ──► Exceções (deduplicadas e ordenadas)

μ_d vem do forecast (olhar para a frente); σ_d vem do histórico normalizado.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from stockwise.config import PlanningConfig, PlanningSettings

from .demand_processor import demand_statistics, normalize_demand_series
from .exception_engine import (
    deduplicate_exceptions,
    detect_forecast_exceptions,
    detect_intermittent_demand_exceptions,
    detect_inventory_exceptions,
    detect_lead_time_exceptions,
    detect_stockout_risk_exceptions,
    detect_supplier_delay_exceptions,
    sort_exceptions,
)
from .forecast_evaluator import create_forecast_summary
from .kit_engine import KitAvailability, compute_kit_availability, detect_kit_exceptions
from .lead_time import build_lead_time_stats
from .models import (
    SKU,
    DemandSeries,
    Forecast,
    InventoryException,
    LeadTimeStats,
    Location,
    ReorderLine,
    ReorderProposal,
    StockSnapshot,
    TransferPlan,
)
from .replenishment import (
    ProposalInput,
    build_kit_component_lines,
    build_reorder_line,
    group_lines_by_supplier,
)
from .transfer_balancer import optimize_transfers

logger = logging.getLogger(__name__)


@dataclass
class PlanningResult:
    """Resultado de um passo de planeamento."""
    forecasts: List[Forecast] = field(default_factory=list)
    proposals: List[ReorderProposal] = field(default_factory=list)
    transfers: List[TransferPlan] = field(default_factory=list)
    kit_availability: List[KitAvailability] = field(default_factory=list)
    lead_times: List[LeadTimeStats] = field(default_factory=list)
    exceptions: List[InventoryException] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "forecasts": [f.to_dict() for f in self.forecasts],
            "proposals": [p.to_dict() for p in self.proposals],
            "transfers": [t.to_dict() for t in self.transfers],
            "kit_availability": [k.to_dict() for k in self.kit_availability],
            "lead_times": [s.to_dict() for s in self.lead_times],
            "exceptions": [e.to_dict() for e in self.exceptions],
        }


class InventoryPlanner:
    """
    Orquestrador de um passo de planeamento.

    Uso:
        planner = InventoryPlanner()
        result = planner.plan(demand, snapshots, skus, locations, lead_time_samples)
    """

    def __init__(self, config: Optional[PlanningConfig] = None):
        self.config = config or PlanningSettings.get_config()

    # ─────────────────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────────────────

    def _forecast(
        self,
        demand: Sequence[DemandSeries],
        now: datetime,
        exceptions: List[InventoryException],
    ) -> Tuple[List[Forecast], Dict[Tuple[str, str], Tuple[float, float]]]:
        cfg = self.config
        forecasts: List[Forecast] = []
        demand_params: Dict[Tuple[str, str], Tuple[float, float]] = {}

        for series in demand:
            forecast = create_forecast_summary(
                series,
                horizon=cfg.forecast_horizon,
                error_pct=None if cfg.band_from_error else cfg.band_error_pct,
                band_from_error=cfg.band_from_error,
                z=cfg.outlier_z,
                uplift_pct=cfg.promo_uplift_pct,
                now=now,
            )
            forecasts.append(forecast)

            normalized = normalize_demand_series(series, cfg.outlier_z, cfg.promo_uplift_pct)
            _, std_dev = demand_statistics(normalized.values())
            mean = forecast.values[0].mean if forecast.values else 0.0
            demand_params[(series.sku_id, series.location_id)] = (mean, std_dev)

            for exc in (
                detect_forecast_exceptions(forecast, cfg.forecast_error_threshold, now),
                detect_intermittent_demand_exceptions(series, detected_at=now),
            ):
                if exc is not None:
                    exceptions.append(exc)

        return forecasts, demand_params

    def _lead_times(
        self,
        lead_time_samples: Dict[str, Sequence[float]],
        now: datetime,
        exceptions: List[InventoryException],
    ) -> Dict[str, LeadTimeStats]:
        cfg = self.config
        stats_by_supplier: Dict[str, LeadTimeStats] = {}
        for supplier_id, samples in lead_time_samples.items():
            if len(samples) == 0:
                continue
            stats = build_lead_time_stats(supplier_id, samples, last_updated=now)
            stats_by_supplier[supplier_id] = stats
            for exc in (
                detect_lead_time_exceptions(stats, samples, cfg.lead_time_spike_pct, now),
                detect_supplier_delay_exceptions(stats, cfg.supplier_on_time_target_pct, now),
            ):
                if exc is not None:
                    exceptions.append(exc)
        return stats_by_supplier

    def _lead_time_for(self, sku: SKU, stats_by_supplier: Dict[str, LeadTimeStats]) -> float:
        stats = stats_by_supplier.get(sku.supplier_id) if sku.supplier_id else None
        if stats is not None and stats.median_days > 0:
            return stats.median_days
        return self.config.default_lead_time_days

    # ─────────────────────────────────────────────────────────────────────────
    # Plan
    # ─────────────────────────────────────────────────────────────────────────

    def plan(
        self,
        demand: Sequence[DemandSeries],
        snapshots: Sequence[StockSnapshot],
        skus: Sequence[SKU],
        locations: Sequence[Location],
        lead_time_samples: Optional[Dict[str, Sequence[float]]] = None,
        kit_demand: Optional[Dict[str, float]] = None,
        now: Optional[datetime] = None,
    ) -> PlanningResult:
        """
        Executa um passo de planeamento completo.

        Args:
            demand: Históricos de procura por SKU/localização
            snapshots: Posições de stock
            skus: Dados mestre (inclui kits)
            locations: Localizações com prioridade de dadora
            lead_time_samples: Amostras de lead time por fornecedor (dias)
            kit_demand: Procura de kits a explodir em linhas KIT_COMPONENT {kit_id: qty}
            now: Momento de referência (datas de deteção/criação)
        """
        cfg = self.config
        now = now or datetime.now(timezone.utc)
        sku_map = {sku.id: sku for sku in skus}
        exceptions: List[InventoryException] = []

        forecasts, demand_params = self._forecast(demand, now, exceptions)
        stats_by_supplier = self._lead_times(lead_time_samples or {}, now, exceptions)

        # Linhas de reposição por localização
        lines_by_location: Dict[str, List[ReorderLine]] = {}
        for snapshot in snapshots:
            exceptions.extend(detect_inventory_exceptions(snapshot, now))

            sku = sku_map.get(snapshot.sku_id)
            params = demand_params.get((snapshot.sku_id, snapshot.location_id))
            if sku is None or sku.is_kit or params is None:
                continue

            mean, std_dev = params
            lead_time = self._lead_time_for(sku, stats_by_supplier)
            line = build_reorder_line(ProposalInput(
                sku=sku,
                snapshot=snapshot,
                demand_mean=mean,
                demand_std_dev=std_dev,
                lead_time_days=lead_time,
                service_level=cfg.service_level,
            ))
            if line is not None:
                lines_by_location.setdefault(snapshot.location_id, []).append(line)

            risk = detect_stockout_risk_exceptions(
                snapshot, mean, std_dev, lead_time, cfg.stockout_risk_threshold, now,
            )
            if risk is not None:
                exceptions.append(risk)

        # Kits (só onde o kit ou algum componente tem snapshot)
        kit_availability: List[KitAvailability] = []
        for kit in (sku for sku in skus if sku.is_kit):
            carried = {kit.id} | {line.child_sku_id for line in kit.bom}
            for location in locations:
                local = [s for s in snapshots if s.location_id == location.id]
                if not any(s.sku_id in carried for s in local):
                    continue
                availability = compute_kit_availability(kit, local)
                kit_availability.append(availability)
                kit_exc = detect_kit_exceptions(kit, availability, now)
                if kit_exc is not None:
                    kit_exc.id = f"{kit.id}-{location.id}-kit"
                    kit_exc.location_id = location.id
                    exceptions.append(kit_exc)

                qty = (kit_demand or {}).get(kit.id)
                if qty:
                    lines_by_location.setdefault(location.id, []).extend(
                        build_kit_component_lines(kit, qty, local, skus, location.id)
                    )

        proposals: List[ReorderProposal] = []
        for location_id, lines in lines_by_location.items():
            proposals.extend(group_lines_by_supplier(lines, skus, location_id, cfg.currency, now))

        transfers = optimize_transfers(
            snapshots,
            locations,
            min_display_qty=cfg.min_display_qty,
            transfer_lead_time_days=cfg.transfer_lead_time_days,
            transfer_cost=cfg.transfer_cost_per_unit,
            currency=cfg.currency,
        )

        feed = sort_exceptions(deduplicate_exceptions(exceptions))
        logger.info(
            f"Planning pass: {len(forecasts)} forecasts, {len(proposals)} proposals, "
            f"{len(transfers)} transfers, {len(feed)} exceptions"
        )
        return PlanningResult(
            forecasts=forecasts,
            proposals=proposals,
            transfers=transfers,
            kit_availability=kit_availability,
            lead_times=list(stats_by_supplier.values()),
            exceptions=feed,
        )
