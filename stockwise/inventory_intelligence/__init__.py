"""
═══════════════════════════════════════════════════════════════════════════════════════════════════════
                    STOCKWISE - INVENTORY INTELLIGENCE MODULE
═══════════════════════════════════════════════════════════════════════════════════════════════════════

Motor puro de forecasting e reposição de inventário:

1. **Limpeza de Procura**: Corte de outliers e uplift promocional
2. **Forecasting**: SMA, SES, Holt, Seasonal Naive, Croston, TSB com auto-seleção
3. **Reposição**: Safety stock, ROP, EOQ, min/max e revisão periódica
4. **Kits**: Disponibilidade weakest-link e explosão de procura
5. **Transferências**: Equilíbrio greedy de excedentes e défices
6. **Exceções**: Feed priorizado, deduplicado e ordenado
7. **Lead Time**: Estatísticas e picos por fornecedor

Arquitetura:
    ┌─────────────────────────────────────────────────────────────────┐
    │                    Inventory Intelligence Core                   │
    ├─────────────────────────────────────────────────────────────────┤
    │  Demand Processor                                               │
    │    ├─ Outlier Trimming (z-score)                                │
    │    └─ Promo Uplift                                              │
    ├─────────────────────────────────────────────────────────────────┤
    │  Forecasting                                                    │
    │    ├─ Method Library (6 métodos)                                │
    │    └─ Evaluator (MAPE / WAPE / SMAPE)                           │
    ├─────────────────────────────────────────────────────────────────┤
    │  Replenishment                                                  │
    │    ├─ Safety Stock / ROP / EOQ                                  │
    │    ├─ Min/Max, Periodic Review                                  │
    │    └─ Proposals por fornecedor                                  │
    ├─────────────────────────────────────────────────────────────────┤
    │  Kit Engine · Transfer Balancer · Lead Time Analyzer            │
    ├─────────────────────────────────────────────────────────────────┤
    │  Exception Engine → Automation (simulação de regras)            │
    └─────────────────────────────────────────────────────────────────┘

Todas as funções são síncronas e sem estado; o InventoryPlanner compõe um passo completo.

Dependencies:
    - numpy: Operações numéricas
    - pandas: Séries temporais e tabelas
    - scipy: Distribuição normal (risco de rutura)
"""

from .automation import AutomationSimulation, Rule, RuleAction, simulate_rule, simulate_rules
from .demand_processor import (
    apply_promo_uplift,
    demand_statistics,
    extract_demand_values,
    normalize_demand_series,
    trim_outliers,
)
from .exception_engine import (
    BUCKET_ORDER,
    deduplicate_exceptions,
    detect_forecast_exceptions,
    detect_intermittent_demand_exceptions,
    detect_inventory_exceptions,
    detect_lead_time_exceptions,
    detect_stockout_risk_exceptions,
    detect_supplier_delay_exceptions,
    exceptions_to_frame,
    sort_exceptions,
    stockout_probability,
)
from .forecast_evaluator import (
    DEFAULT_METHODS,
    ForecastEvaluation,
    build_confidence_band,
    build_forecast,
    compute_mape,
    compute_smape,
    compute_wape,
    create_forecast_summary,
    evaluate_forecasts,
    pick_best_forecast,
)
from .forecast_methods import (
    METHOD_GENERATORS,
    CrostonResult,
    HoltResult,
    InvalidArgumentError,
    TSBResult,
    croston,
    holt_trend_smoothing,
    seasonal_naive,
    simple_moving_average,
    single_exponential_smoothing,
    tsb,
)
from .kit_engine import (
    ComponentRequirement,
    GatingComponent,
    KitAvailability,
    aggregate_requirements,
    compute_kit_availability,
    detect_kit_exceptions,
    explode_kit_demand,
)
from .lead_time import (
    build_lead_time_stats,
    calculate_lead_time_stats,
    detect_lead_time_spike,
    lead_time_demand_parameters,
    update_lead_time_score,
)
from .models import (
    SKU,
    BOMLine,
    DemandPoint,
    DemandSeries,
    DemandTag,
    ExceptionAction,
    ExceptionBucket,
    Forecast,
    ForecastError,
    ForecastMethod,
    ForecastPeriod,
    ForecastPoint,
    InventoryException,
    LeadTimeStats,
    Location,
    Money,
    ProposalStatus,
    ProposalTotals,
    ReorderCalc,
    ReorderLine,
    ReorderProposal,
    ReorderReason,
    ReplenishmentMethod,
    Severity,
    StockSnapshot,
    TransferLine,
    TransferPlan,
    TransferStatus,
)
from .planner import InventoryPlanner, PlanningResult
from .replenishment import (
    Z_TABLE,
    PolicyResult,
    ProposalInput,
    build_kit_component_lines,
    build_policy_line,
    build_reorder_line,
    economic_order_quantity,
    get_service_level_z,
    group_lines_by_supplier,
    group_proposals_by_supplier,
    min_max_policy,
    periodic_review_policy,
    reorder_point,
    safety_stock,
)
from .transfer_balancer import optimize_transfers, summarize_imbalances

__all__ = [
    # Models
    "DemandTag",
    "DemandPoint",
    "DemandSeries",
    "ForecastMethod",
    "ForecastPeriod",
    "ForecastError",
    "ForecastPoint",
    "Forecast",
    "Money",
    "Location",
    "BOMLine",
    "SKU",
    "StockSnapshot",
    "ReorderReason",
    "ReplenishmentMethod",
    "ProposalStatus",
    "ReorderCalc",
    "ReorderLine",
    "ProposalTotals",
    "ReorderProposal",
    "TransferLine",
    "TransferStatus",
    "TransferPlan",
    "ExceptionBucket",
    "Severity",
    "ExceptionAction",
    "InventoryException",
    "LeadTimeStats",
    # Demand
    "trim_outliers",
    "apply_promo_uplift",
    "normalize_demand_series",
    "extract_demand_values",
    "demand_statistics",
    # Forecast methods
    "InvalidArgumentError",
    "HoltResult",
    "CrostonResult",
    "TSBResult",
    "simple_moving_average",
    "single_exponential_smoothing",
    "holt_trend_smoothing",
    "seasonal_naive",
    "croston",
    "tsb",
    "METHOD_GENERATORS",
    # Evaluator
    "DEFAULT_METHODS",
    "ForecastEvaluation",
    "compute_mape",
    "compute_wape",
    "compute_smape",
    "evaluate_forecasts",
    "pick_best_forecast",
    "build_confidence_band",
    "build_forecast",
    "create_forecast_summary",
    # Replenishment
    "Z_TABLE",
    "get_service_level_z",
    "safety_stock",
    "reorder_point",
    "economic_order_quantity",
    "PolicyResult",
    "min_max_policy",
    "periodic_review_policy",
    "ProposalInput",
    "build_reorder_line",
    "build_policy_line",
    "build_kit_component_lines",
    "group_proposals_by_supplier",
    "group_lines_by_supplier",
    # Kits
    "GatingComponent",
    "KitAvailability",
    "ComponentRequirement",
    "compute_kit_availability",
    "explode_kit_demand",
    "aggregate_requirements",
    "detect_kit_exceptions",
    # Transfers
    "optimize_transfers",
    "summarize_imbalances",
    # Exceptions
    "BUCKET_ORDER",
    "detect_inventory_exceptions",
    "detect_forecast_exceptions",
    "detect_lead_time_exceptions",
    "detect_stockout_risk_exceptions",
    "detect_intermittent_demand_exceptions",
    "detect_supplier_delay_exceptions",
    "stockout_probability",
    "deduplicate_exceptions",
    "sort_exceptions",
    "exceptions_to_frame",
    # Lead time
    "calculate_lead_time_stats",
    "build_lead_time_stats",
    "detect_lead_time_spike",
    "update_lead_time_score",
    "lead_time_demand_parameters",
    # Automation
    "Rule",
    "RuleAction",
    "AutomationSimulation",
    "simulate_rule",
    "simulate_rules",
    # Planner
    "InventoryPlanner",
    "PlanningResult",
]
