"""
Fixtures comuns para os testes do motor de inventário.
"""
import pytest
from datetime import datetime, timedelta, timezone

from stockwise.config import PlanningConfig, PlanningSettings
from stockwise.inventory_intelligence.models import (
    SKU,
    BOMLine,
    DemandPoint,
    DemandSeries,
    DemandTag,
    Location,
    Money,
    StockSnapshot,
)


@pytest.fixture
def fixed_now():
    """Momento de referência fixo (UTC)."""
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_series(values, sku_id="SKU-A", location_id="LOC-1", start=None, tags=None):
    """Cria uma DemandSeries diária a partir de quantidades."""
    start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
    tags = tags or {}
    return DemandSeries(
        sku_id=sku_id,
        location_id=location_id,
        points=[
            DemandPoint(at=start + timedelta(days=i), qty=qty, tag=tags.get(i))
            for i, qty in enumerate(values)
        ],
    )


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def flat_series():
    """Sete períodos de procura constante, sem PROMO."""
    return make_series([10] * 7)


@pytest.fixture
def promo_series():
    """Procura estável com um pico promocional no fim."""
    return make_series([10] * 9 + [100], tags={9: DemandTag.PROMO})


@pytest.fixture
def sample_skus():
    """SKUs de exemplo (dois fornecedores + kit)."""
    return [
        SKU(
            id="SKU-A",
            name="Widget A",
            supplier_id="SUP-1",
            unit_cost=Money(currency="USD", value=2.0),
        ),
        SKU(
            id="SKU-B",
            name="Widget B",
            supplier_id="SUP-2",
            unit_cost=Money(currency="USD", value=3.0),
        ),
        SKU(
            id="KIT-1",
            name="Starter Kit",
            is_kit=True,
            bom=[
                BOMLine(child_sku_id="SKU-A", qty_per_kit=1),
                BOMLine(child_sku_id="SKU-B", qty_per_kit=2),
            ],
        ),
    ]


@pytest.fixture
def sample_locations():
    return [
        Location(id="LOC-1", name="Store 1"),
        Location(id="LOC-2", name="Warehouse", priority=1),
        Location(id="LOC-3", name="Store 3", priority=2),
    ]


@pytest.fixture
def snapshot_factory():
    def _make(sku_id="SKU-A", location_id="LOC-1", **kwargs):
        kwargs.setdefault("on_hand", 0)
        return StockSnapshot(sku_id=sku_id, location_id=location_id, **kwargs)
    return _make


@pytest.fixture
def planning_config():
    """Configuração explícita (independente do ambiente)."""
    return PlanningConfig()


@pytest.fixture
def reset_settings():
    PlanningSettings.reset()
    yield
    PlanningSettings.reset()
