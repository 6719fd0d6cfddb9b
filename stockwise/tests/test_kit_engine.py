"""
Testes para o Kit Engine - disponibilidade weakest-link e explosão de procura
"""
from stockwise.inventory_intelligence.kit_engine import (
    ComponentRequirement,
    aggregate_requirements,
    compute_kit_availability,
    detect_kit_exceptions,
    explode_kit_demand,
)
from stockwise.inventory_intelligence.models import SKU, BOMLine, ExceptionBucket, Severity


def _kit(*lines, kit_id="KIT-1"):
    return SKU(id=kit_id, name="Kit", is_kit=True, bom=[BOMLine(child, qty) for child, qty in lines])


class TestK1_Availability:
    """K1: Disponibilidade de kits."""

    def test_weakest_link(self, snapshot_factory):
        """K1.1: A=40, B=60 (2 por kit) → 30, limitado por B."""
        kit = _kit(("A", 1), ("B", 2))
        snapshots = [snapshot_factory("A", on_hand=40), snapshot_factory("B", on_hand=60)]

        result = compute_kit_availability(kit, snapshots)

        assert result.available == 30
        assert result.gated_by.sku_id == "B"
        assert result.gated_by.required == 2
        assert result.gated_by.available == 60

    def test_allocated_reduces_availability(self, snapshot_factory):
        kit = _kit(("A", 1))
        result = compute_kit_availability(kit, [snapshot_factory("A", on_hand=40, allocated=15)])
        assert result.available == 25

    def test_tie_resolved_by_lowest_sku_id(self, snapshot_factory):
        """K1.2: Empate no mínimo → componente com menor id, independente da ordem da BOM."""
        kit = _kit(("B", 1), ("A", 1))
        snapshots = [snapshot_factory("A", on_hand=10), snapshot_factory("B", on_hand=10)]

        assert compute_kit_availability(kit, snapshots).gated_by.sku_id == "A"

    def test_missing_component_snapshot(self, snapshot_factory):
        """K1.3: Componente sem snapshot → 0 kits."""
        kit = _kit(("A", 1), ("B", 1))
        result = compute_kit_availability(kit, [snapshot_factory("A", on_hand=10)])

        assert result.available == 0
        assert result.gated_by.sku_id == "B"

    def test_negative_availability_floored(self, snapshot_factory):
        kit = _kit(("A", 1))
        result = compute_kit_availability(kit, [snapshot_factory("A", on_hand=5, allocated=9)])
        assert result.available == 0

    def test_non_kit_uses_own_snapshot(self, snapshot_factory):
        """K1.4: SKU simples → on_hand - allocated do próprio snapshot."""
        sku = SKU(id="A")
        assert compute_kit_availability(sku, [snapshot_factory("A", on_hand=10, allocated=3)]).available == 7
        assert compute_kit_availability(sku, []).available == 0

    def test_empty_bom_treated_as_non_kit(self, snapshot_factory):
        kit = SKU(id="KIT-E", is_kit=True)
        result = compute_kit_availability(kit, [snapshot_factory("KIT-E", on_hand=4)])
        assert result.available == 4
        assert result.gated_by is None


class TestK2_Explosion:
    """K2: Explosão de procura de kits."""

    def test_explode(self):
        requirements = explode_kit_demand(_kit(("A", 1), ("B", 2)), 10)
        assert requirements == [
            ComponentRequirement("A", 10),
            ComponentRequirement("B", 20),
        ]

    def test_explode_non_kit(self):
        assert explode_kit_demand(SKU(id="A"), 10) == []

    def test_aggregate_across_kits(self):
        """K2.1: Soma por componente entre kits."""
        requirements = (
            explode_kit_demand(_kit(("A", 1), ("B", 2)), 10)
            + explode_kit_demand(_kit(("A", 3), kit_id="KIT-2"), 2)
        )
        assert aggregate_requirements(requirements) == {"A": 16, "B": 20}


class TestK3_Exceptions:
    """K3: Exceções KIT_BLOCKED."""

    def test_gated_kit_low_severity(self, snapshot_factory, fixed_now):
        kit = _kit(("A", 1), ("B", 2))
        availability = compute_kit_availability(
            kit, [snapshot_factory("A", on_hand=40), snapshot_factory("B", on_hand=60)],
        )
        exc = detect_kit_exceptions(kit, availability, fixed_now)

        assert exc.bucket == ExceptionBucket.KIT_BLOCKED
        assert exc.severity == Severity.LOW
        assert exc.sku_id == "KIT-1"
        assert exc.detected_at == fixed_now
        assert "B" in exc.message

    def test_unbuildable_kit_high_severity(self, snapshot_factory):
        """K3.1: Nenhum kit possível → HIGH, com falta do componente."""
        kit = _kit(("A", 3))
        availability = compute_kit_availability(kit, [snapshot_factory("A", on_hand=1)])
        exc = detect_kit_exceptions(kit, availability)

        assert exc.severity == Severity.HIGH
        assert "short 2" in exc.message

    def test_no_gating_component(self):
        kit = SKU(id="A")
        availability = compute_kit_availability(kit, [])
        assert detect_kit_exceptions(kit, availability) is None
