"""
Testes para a simulação de regras de automação
"""
from stockwise.inventory_intelligence.automation import Rule, RuleAction, simulate_rule, simulate_rules
from stockwise.inventory_intelligence.models import ExceptionBucket, InventoryException, Severity


def _exc(exc_id, bucket, severity, detected_at):
    return InventoryException(id=exc_id, bucket=bucket, severity=severity, message="", detected_at=detected_at)


class TestA1_Simulation:
    """A1: Uma regra dispara com exceções vivas do seu trigger."""

    def test_rule_fires(self, fixed_now):
        rule = Rule(
            id="r1",
            name="Auto reorder",
            trigger=ExceptionBucket.BELOW_SAFETY,
            actions=[RuleAction(type="create_proposal")],
        )
        exceptions = [
            _exc("a", ExceptionBucket.BELOW_SAFETY, Severity.LOW, fixed_now),
            _exc("b", ExceptionBucket.UNDER_ROP, Severity.HIGH, fixed_now),
        ]
        result = simulate_rule(rule, exceptions)

        assert result.fired
        assert result.matched_exception_ids == ["a"]
        assert result.explanation == "Fired because BELOW_SAFETY matched 1 live exception(s)."

    def test_disabled_rule(self, fixed_now):
        rule = Rule(id="r1", name="Off", trigger=ExceptionBucket.BELOW_SAFETY, enabled=False)
        result = simulate_rule(rule, [_exc("a", ExceptionBucket.BELOW_SAFETY, Severity.HIGH, fixed_now)])

        assert not result.fired
        assert result.explanation == "Rule disabled."

    def test_no_matching_exception(self, fixed_now):
        rule = Rule(id="r1", name="Spikes", trigger=ExceptionBucket.LEAD_TIME_SPIKE)
        result = simulate_rule(rule, [_exc("a", ExceptionBucket.BELOW_SAFETY, Severity.HIGH, fixed_now)])

        assert not result.fired
        assert result.explanation == "Conditions not met."
        assert result.to_dict()["matched_exception_ids"] == []


class TestA2_Conditions:
    """A2: Condição de severidade mínima."""

    def test_min_severity_filters(self, fixed_now):
        rule = Rule(
            id="r1",
            name="Urgent",
            trigger=ExceptionBucket.UNDER_ROP,
            conditions={"min_severity": "HIGH"},
        )
        medium = [_exc("a", ExceptionBucket.UNDER_ROP, Severity.MEDIUM, fixed_now)]
        high = [_exc("b", ExceptionBucket.UNDER_ROP, Severity.HIGH, fixed_now)]

        assert not simulate_rule(rule, medium).fired
        assert simulate_rule(rule, high).fired

    def test_min_severity_includes_more_severe(self, fixed_now):
        rule = Rule(id="r1", name="Any", trigger=ExceptionBucket.UNDER_ROP, conditions={"min_severity": "MEDIUM"})
        exceptions = [
            _exc("a", ExceptionBucket.UNDER_ROP, Severity.HIGH, fixed_now),
            _exc("b", ExceptionBucket.UNDER_ROP, Severity.MEDIUM, fixed_now),
            _exc("c", ExceptionBucket.UNDER_ROP, Severity.LOW, fixed_now),
        ]
        assert simulate_rule(rule, exceptions).matched_exception_ids == ["a", "b"]

    def test_simulate_rules(self, fixed_now):
        rules = [
            Rule(id="r1", name="Safety", trigger=ExceptionBucket.BELOW_SAFETY),
            Rule(id="r2", name="Kits", trigger=ExceptionBucket.KIT_BLOCKED),
        ]
        results = simulate_rules(rules, [_exc("a", ExceptionBucket.KIT_BLOCKED, Severity.LOW, fixed_now)])

        assert [(r.rule_id, r.fired) for r in results] == [("r1", False), ("r2", True)]
