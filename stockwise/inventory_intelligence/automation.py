"""
StockWise - Automation Rules
============================

Simulação de regras de automação sobre o feed de exceções.

Uma regra dispara quando está ativa e pelo menos uma exceção viva corresponde
ao seu trigger (categoria) e à severidade mínima opcional (conditions["min_severity"]).
A simulação nunca executa as ações: apenas explica se dispararia.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .exception_engine import SEVERITY_RANK
from .models import ExceptionBucket, InventoryException, Severity

logger = logging.getLogger(__name__)


@dataclass
class RuleAction:
    type: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Rule:
    id: str
    name: str
    trigger: ExceptionBucket
    actions: List[RuleAction] = field(default_factory=list)
    conditions: Dict[str, Any] = field(default_factory=dict)
    enabled: bool = True


@dataclass
class AutomationSimulation:
    rule_id: str
    fired: bool
    explanation: str
    matched_exception_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "fired": self.fired,
            "explanation": self.explanation,
            "matched_exception_ids": self.matched_exception_ids,
        }


def _matches(rule: Rule, exc: InventoryException) -> bool:
    if exc.bucket != rule.trigger:
        return False
    min_severity = rule.conditions.get("min_severity")
    if min_severity is None:
        return True
    return SEVERITY_RANK[exc.severity] <= SEVERITY_RANK[Severity(min_severity)]


def simulate_rule(rule: Rule, exceptions: Sequence[InventoryException]) -> AutomationSimulation:
    """Avalia se a regra dispararia sobre as exceções atuais."""
    if not rule.enabled:
        return AutomationSimulation(rule_id=rule.id, fired=False, explanation="Rule disabled.")

    matched = [exc.id for exc in exceptions if _matches(rule, exc)]
    if not matched:
        return AutomationSimulation(rule_id=rule.id, fired=False, explanation="Conditions not met.")

    logger.debug(f"Rule {rule.id} matched {len(matched)} exception(s)")
    return AutomationSimulation(
        rule_id=rule.id,
        fired=True,
        explanation=f"Fired because {rule.trigger.value} matched {len(matched)} live exception(s).",
        matched_exception_ids=matched,
    )


def simulate_rules(
    rules: Sequence[Rule],
    exceptions: Sequence[InventoryException],
) -> List[AutomationSimulation]:
    return [simulate_rule(rule, exceptions) for rule in rules]
