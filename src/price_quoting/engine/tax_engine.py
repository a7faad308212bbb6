"""
Tax Engine - matches tax rules to a destination and applies them in order.

Rules are matched against the ship-to jurisdiction (country, region, postal
pattern), the product's tax class and the quote date, then applied by
ascending priority (ties by rule id). Compound rules tax the base plus the
tax accumulated by every earlier rule in that order.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from fnmatch import fnmatchcase
from typing import Iterable, Optional

from .models import AppliedTaxRule, ShipTo, TaxResult, TaxRule, in_window
from .money import HUNDRED, ZERO, percent_of, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchedRule:
    """A tax rule that matched, with the conditions it matched on."""
    rule: TaxRule
    match_reason: str


def _same(a: str, b: str) -> bool:
    return a.strip().upper() == b.strip().upper()


def postal_matches(pattern: str, postal: str) -> bool:
    """Shell-style wildcard match on the whole postal code, ignoring case and spaces."""
    norm_pattern = pattern.replace(" ", "").upper()
    norm_postal = postal.replace(" ", "").upper()
    return fnmatchcase(norm_postal, norm_pattern)


def jurisdiction_reasons(rule: TaxRule, ship_to: Optional[ShipTo]) -> Optional[list[str]]:
    """
    Check a rule's jurisdiction conditions against a destination.

    Returns the list of satisfied conditions, or None when the rule does not apply.
    Without a destination only global rules apply; with one, every condition the
    rule sets must be met by the matching ship-to field.
    """
    if rule.is_global:
        return []
    if ship_to is None or ship_to.is_empty:
        return None

    reasons = []

    if rule.country:
        if not ship_to.country or not _same(rule.country, ship_to.country):
            return None
        reasons.append(f"country={rule.country}")

    if rule.region:
        if not ship_to.region or not _same(rule.region, ship_to.region):
            return None
        reasons.append(f"region={rule.region}")

    if rule.postal_pattern:
        if not ship_to.postal or not postal_matches(rule.postal_pattern, ship_to.postal):
            return None
        reasons.append(f"postal~{rule.postal_pattern}")

    return reasons


def rule_order_key(rule: TaxRule):
    return (rule.priority, rule.id)


def match_tax_rules(
    rules: Iterable[TaxRule],
    ship_to: Optional[ShipTo] = None,
    tax_class_id: Optional[str] = None,
    as_of: Optional[datetime] = None
) -> list[MatchedRule]:
    """
    Find all rules that apply to the destination, tax class and date.

    Returns rules in application order (priority, then id).
    """
    as_of = as_of or datetime.now(timezone.utc)
    matched = []

    for rule in rules:
        if not rule.is_active:
            continue
        if not in_window(as_of, rule.valid_from, rule.valid_to):
            continue
        if rule.tax_class_id and rule.tax_class_id != tax_class_id:
            continue

        reasons = jurisdiction_reasons(rule, ship_to)
        if reasons is None:
            continue
        if rule.tax_class_id:
            reasons.append(f"class={rule.tax_class_id}")

        matched.append(MatchedRule(
            rule=rule,
            match_reason=", ".join(reasons) if reasons else "global",
        ))

    matched.sort(key=lambda m: rule_order_key(m.rule))
    for m in matched:
        logger.debug("Tax rule %s matched (%s)", m.rule.id, m.match_reason)
    return matched


def apply_tax_rules(
    base_amount: Decimal, rules: Iterable[TaxRule], class_id: Optional[str] = None
) -> TaxResult:
    """
    Apply already-ordered rules to a base amount at full precision.

    Non-compound rules each tax the original base; compound rules tax the base
    plus everything accumulated so far.
    """
    base = to_decimal(base_amount)
    accumulated = ZERO
    applied = []

    for rule in rules:
        taxable = base + accumulated if rule.compound else base
        increment = percent_of(taxable, rule.rate_pct)
        accumulated += increment
        applied.append(AppliedTaxRule(
            rule_id=rule.id,
            name=rule.name,
            rate_pct=rule.rate_pct,
            compound=rule.compound,
            amount=increment,
        ))

    effective = accumulated / base * HUNDRED if base != ZERO else ZERO
    return TaxResult(
        rules=tuple(applied),
        tax_amount=accumulated,
        effective_rate_pct=effective,
        class_id=class_id,
    )


class TaxEngine:
    """Computes tax for a base amount from a snapshot of tax rules."""

    def __init__(self, rules: Iterable[TaxRule] = ()):
        self.rules = tuple(rules)

    def match(
        self,
        ship_to: Optional[ShipTo] = None,
        tax_class_id: Optional[str] = None,
        as_of: Optional[datetime] = None
    ) -> list[MatchedRule]:
        return match_tax_rules(self.rules, ship_to, tax_class_id, as_of)

    def compute_tax(
        self,
        base_amount: Decimal,
        ship_to: Optional[ShipTo] = None,
        tax_class_id: Optional[str] = None,
        as_of: Optional[datetime] = None
    ) -> TaxResult:
        """Select applicable rules and compute tax, effective rate and per-rule amounts."""
        matched = self.match(ship_to, tax_class_id, as_of)
        return apply_tax_rules(base_amount, [m.rule for m in matched], tax_class_id)
