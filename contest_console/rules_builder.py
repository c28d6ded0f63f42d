"""
Contest Rules Builder

Draft mutators, submission validation and the create-or-update save.

Every mutator takes a ContestRules draft and returns a new one; drafts are
never changed in place.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .models import ContestRules, SelectionContext, WinnerPeriod, WinnerRule
from .protocols import (
    ContestValidationError,
    GatewayClientProtocol,
    ResourceConflictError,
)
from .regions import (
    ALL_REGION_CODES,
    ContestTimezone,
    canonical_regions,
    is_known_region,
    regions_in_timezone,
)

logger = logging.getLogger(__name__)


def new_rule_id() -> str:
    return f"wr_{uuid4().hex[:12]}"


# ====================
# Region selection
# ====================

def toggle_region(rules: ContestRules, code: str) -> ContestRules:
    code = code.upper()
    if not is_known_region(code):
        raise ContestValidationError(f"Unknown region code: {code}", field="eligible_states")
    if code in rules.eligible_states:
        states = tuple(c for c in rules.eligible_states if c != code)
    else:
        states = canonical_regions(rules.eligible_states + (code,))
    return rules.model_copy(update={"eligible_states": states})


def select_all_regions(rules: ContestRules) -> ContestRules:
    return rules.model_copy(update={"eligible_states": ALL_REGION_CODES})


def deselect_all_regions(rules: ContestRules) -> ContestRules:
    return rules.model_copy(update={"eligible_states": ()})


def select_regions_by_timezone(rules: ContestRules, timezone: ContestTimezone) -> ContestRules:
    """Add every region in the timezone to the current selection"""
    states = canonical_regions(rules.eligible_states + regions_in_timezone(timezone))
    return rules.model_copy(update={"eligible_states": states})


# ====================
# Winner rules
# ====================

def add_winner_rule(rules: ContestRules, rule_id: Optional[str] = None) -> ContestRules:
    existing = {r.id for r in rules.winner_rules}
    rule_id = rule_id or new_rule_id()
    while rule_id in existing:
        rule_id = new_rule_id()
    rule = WinnerRule(id=rule_id, count=1, period=WinnerPeriod.DAY)
    return rules.model_copy(update={"winner_rules": rules.winner_rules + (rule,)})


def remove_winner_rule(rules: ContestRules, rule_id: str) -> ContestRules:
    # The last row can never be removed
    if len(rules.winner_rules) <= 1:
        return rules
    remaining = tuple(r for r in rules.winner_rules if r.id != rule_id)
    if len(remaining) == len(rules.winner_rules):
        return rules
    return rules.model_copy(update={"winner_rules": remaining})


def update_winner_rule(
    rules: ContestRules,
    rule_id: str,
    count: Optional[int] = None,
    period: Optional[WinnerPeriod] = None,
) -> ContestRules:
    changes: Dict[str, Any] = {}
    if count is not None:
        changes["count"] = int(count)
    if period is not None:
        changes["period"] = WinnerPeriod(period)

    updated = tuple(
        r.model_copy(update=changes) if r.id == rule_id else r
        for r in rules.winner_rules
    )
    return rules.model_copy(update={"winner_rules": updated})


# ====================
# Plain fields
# ====================

EDITABLE_FIELDS = frozenset({
    "age_min",
    "age_max",
    "entry_start_date",
    "entry_end_date",
    "max_entries_per_person",
    "total_winners",
    "prize_structure",
    "receipt_product_keyword",
})


def update_fields(rules: ContestRules, **changes: Any) -> ContestRules:
    """Replace plain fields; values are coerced by the model"""
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ContestValidationError(
            f"Fields not editable here: {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
        )
    try:
        return ContestRules.model_validate({**rules.model_dump(), **changes})
    except ValueError as e:
        raise ContestValidationError(f"Invalid rules field: {e}") from e


# ====================
# Validation
# ====================

def validate_rules(rules: ContestRules) -> List[str]:
    """Return every reason the draft cannot be submitted"""
    errors: List[str] = []

    if rules.entry_start_date is None or rules.entry_end_date is None:
        errors.append("Entry start and end dates are required")
    elif rules.entry_end_date <= rules.entry_start_date:
        errors.append("Entry end date must be after the entry start date")

    if not rules.winner_rules:
        errors.append("At least one winner rule is required")
    for rule in rules.winner_rules:
        if rule.count < 0:
            errors.append(f"Winner rule {rule.id} has a negative count")

    if rules.total_winners < 1:
        errors.append("Total winners must be at least 1")
    if rules.max_entries_per_person < 1:
        errors.append("Max entries per person must be at least 1")
    if rules.age_min > rules.age_max:
        errors.append("Minimum age cannot exceed maximum age")

    unknown = [c for c in rules.eligible_states if not is_known_region(c)]
    if unknown:
        errors.append(f"Unknown region codes: {', '.join(unknown)}")

    return errors


def ensure_valid(rules: ContestRules) -> None:
    errors = validate_rules(rules)
    if errors:
        raise ContestValidationError("; ".join(errors), errors=errors)


def with_flight_window(rules: ContestRules, context: SelectionContext) -> ContestRules:
    """Flight dates always come from the selection context when it has them"""
    return rules.model_copy(update={
        "flight_start_date": context.flight_start or rules.flight_start_date,
        "flight_end_date": context.flight_end or rules.flight_end_date,
    })


# ====================
# Save
# ====================

class ContestRulesService:
    """Validated create-or-update of contest rules"""

    def __init__(self, gateway: GatewayClientProtocol):
        self.gateway = gateway

    async def save(self, context: SelectionContext, rules: ContestRules) -> ContestRules:
        """
        Validate and persist rules for the selected pair.

        The gateway has separate create and update verbs; create is tried
        first and an "already exists" answer falls back to update.

        Returns:
            The rules exactly as submitted (flight window merged)

        Raises:
            ContestValidationError: draft invalid (nothing sent)
            GatewayError: create/update failed
        """
        if not context.has_full_selection:
            raise ContestValidationError("Select a client and project before saving rules")

        ensure_valid(rules)
        submitted = with_flight_window(rules, context)
        payload = submitted.to_payload()
        bucket, project = context.client_id, context.project_id

        try:
            await self.gateway.create_rules(bucket, project, payload)
            logger.info(f"Created contest rules for {bucket}/{project}")
        except ResourceConflictError:
            logger.info(f"Rules already exist for {bucket}/{project}, updating")
            await self.gateway.update_rules(bucket, project, payload)

        return submitted


__all__ = [
    "new_rule_id",
    "toggle_region",
    "select_all_regions",
    "deselect_all_regions",
    "select_regions_by_timezone",
    "add_winner_rule",
    "remove_winner_rule",
    "update_winner_rule",
    "update_fields",
    "EDITABLE_FIELDS",
    "validate_rules",
    "ensure_valid",
    "with_flight_window",
    "ContestRulesService",
]
