"""
Rules Reconciler

Decides, for the selected (client, project) pair, whether the console shows
saved rules or an editable draft, and owns that draft.
"""

import logging
from typing import Any, Callable, Optional

from .models import ContestRules, RulesMode
from .protocols import (
    GatewayClientProtocol,
    GatewayError,
    InvalidWorkflowStateError,
    NotFoundError,
    StaleResponseError,
)
from .rules_builder import ContestRulesService
from .selection import SelectionState

logger = logging.getLogger(__name__)


class RulesReconciler:
    """
    Rules mode and draft for the current selection.

    Every remote result is checked against the live selection before it is
    applied; results for a pair that is no longer selected are dropped and
    counted in `stale_drops`.
    """

    def __init__(
        self,
        gateway: GatewayClientProtocol,
        selection: SelectionState,
        rules_service: Optional[ContestRulesService] = None,
    ):
        self.gateway = gateway
        self.selection = selection
        self.rules_service = rules_service or ContestRulesService(gateway)

        self.mode = RulesMode.UNSET
        self.saved: Optional[ContestRules] = None
        self.draft: Optional[ContestRules] = None
        self.warning: Optional[str] = None
        self.stale_drops = 0

    def _template(self) -> ContestRules:
        context = self.selection.context
        return ContestRules.default_template(context.flight_start, context.flight_end)

    def reset(self) -> None:
        """Forget everything tied to the previous selection"""
        self.mode = RulesMode.UNSET
        self.saved = None
        self.draft = None
        self.warning = None

    # ====================
    # Reconciliation
    # ====================

    async def reconcile(self) -> RulesMode:
        """
        Fetch rules for the current pair and pick saved or edit mode.

        Not-found means the project simply has no rules yet. Any other
        failure also opens the editor but leaves a warning.
        """
        context = self.selection.context
        if not context.has_full_selection:
            self.reset()
            return self.mode

        pair = context.pair
        self.mode = RulesMode.LOADING
        self.warning = None

        rules: Optional[ContestRules] = None
        warning: Optional[str] = None
        try:
            rules = await self.gateway.get_rules(context.client_id, context.project_id)
        except NotFoundError:
            logger.info(f"No contest rules for {pair[0]}/{pair[1]}, opening editor")
        except GatewayError as e:
            logger.warning(f"Failed to load contest rules for {pair[0]}/{pair[1]}: {e}")
            warning = f"Could not load saved rules: {e.message}"

        try:
            self.selection.ensure_current(pair)
        except StaleResponseError as e:
            self.stale_drops += 1
            logger.debug(f"Dropped rules response: {e}")
            return self.mode

        if rules is not None:
            self._show_saved(rules)
        else:
            self.saved = None
            self.draft = self._template()
            self.mode = RulesMode.EDITING
            self.warning = warning
        return self.mode

    def _show_saved(self, rules: ContestRules) -> None:
        self.saved = rules
        self.draft = rules
        self.mode = RulesMode.SAVED
        self.warning = None

    def replace_saved(self, rules: ContestRules) -> None:
        """Adopt a remote copy written outside the editor (receipt keyword)"""
        if self.mode == RulesMode.SAVED:
            self._show_saved(rules)
        else:
            self.saved = rules

    # ====================
    # Editing
    # ====================

    def _require_editing(self) -> ContestRules:
        if self.mode != RulesMode.EDITING or self.draft is None:
            raise InvalidWorkflowStateError(
                "Rules are not being edited", current_state=self.mode.value
            )
        return self.draft

    def edit(self, mutator: Callable[..., ContestRules], *args: Any, **kwargs: Any) -> ContestRules:
        """Apply a rules_builder mutator to the draft"""
        draft = self._require_editing()
        self.draft = mutator(draft, *args, **kwargs)
        return self.draft

    def request_edit(self) -> ContestRules:
        if self.mode == RulesMode.EDITING and self.draft is not None:
            return self.draft
        if self.mode != RulesMode.SAVED or self.saved is None:
            raise InvalidWorkflowStateError(
                "No saved rules to edit", current_state=self.mode.value
            )
        self.draft = self.saved
        self.mode = RulesMode.EDITING
        return self.draft

    def discard_edits(self) -> Optional[ContestRules]:
        self._require_editing()
        if self.saved is not None:
            self._show_saved(self.saved)
        else:
            self.draft = self._template()
        return self.draft

    async def submit(self) -> ContestRules:
        """
        Save the draft and switch to saved mode.

        A failed save leaves mode and draft as they were.
        """
        draft = self._require_editing()
        context = self.selection.context
        submitted = await self.rules_service.save(context, draft)

        try:
            self.selection.ensure_current(context.pair)
        except StaleResponseError as e:
            self.stale_drops += 1
            logger.debug(f"Rules saved for a previous selection: {e}")
            return submitted

        self._show_saved(submitted)
        return submitted

    async def delete_rules(self) -> None:
        context = self.selection.context
        if not context.has_full_selection:
            raise InvalidWorkflowStateError("Select a client and project first")

        await self.gateway.delete_rules(context.client_id, context.project_id)
        logger.info(f"Deleted contest rules for {context.client_id}/{context.project_id}")

        if self.selection.is_current(context.pair):
            self.saved = None
            self.draft = self._template()
            self.mode = RulesMode.EDITING
            self.warning = None
        else:
            self.stale_drops += 1

    @property
    def has_saved_rules(self) -> bool:
        return self.saved is not None


__all__ = ["RulesReconciler"]
