"""
Component Tests for the Rules Reconciler

Mode decisions on selection, stale response handling and the edit/save cycle.
"""

import asyncio
from datetime import date

import pytest

from contest_console import rules_builder
from contest_console.models import ContestRules, RulesMode
from contest_console.protocols import GatewayError, InvalidWorkflowStateError
from contest_console.rules_reconciler import RulesReconciler
from contest_console.selection import SelectionState


@pytest.fixture
def selection() -> SelectionState:
    state = SelectionState()
    state.select_client("acme")
    return state


@pytest.fixture
def reconciler(mock_gateway, selection) -> RulesReconciler:
    return RulesReconciler(mock_gateway, selection)


class TestReconcile:

    @pytest.mark.asyncio
    async def test_missing_rules_open_template_without_warning(self, reconciler, selection):
        selection.select_project("0007", date(2024, 12, 1), date(2024, 12, 31))

        mode = await reconciler.reconcile()

        assert mode == RulesMode.EDITING
        assert reconciler.warning is None
        assert reconciler.saved is None
        assert reconciler.draft.entry_start_date == date(2024, 12, 1)
        assert reconciler.draft.entry_end_date == date(2024, 12, 31)
        assert reconciler.draft.flight_start_date == date(2024, 12, 1)

    @pytest.mark.asyncio
    async def test_saved_rules_shown(self, reconciler, selection, mock_gateway, factory):
        mock_gateway.rules[("acme", "0007")] = factory.make_rules_payload()
        selection.select_project("0007")

        mode = await reconciler.reconcile()

        assert mode == RulesMode.SAVED
        assert reconciler.saved.total_winners == 10
        assert reconciler.draft == reconciler.saved

    @pytest.mark.asyncio
    async def test_other_failure_opens_editor_with_warning(self, reconciler, selection, mock_gateway):
        mock_gateway.set_error("get_rules", GatewayError("Internal Server Error", status=500))
        selection.select_project("0007")

        mode = await reconciler.reconcile()

        assert mode == RulesMode.EDITING
        assert "Internal Server Error" in reconciler.warning
        assert reconciler.draft is not None

    @pytest.mark.asyncio
    async def test_no_full_selection_is_unset(self, reconciler):
        assert await reconciler.reconcile() == RulesMode.UNSET
        assert reconciler.draft is None


class TestStaleness:

    @pytest.mark.asyncio
    async def test_late_response_for_previous_pair_dropped(
        self, reconciler, selection, mock_gateway, factory
    ):
        mock_gateway.rules[("acme", "A")] = factory.make_rules_payload(total_winners=1)
        mock_gateway.rules[("acme", "B")] = factory.make_rules_payload(total_winners=2)
        gate_a = mock_gateway.hold("get_rules", ("acme", "A"))

        selection.select_project("A")
        task_a = asyncio.create_task(reconciler.reconcile())
        await asyncio.sleep(0)

        selection.select_project("B")
        await reconciler.reconcile()
        assert reconciler.saved.total_winners == 2

        gate_a.set()
        await task_a

        assert selection.pair == ("acme", "B")
        assert reconciler.saved.total_winners == 2
        assert reconciler.mode == RulesMode.SAVED
        assert reconciler.stale_drops == 1

    @pytest.mark.asyncio
    async def test_repeat_for_same_pair_keeps_last(self, reconciler, selection, mock_gateway, factory):
        mock_gateway.rules[("acme", "0007")] = factory.make_rules_payload(total_winners=3)
        selection.select_project("0007")

        await asyncio.gather(reconciler.reconcile(), reconciler.reconcile())

        assert reconciler.mode == RulesMode.SAVED
        assert reconciler.saved.total_winners == 3
        assert reconciler.stale_drops == 0


class TestEditCycle:

    @pytest.mark.asyncio
    async def test_edit_requires_editing_mode(self, reconciler, selection, mock_gateway, factory):
        mock_gateway.rules[("acme", "0007")] = factory.make_rules_payload()
        selection.select_project("0007")
        await reconciler.reconcile()

        with pytest.raises(InvalidWorkflowStateError):
            reconciler.edit(rules_builder.toggle_region, "NY")

    @pytest.mark.asyncio
    async def test_request_edit_then_discard(self, reconciler, selection, mock_gateway, factory):
        mock_gateway.rules[("acme", "0007")] = factory.make_rules_payload()
        selection.select_project("0007")
        await reconciler.reconcile()

        reconciler.request_edit()
        reconciler.edit(rules_builder.select_all_regions)
        assert len(reconciler.draft.eligible_states) == 50

        reconciler.discard_edits()
        assert reconciler.mode == RulesMode.SAVED
        assert reconciler.draft.eligible_states == ("CA", "TX")

    @pytest.mark.asyncio
    async def test_submit_switches_to_saved(self, reconciler, selection, mock_gateway):
        selection.select_project("0007", date(2024, 12, 1), date(2024, 12, 31))
        await reconciler.reconcile()
        reconciler.edit(rules_builder.toggle_region, "WA")

        submitted = await reconciler.submit()

        assert reconciler.mode == RulesMode.SAVED
        assert reconciler.saved == submitted
        assert "WA" in mock_gateway.rules[("acme", "0007")]["eligible_states"]

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_draft(self, reconciler, selection, mock_gateway):
        selection.select_project("0007", date(2024, 12, 1), date(2024, 12, 31))
        await reconciler.reconcile()
        draft = reconciler.edit(rules_builder.toggle_region, "WA")
        mock_gateway.set_error("create_rules", GatewayError("Bad Gateway", status=502))

        with pytest.raises(GatewayError):
            await reconciler.submit()

        assert reconciler.mode == RulesMode.EDITING
        assert reconciler.draft is draft
        assert reconciler.saved is None

    @pytest.mark.asyncio
    async def test_delete_returns_to_template(self, reconciler, selection, mock_gateway, factory):
        mock_gateway.rules[("acme", "0007")] = factory.make_rules_payload()
        selection.select_project("0007")
        await reconciler.reconcile()

        await reconciler.delete_rules()

        assert ("acme", "0007") not in mock_gateway.rules
        assert reconciler.mode == RulesMode.EDITING
        assert reconciler.draft == ContestRules.default_template()
