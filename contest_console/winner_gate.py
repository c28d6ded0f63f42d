"""
Winner Selection Gate

Winners can only be drawn once the selected project's entries have been
processed and at least one contestant is eligible.
"""

import logging
from typing import Any, Dict, Optional

from .models import ProcessingState, ProcessingStatus, SelectionContext
from .protocols import ContestValidationError, GatewayClientProtocol, InvalidWorkflowStateError

logger = logging.getLogger(__name__)


def can_select_winners(context: SelectionContext, status: Optional[ProcessingStatus]) -> bool:
    return (
        context.has_full_selection
        and status is not None
        and status.state == ProcessingState.COMPLETED
        and status.eligible_contestants > 0
    )


def closed_reason(context: SelectionContext, status: Optional[ProcessingStatus]) -> Optional[str]:
    """Why the gate is closed, or None if it is open"""
    if not context.has_full_selection:
        return "Select a client and project first"
    if status is None:
        return "Entry data has not been processed"
    if status.state != ProcessingState.COMPLETED:
        return f"Entry processing is {status.state.value}"
    if status.eligible_contestants <= 0:
        return "No eligible contestants"
    return None


async def select_winners(
    gateway: GatewayClientProtocol,
    context: SelectionContext,
    status: Optional[ProcessingStatus],
    number_of_winners: int,
) -> Dict[str, Any]:
    """
    Ask the backend to draw winners for the selected project.

    Raises:
        ContestValidationError: number_of_winners <= 0
        InvalidWorkflowStateError: gate closed
        GatewayError: selection failed
    """
    if number_of_winners <= 0:
        raise ContestValidationError(
            "Number of winners must be greater than 0", field="number_of_winners"
        )
    reason = closed_reason(context, status)
    if reason is not None:
        raise InvalidWorkflowStateError(
            f"Cannot select winners: {reason}",
            current_state=status.state.value if status else None,
        )

    logger.info(
        f"Selecting {number_of_winners} winners for {context.client_id}/{context.project_id}"
    )
    return await gateway.select_winners(context.client_id, context.project_id, number_of_winners)


__all__ = ["can_select_winners", "closed_reason", "select_winners"]
