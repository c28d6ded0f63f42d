"""
Selection Context Holder

Owns the current (client, project) pair. Every change replaces the whole
SelectionContext, so readers never see a project paired with the wrong
client. Async work captures the pair when it starts and checks it again
when it resolves.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from .models import SelectionContext
from .protocols import ContestValidationError, InvalidWorkflowStateError, StaleResponseError

logger = logging.getLogger(__name__)

SelectionPair = Tuple[Optional[str], Optional[str]]


class SelectionState:
    """Current selection plus the 'last synced' marker"""

    def __init__(self):
        self._context = SelectionContext()
        self.last_synced_at: Optional[datetime] = None

    @property
    def context(self) -> SelectionContext:
        return self._context

    @property
    def pair(self) -> SelectionPair:
        return self._context.pair

    def is_current(self, pair: SelectionPair) -> bool:
        return pair == self._context.pair

    def ensure_current(self, pair: SelectionPair) -> None:
        """Raise StaleResponseError if the captured pair is no longer selected"""
        if not self.is_current(pair):
            raise StaleResponseError(
                f"Response for {pair[0]}/{pair[1]} arrived after switching to "
                f"{self._context.client_id}/{self._context.project_id}",
                pair=pair,
            )

    def select_client(self, client_id: Optional[str]) -> bool:
        """
        Select a client, clearing the project and flight window.

        Returns:
            True if the selection changed
        """
        client_id = client_id or None
        if client_id == self._context.client_id and self._context.project_id is None:
            return False
        self._context = SelectionContext(client_id=client_id)
        self.last_synced_at = None
        logger.info(f"Selected client: {client_id or '(none)'}")
        return True

    def select_project(
        self,
        project_id: Optional[str],
        flight_start: Optional[date] = None,
        flight_end: Optional[date] = None,
    ) -> SelectionContext:
        """Select a project under the current client and stamp the sync marker"""
        if not self._context.client_id:
            raise InvalidWorkflowStateError("Select a client before selecting a project")

        same_project = project_id == self._context.project_id
        if flight_start is None and flight_end is None and same_project:
            # Re-selecting keeps the known flight window
            flight_start, flight_end = self._context.flight_start, self._context.flight_end

        self._context = SelectionContext(
            client_id=self._context.client_id,
            project_id=project_id or None,
            flight_start=flight_start,
            flight_end=flight_end,
        )
        self.last_synced_at = datetime.now(timezone.utc) if project_id else None
        logger.info(f"Selected project: {self._context.client_id}/{project_id or '(none)'}")
        return self._context

    def select_pair(
        self,
        client_id: str,
        project_id: str,
        flight_start: Optional[date] = None,
        flight_end: Optional[date] = None,
    ) -> SelectionContext:
        """Replace client and project in one step"""
        self._context = SelectionContext(
            client_id=client_id,
            project_id=project_id,
            flight_start=flight_start,
            flight_end=flight_end,
        )
        self.last_synced_at = datetime.now(timezone.utc)
        logger.info(f"Selected {client_id}/{project_id}")
        return self._context

    def set_flight_window(self, flight_start: Optional[date], flight_end: Optional[date]) -> SelectionContext:
        if flight_start and flight_end and flight_end <= flight_start:
            raise ContestValidationError(
                "Flight end date must be after the start date", field="flight_end"
            )
        self._context = self._context.model_copy(
            update={"flight_start": flight_start, "flight_end": flight_end}
        )
        return self._context

    def clear(self) -> None:
        self._context = SelectionContext()
        self.last_synced_at = None


__all__ = ["SelectionState", "SelectionPair"]
