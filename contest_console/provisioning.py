"""
Provisioning Sequencer

Creates a client bucket with its first project, or a new project under the
selected client, and drives the create modal state:

    idle -> creating -> success -> (delay) -> idle
    idle -> creating -> error   -> (delay) -> idle
"""

import asyncio
import logging
import re
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .models import ProvisioningMode, ProvisioningRequest, ProvisioningResult, ProvisioningState
from .protocols import (
    ContestValidationError,
    GatewayClientProtocol,
    GatewayError,
    InvalidWorkflowStateError,
)

logger = logging.getLogger(__name__)

BUCKET_PREFIX = "sweepstakes-"
CLIENT_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")
PROJECT_HANDLE_PATTERN = re.compile(r"^[0-9]+$")

VALID_TRANSITIONS = {
    ProvisioningState.IDLE: {ProvisioningState.CREATING},
    ProvisioningState.CREATING: {ProvisioningState.SUCCESS, ProvisioningState.ERROR},
    ProvisioningState.SUCCESS: {ProvisioningState.IDLE},
    ProvisioningState.ERROR: {ProvisioningState.IDLE},
}


def bucket_name_for(client_name: str) -> str:
    return f"{BUCKET_PREFIX}{client_name}"


def client_name_from_bucket(bucket_name: str) -> str:
    if bucket_name.startswith(BUCKET_PREFIX):
        return bucket_name[len(BUCKET_PREFIX):]
    return bucket_name


def project_name_for(project_handle: str) -> str:
    return f"project-{project_handle.zfill(4)}"


def validate_request(
    request: ProvisioningRequest,
    selected_client: Optional[str] = None,
) -> List[str]:
    """Return every reason the create request cannot be sent"""
    errors: List[str] = []

    if request.mode == ProvisioningMode.CLIENT:
        client_name = request.client_name.strip()
        if not client_name:
            errors.append("Client name is required")
        elif not CLIENT_NAME_PATTERN.match(client_name):
            errors.append("Client name may only contain lowercase letters, digits and hyphens")
    elif not selected_client:
        errors.append("Select a client before adding a project")

    handle = request.project_handle.strip()
    if not handle:
        errors.append("Project handle is required")
    elif not PROJECT_HANDLE_PATTERN.match(handle):
        errors.append("Project handle must be numeric")

    if request.flight_start is None or request.flight_end is None:
        errors.append("Flight start and end dates are required")
    elif request.flight_end <= request.flight_start:
        errors.append("Flight end date must be after the start date")

    return errors


def build_project_data(
    client_name: str,
    project_handle: str,
    flight_start: date,
    flight_end: date,
) -> Dict[str, Any]:
    return {
        "projectHandle": project_handle,
        "projectName": project_name_for(project_handle),
        "clientName": client_name,
        "flight_start_date": f"{flight_start.isoformat()}T00:00:00",
        "flight_end_date": f"{flight_end.isoformat()}T23:59:59",
    }


class ProvisioningSequencer:
    """State machine behind the create client/project modal"""

    def __init__(
        self,
        gateway: GatewayClientProtocol,
        success_delay: float = 2.0,
        error_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.success_delay = success_delay
        self.error_delay = error_delay
        self._sleep = sleep

        self.state = ProvisioningState.IDLE
        self.mode = ProvisioningMode.CLIENT
        self.is_open = False
        self.last_error: Optional[str] = None
        self.last_result: Optional[ProvisioningResult] = None

    def _transition(self, new_state: ProvisioningState) -> None:
        if new_state not in VALID_TRANSITIONS[self.state]:
            raise InvalidWorkflowStateError(
                f"Cannot move provisioning from {self.state.value} to {new_state.value}",
                current_state=self.state.value,
            )
        logger.debug(f"Provisioning {self.state.value} -> {new_state.value}")
        self.state = new_state

    def open(self, mode: ProvisioningMode = ProvisioningMode.CLIENT) -> None:
        if self.state == ProvisioningState.CREATING:
            raise InvalidWorkflowStateError(
                "A create request is already in progress", current_state=self.state.value
            )
        self.mode = ProvisioningMode(mode)
        self.is_open = True
        self.last_error = None
        self.last_result = None

    def close(self) -> bool:
        """Close the modal; refused (False) while a create request is in flight"""
        if self.state == ProvisioningState.CREATING:
            return False
        self.is_open = False
        self.last_error = None
        return True

    def validate(self, request: ProvisioningRequest, selected_client: Optional[str] = None) -> None:
        errors = validate_request(request, selected_client)
        if errors:
            raise ContestValidationError("; ".join(errors), errors=errors)

    async def submit(
        self,
        request: ProvisioningRequest,
        selected_client: Optional[str] = None,
        on_success: Optional[Callable[[ProvisioningResult], Awaitable[None]]] = None,
    ) -> ProvisioningResult:
        """
        Create the bucket/project described by the request.

        Args:
            request: Modal fields
            selected_client: Bucket of the selected client, used in project mode
            on_success: Awaited after the success delay to merge and select the new pair

        Raises:
            ContestValidationError: invalid request (nothing sent)
            InvalidWorkflowStateError: another create is in flight
            GatewayError: backend rejected the request
        """
        if self.state != ProvisioningState.IDLE:
            raise InvalidWorkflowStateError(
                "A create request is already in progress", current_state=self.state.value
            )
        self.validate(request, selected_client)

        handle = request.project_handle.strip()
        if request.mode == ProvisioningMode.CLIENT:
            client_name = request.client_name.strip()
            bucket_name = bucket_name_for(client_name)
        else:
            bucket_name = selected_client
            client_name = client_name_from_bucket(selected_client)

        project_data = build_project_data(
            client_name, handle, request.flight_start, request.flight_end
        )

        self.mode = request.mode
        self.is_open = True
        self.last_error = None
        self._transition(ProvisioningState.CREATING)
        try:
            response = await self.gateway.create_client(bucket_name, project_data)
        except GatewayError as e:
            logger.error(f"Failed to create {bucket_name}/{project_data['projectName']}: {e}")
            self.last_error = str(e)
            self._transition(ProvisioningState.ERROR)
            try:
                await self._sleep(self.error_delay)
            finally:
                self._transition(ProvisioningState.IDLE)
            raise
        except asyncio.CancelledError:
            self.state = ProvisioningState.IDLE
            raise

        result = ProvisioningResult(
            bucket_name=bucket_name,
            project_name=project_data["projectName"],
            flight_start=request.flight_start,
            flight_end=request.flight_end,
            response=response if isinstance(response, dict) else {},
        )
        self.last_result = result
        self._transition(ProvisioningState.SUCCESS)
        logger.info(f"Created {result.bucket_name}/{result.project_name}")

        try:
            await self._sleep(self.success_delay)
            if on_success is not None:
                await on_success(result)
        finally:
            self._transition(ProvisioningState.IDLE)
            self.is_open = False
        return result


__all__ = [
    "BUCKET_PREFIX",
    "CLIENT_NAME_PATTERN",
    "PROJECT_HANDLE_PATTERN",
    "VALID_TRANSITIONS",
    "bucket_name_for",
    "client_name_from_bucket",
    "project_name_for",
    "validate_request",
    "build_project_data",
    "ProvisioningSequencer",
]
