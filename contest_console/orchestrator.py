"""
Contest Workflow Orchestrator

Takes a client/project selection through rule configuration, entry data
processing, receipt validation and winner selection. Holds the observable
console state and the background polling tasks for the selected project.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, TypeVar

from core.config import ConsoleConfig

from . import winner_gate
from .file_uploads import DataFileUploader
from .job_poller import JobPoller, PollTick
from .models import (
    ClientBucket,
    ContestRules,
    PollOutcome,
    ProcessingState,
    ProcessingStatus,
    ProcessingType,
    ProjectRecord,
    ProvisioningMode,
    ProvisioningRequest,
    ProvisioningResult,
    ReceiptBatchSummary,
    RulesMode,
    ScanAnalytics,
    SelectionContext,
    StoredFile,
    WinnerRecord,
)
from .operations import OperationStatusMap
from .protocols import (
    GatewayClientProtocol,
    GatewayError,
    InvalidWorkflowStateError,
    NotFoundError,
    UploadTransportProtocol,
)
from .provisioning import ProvisioningSequencer
from .receipts import ReceiptCoordinator
from .rules_reconciler import RulesReconciler
from .selection import SelectionPair, SelectionState

logger = logging.getLogger(__name__)

T = TypeVar("T")


def merge_by_name(authoritative: Iterable[T], optimistic: Iterable[T]) -> List[T]:
    """Authoritative entries first, then optimistic ones whose name is not yet listed"""
    merged: List[T] = []
    seen: Set[str] = set()
    for item in list(authoritative) + list(optimistic):
        name = getattr(item, "name")
        if name in seen:
            continue
        seen.add(name)
        merged.append(item)
    return merged


class ContestWorkflowOrchestrator:
    """Stateful contest workflow for one console session"""

    def __init__(
        self,
        gateway: GatewayClientProtocol,
        config: ConsoleConfig,
        uploader: UploadTransportProtocol,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.config = config

        self.selection = SelectionState()
        self.operations = OperationStatusMap()
        self.rules = RulesReconciler(gateway, self.selection)
        self.provisioning = ProvisioningSequencer(
            gateway,
            success_delay=config.provisioning_success_delay,
            error_delay=config.provisioning_error_delay,
            sleep=sleep,
        )
        self.receipts = ReceiptCoordinator(
            gateway,
            uploader,
            self.selection,
            poll_interval=config.receipt_poll_interval,
            max_attempts=config.receipt_poll_max_attempts,
        )
        self.files = DataFileUploader(
            gateway,
            uploader,
            max_file_size=config.max_file_size,
            accepted_file_types=config.supported_file_types,
        )

        # Listings, with optimistic entries from provisioning
        self.clients: List[ClientBucket] = []
        self.projects: List[ProjectRecord] = []
        self._pending_clients: Dict[str, ClientBucket] = {}
        self._pending_projects: Dict[str, Dict[str, ProjectRecord]] = {}

        # Project data for the current selection
        self.processing_status: Optional[ProcessingStatus] = None
        self.status_history: List[ProcessingStatus] = []
        self.winners: List[WinnerRecord] = []
        self.validated_files: List[StoredFile] = []
        self.raw_entries_count = 0
        self.analytics: Optional[ScanAnalytics] = None
        self.health: Optional[Dict[str, Any]] = None

        self._processing_poller: Optional[JobPoller] = None
        self._processing_task: Optional[asyncio.Task] = None
        # Strong references until done; cancelled polls still finish in the background
        self._background_tasks: Set[asyncio.Task] = set()
        self._stale_drops = 0

    # ====================
    # Derived state
    # ====================

    @property
    def context(self) -> SelectionContext:
        return self.selection.context

    @property
    def rules_mode(self) -> RulesMode:
        return self.rules.mode

    @property
    def can_process_data(self) -> bool:
        return self.context.has_full_selection and self.rules.has_saved_rules

    @property
    def can_select_winners(self) -> bool:
        return winner_gate.can_select_winners(self.context, self.processing_status)

    @property
    def is_processing(self) -> bool:
        return self._processing_task is not None and not self._processing_task.done()

    @property
    def stale_drop_count(self) -> int:
        return self._stale_drops + self.rules.stale_drops + self.receipts.stale_drops

    def _accept(self, pair: SelectionPair) -> bool:
        if self.selection.is_current(pair):
            return True
        self._stale_drops += 1
        logger.debug(f"Dropped response for {pair[0]}/{pair[1]}")
        return False

    def _require_selection(self) -> SelectionPair:
        if not self.context.has_full_selection:
            raise InvalidWorkflowStateError("Select a client and project first")
        return self.context.pair

    async def _read(self, name: str, call: Callable[[], Awaitable[T]], default: T) -> T:
        """Run a read, recording failure and returning the default instead of raising"""
        self.operations.start(name)
        try:
            value = await call()
        except GatewayError as e:
            logger.warning(f"{name} failed: {e}")
            self.operations.fail(name, str(e))
            return default
        except asyncio.CancelledError:
            self.operations.reset(name)
            raise
        self.operations.succeed(name)
        return value

    # ====================
    # Listings
    # ====================

    async def refresh_clients(self) -> List[ClientBucket]:
        buckets = await self._read("clients", self.gateway.list_buckets, [])
        listed = {b.name for b in buckets}
        for name in list(self._pending_clients):
            if name in listed:
                del self._pending_clients[name]
        self.clients = merge_by_name(buckets, self._pending_clients.values())
        return self.clients

    async def refresh_projects(self, bucket: Optional[str] = None) -> List[ProjectRecord]:
        bucket = bucket or self.context.client_id
        if not bucket:
            self.projects = []
            return self.projects

        client_before = self.context.client_id
        projects = await self._read(
            "projects", lambda: self.gateway.list_projects(bucket), []
        )
        pending = self._pending_projects.get(bucket, {})
        listed = {p.name for p in projects}
        for name in list(pending):
            if name in listed:
                del pending[name]
        merged = merge_by_name(projects, pending.values())

        if bucket != client_before:
            return merged
        if self.context.client_id != bucket:
            self._stale_drops += 1
            return merged
        self.projects = merged
        return merged

    # ====================
    # Selection
    # ====================

    def _cancel_pollers(self) -> None:
        if self._processing_poller is not None:
            self._processing_poller.cancel()
            self._processing_poller = None
        self._processing_task = None
        self.receipts.cancel()

    def _reset_project_state(self) -> None:
        self._cancel_pollers()
        self.rules.reset()
        self.receipts.reset()
        self.processing_status = None
        self.status_history = []
        self.winners = []
        self.validated_files = []
        self.raw_entries_count = 0
        self.analytics = None

    async def select_client(self, client_id: Optional[str]) -> None:
        """Select a client; the project and all project data are cleared"""
        if not self.selection.select_client(client_id):
            return
        self._reset_project_state()
        self.projects = []
        if client_id:
            await self.refresh_projects(client_id)

    async def select_project(
        self,
        project_id: Optional[str],
        flight_start: Optional[date] = None,
        flight_end: Optional[date] = None,
    ) -> None:
        """Select a project of the current client and load everything for it"""
        self.selection.select_project(project_id, flight_start, flight_end)
        self._reset_project_state()
        if project_id:
            await self._load_selected()

    def set_flight_window(self, flight_start: Optional[date], flight_end: Optional[date]) -> SelectionContext:
        return self.selection.set_flight_window(flight_start, flight_end)

    async def _load_selected(self) -> None:
        await asyncio.gather(
            self._reconcile_rules(),
            self.reload_project_data(),
            self._read("receipt_summary", self.receipts.load_summary, None),
        )

    async def _reconcile_rules(self) -> RulesMode:
        pair = self.context.pair
        mode = await self.rules.reconcile()
        if self.selection.is_current(pair):
            self.receipts.adopt_keyword(self.rules.saved)
        return mode

    async def reconcile_rules(self) -> RulesMode:
        return await self._reconcile_rules()

    # ====================
    # Project data
    # ====================

    async def _status_or_none(self, bucket: str, project: str) -> Optional[ProcessingStatus]:
        try:
            return await self.gateway.get_processing_status(bucket, project)
        except NotFoundError:
            return None

    async def _winners_or_empty(self, bucket: str, project: str) -> List[WinnerRecord]:
        try:
            return await self.gateway.get_winners(bucket, project)
        except NotFoundError:
            return []

    async def _raw_count_or_zero(self, bucket: str, project: str) -> int:
        try:
            return await self.gateway.get_raw_entries_count(bucket, project)
        except NotFoundError:
            return 0

    async def reload_project_data(self) -> None:
        """Refresh processing status, winners, raw count and validated files"""
        if not self.context.has_full_selection:
            return
        pair = self.context.pair
        bucket, project = pair

        status, winners, raw_count = await asyncio.gather(
            self._read("processing_status", lambda: self._status_or_none(bucket, project), None),
            self._read("winners", lambda: self._winners_or_empty(bucket, project), []),
            self._read("raw_count", lambda: self._raw_count_or_zero(bucket, project), 0),
        )

        validated: List[StoredFile] = []
        if status is not None and status.state == ProcessingState.COMPLETED:
            validated = await self._read(
                "validated_files", lambda: self.gateway.list_validated_files(bucket, project), []
            )

        if not self._accept(pair):
            return
        self._record_status(status)
        self.winners = winners
        self.raw_entries_count = raw_count
        self.validated_files = validated

    def _record_status(self, status: Optional[ProcessingStatus]) -> None:
        self.processing_status = status
        if status is not None:
            self.status_history.append(status)

    # ====================
    # Processing
    # ====================

    async def start_processing(self) -> Dict[str, Any]:
        """
        Trigger final entry processing and start polling its status.

        Raises:
            InvalidWorkflowStateError: no selection or no saved rules
            GatewayError: the trigger failed
        """
        if not self.can_process_data:
            raise InvalidWorkflowStateError(
                "Save contest rules before processing entries",
                current_state=self.rules_mode.value,
            )
        pair = self.context.pair
        bucket, project = pair
        with self.operations.track("processing"):
            response = await self.gateway.process_data(bucket, project, ProcessingType.FINAL)
        logger.info(f"Started entry processing for {bucket}/{project}")
        if self._accept(pair):
            self.start_processing_poll(pair)
        return response

    def start_processing_poll(self, pair: Optional[SelectionPair] = None) -> asyncio.Task:
        """
        Poll processing status until completed or error; replaces any running poll.

        Raises:
            InvalidWorkflowStateError: no selection, or `pair` is no longer selected
        """
        bucket, project = pair or self._require_selection()
        if not self.selection.is_current((bucket, project)):
            raise InvalidWorkflowStateError(f"{bucket}/{project} is no longer selected")
        if self._processing_poller is not None:
            self._processing_poller.cancel()

        poller: JobPoller[Optional[ProcessingStatus]] = JobPoller(
            lambda: self._status_or_none(bucket, project),
            lambda status: status is not None and status.is_terminal,
            interval=self.config.processing_poll_interval,
            max_attempts=None,
            name=f"processing:{bucket}/{project}",
        )
        self._processing_poller = poller
        task = asyncio.create_task(self._run_processing_poll(poller, (bucket, project)))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        self._processing_task = task
        return task

    async def _run_processing_poll(
        self, poller: JobPoller, pair: SelectionPair
    ) -> Optional[ProcessingStatus]:
        def on_tick(tick: PollTick[Optional[ProcessingStatus]]) -> None:
            if self._accept(pair) and tick.value is not None:
                self._record_status(tick.value)

        self.operations.start("processing_poll")
        result = await poller.run(on_tick)

        if result.outcome == PollOutcome.CANCELLED:
            # A replaced poll leaves the operation status to its successor
            if self._processing_poller in (None, poller):
                self.operations.reset("processing_poll")
            return None
        if result.outcome == PollOutcome.FAILED:
            self.operations.fail("processing_poll", str(result.error))
            return None

        self.operations.succeed("processing_poll")
        if self._accept(pair) and result.value is not None:
            if result.value.state == ProcessingState.COMPLETED:
                await self.reload_project_data()
        return result.value

    async def wait_for_processing(self) -> Optional[ProcessingStatus]:
        if self._processing_task is None:
            return self.processing_status
        return await self._processing_task

    async def export_filtered_csv(self) -> str:
        """Run temp processing, which returns a CSV download URL"""
        bucket, project = self._require_selection()
        with self.operations.track("csv_export"):
            response = await self.gateway.process_data(bucket, project, ProcessingType.TEMP)
            url = response.get("download_url") if isinstance(response, dict) else None
            if not url:
                raise GatewayError("No download URL received", path="/data/process")
        return url

    # ====================
    # Rules
    # ====================

    async def submit_rules(self) -> ContestRules:
        with self.operations.track("rules_submit"):
            submitted = await self.rules.submit()
        if self.rules.mode == RulesMode.SAVED:
            self.receipts.adopt_keyword(self.rules.saved)
        return submitted

    async def delete_rules(self) -> None:
        with self.operations.track("rules_delete"):
            await self.rules.delete_rules()
        self.receipts.adopt_keyword(None)

    # ====================
    # Winners
    # ====================

    async def select_winners(self, number_of_winners: int) -> Dict[str, Any]:
        """Draw winners, then reload project data for the winners list"""
        with self.operations.track("select_winners"):
            response = await winner_gate.select_winners(
                self.gateway, self.context, self.processing_status, number_of_winners
            )
        await self.reload_project_data()
        return response

    async def export_winners(self) -> str:
        bucket, project = self._require_selection()
        with self.operations.track("winners_export"):
            return await self.gateway.export_winners(bucket, project)

    # ====================
    # Files
    # ====================

    async def file_download_url(self, file_name: str) -> str:
        bucket, project = self._require_selection()
        with self.operations.track("file_download"):
            return await self.gateway.get_file_download_url(bucket, project, file_name)

    async def validated_export_url(self) -> str:
        bucket, project = self._require_selection()
        with self.operations.track("validated_export"):
            return await self.gateway.get_validated_export_url(bucket, project)

    async def upload_data_file(self, filename: str, content: bytes) -> Optional[str]:
        bucket, project = self._require_selection()
        with self.operations.track("file_upload"):
            key = await self.files.upload(bucket, project, filename, content)
        await self.reload_project_data()
        return key

    # ====================
    # Receipts
    # ====================

    async def save_receipt_keyword(self, keyword: str) -> ContestRules:
        pair = self._require_selection()
        with self.operations.track("receipt_keyword"):
            updated = await self.receipts.save_keyword(keyword)
        if self.selection.is_current(pair):
            self.rules.replace_saved(updated)
        return updated

    async def upload_receipts(self, filename: str, content: bytes) -> Optional[ReceiptBatchSummary]:
        with self.operations.track("receipt_upload"):
            return await self.receipts.upload(filename, content)

    async def receipt_csv_url(self) -> str:
        with self.operations.track("receipt_download"):
            return await self.receipts.csv_download_url()

    # ====================
    # Provisioning
    # ====================

    async def create_client(
        self,
        client_name: str,
        project_handle: str,
        flight_start: Optional[date],
        flight_end: Optional[date],
    ) -> ProvisioningResult:
        """Create a client bucket with its first project and select it"""
        return await self._provision(ProvisioningRequest(
            mode=ProvisioningMode.CLIENT,
            client_name=client_name,
            project_handle=project_handle,
            flight_start=flight_start,
            flight_end=flight_end,
        ))

    async def create_project(
        self,
        project_handle: str,
        flight_start: Optional[date],
        flight_end: Optional[date],
    ) -> ProvisioningResult:
        """Create a project under the selected client and select it"""
        return await self._provision(ProvisioningRequest(
            mode=ProvisioningMode.PROJECT,
            project_handle=project_handle,
            flight_start=flight_start,
            flight_end=flight_end,
        ))

    async def _provision(self, request: ProvisioningRequest) -> ProvisioningResult:
        with self.operations.track("provisioning"):
            return await self.provisioning.submit(
                request,
                selected_client=self.context.client_id,
                on_success=self._adopt_provisioned,
            )

    async def _adopt_provisioned(self, result: ProvisioningResult) -> None:
        bucket, project = result.bucket_name, result.project_name

        if not any(c.name == bucket for c in self.clients):
            self._pending_clients[bucket] = ClientBucket(name=bucket)
        self.clients = merge_by_name(self.clients, self._pending_clients.values())

        record = ProjectRecord(name=project, path=f"{bucket}/{project}")
        self._pending_projects.setdefault(bucket, {})[project] = record
        existing = self.projects if self.context.client_id == bucket else []

        self._reset_project_state()
        self.selection.select_pair(bucket, project, result.flight_start, result.flight_end)
        self.projects = merge_by_name(existing, [record])
        await self._load_selected()

    # ====================
    # Analytics & health
    # ====================

    async def load_analytics(self, refresh: bool = False) -> Optional[ScanAnalytics]:
        bucket, project = self._require_selection()
        analytics = await self._read(
            "analytics", lambda: self.gateway.get_analytics(bucket, project, refresh), None
        )
        if self._accept((bucket, project)):
            self.analytics = analytics
        return analytics

    async def check_health(self) -> bool:
        self.health = await self._read("health", self.gateway.get_health, None)
        return self.health is not None

    # ====================
    # Lifecycle
    # ====================

    async def close(self) -> None:
        self._cancel_pollers()
        tasks = [task for task in self._background_tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["ContestWorkflowOrchestrator", "merge_by_name"]
