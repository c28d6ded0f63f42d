"""
Receipt Keyword/Upload Coordinator

Manages the receipt product keyword stored in the contest rules, the
partner upload of receipt batches and the polling for the batch summary
written by the receipt pipeline.
"""

import asyncio
import logging
from typing import Optional

from .job_poller import JobPoller
from .models import ContestRules, PollOutcome, ReceiptBatchSummary, UploadState
from .protocols import (
    ContestValidationError,
    GatewayClientProtocol,
    GatewayError,
    InvalidWorkflowStateError,
    NotFoundError,
    PollTimeoutError,
    UploadTransportProtocol,
)
from .provisioning import client_name_from_bucket
from .selection import SelectionPair, SelectionState

logger = logging.getLogger(__name__)

RECEIPT_UPLOAD_FILENAME = "receipts.zip"
RECEIPT_CONTENT_TYPE = "application/zip"
TIMEOUT_MESSAGE = "Processing timeout - the backend may still be working, check again later"


def summary_key(project: str) -> str:
    return f"{project}/receipts/results/summary_latest.json"


class ReceiptCoordinator:
    """Receipt keyword and batch upload state for the selected project"""

    def __init__(
        self,
        gateway: GatewayClientProtocol,
        uploader: UploadTransportProtocol,
        selection: SelectionState,
        poll_interval: float = 5.0,
        max_attempts: int = 60,
    ):
        self.gateway = gateway
        self.uploader = uploader
        self.selection = selection
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

        self.keyword: Optional[str] = None
        self.summary: Optional[ReceiptBatchSummary] = None
        self.state = UploadState.IDLE
        self.error: Optional[str] = None
        self.stale_drops = 0
        self._poller: Optional[JobPoller] = None
        # Bumped on every reset; uploads started under an older value are abandoned
        self._generation = 0

    def reset(self) -> None:
        self.cancel()
        self._generation += 1
        self.keyword = None
        self.summary = None
        self.state = UploadState.IDLE
        self.error = None

    def cancel(self) -> None:
        if self._poller is not None:
            self._poller.cancel()

    def _require_selection(self) -> SelectionPair:
        context = self.selection.context
        if not context.has_full_selection:
            raise InvalidWorkflowStateError("Select a client and project first")
        return context.pair

    def _accept(self, pair: SelectionPair, generation: Optional[int] = None) -> bool:
        if self.selection.is_current(pair) and generation in (None, self._generation):
            return True
        self.stale_drops += 1
        logger.debug(f"Dropped receipt result for {pair[0]}/{pair[1]}")
        return False

    # ====================
    # Keyword
    # ====================

    async def load_keyword(self, rules: Optional[ContestRules] = None) -> Optional[str]:
        """Keyword from the given rules, or from the saved rules when omitted"""
        pair = self._require_selection()
        if rules is None:
            try:
                rules = await self.gateway.get_rules(*pair)
            except NotFoundError:
                rules = None
            except GatewayError as e:
                logger.warning(f"Failed to load receipt keyword: {e}")
                rules = None
        if self._accept(pair):
            self.keyword = rules.product_keyword if rules else None
        return self.keyword

    def adopt_keyword(self, rules: Optional[ContestRules]) -> None:
        """Take the keyword from rules the caller already holds"""
        self.keyword = rules.product_keyword if rules else None

    async def save_keyword(self, keyword: str) -> ContestRules:
        """
        Store the keyword in the saved rules.

        Reads a fresh copy of the rules from the backend and writes it back
        with only the keyword changed; the editor draft is never involved.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise ContestValidationError("Please enter a keyword", field="receipt_product_keyword")
        pair = self._require_selection()

        current = await self.gateway.get_rules(*pair)
        updated = current.model_copy(update={"receipt_product_keyword": keyword})
        await self.gateway.update_rules(pair[0], pair[1], updated.to_payload())
        logger.info(f"Receipt keyword for {pair[0]}/{pair[1]} set to {keyword!r}")

        if self._accept(pair):
            self.keyword = keyword
        return updated

    # ====================
    # Summary
    # ====================

    async def _fetch_summary(self, bucket: str, project: str) -> Optional[ReceiptBatchSummary]:
        try:
            data = await self.gateway.get_object(bucket, summary_key(project))
        except NotFoundError:
            return None
        except GatewayError as e:
            logger.warning(f"Failed to read receipt summary for {bucket}/{project}: {e}")
            return None
        if not data:
            return None
        try:
            return ReceiptBatchSummary.model_validate(data)
        except ValueError as e:
            logger.warning(f"Malformed receipt summary for {bucket}/{project}: {e}")
            return None

    async def load_summary(self) -> Optional[ReceiptBatchSummary]:
        pair = self._require_selection()
        summary = await self._fetch_summary(*pair)
        if self._accept(pair):
            self.summary = summary
        return summary

    async def csv_download_url(self) -> str:
        pair = self._require_selection()
        if self.summary is None or not self.summary.csv_location:
            raise InvalidWorkflowStateError("No receipt results to download")
        return await self.gateway.get_object_download_url(pair[0], self.summary.csv_location)

    # ====================
    # Upload
    # ====================

    async def upload(self, filename: str, content: bytes) -> Optional[ReceiptBatchSummary]:
        """
        Upload a receipt batch and wait for its summary.

        Only a summary that differs from the one present before the upload
        counts as the result of this batch.

        Returns:
            The new summary, or None if polling was cancelled or the
            selection changed meanwhile

        Raises:
            ContestValidationError: not a .zip file (nothing sent)
            InvalidWorkflowStateError: no selection, or an upload is already running
            GatewayError: presign or upload failed
            PollTimeoutError: no summary appeared within the attempt cap
        """
        if not filename.lower().endswith(".zip"):
            raise ContestValidationError("Please upload a ZIP file", field="filename")
        pair = self._require_selection()
        if self.state != UploadState.IDLE:
            raise InvalidWorkflowStateError(
                "A receipt upload is already in progress", current_state=self.state.value
            )

        bucket, project = pair
        generation = self._generation
        self.state = UploadState.UPLOADING
        self.error = None
        try:
            # Previous batch summary, if any; the object is overwritten in place
            previous = await self._fetch_summary(bucket, project)
            target = await self.gateway.presign_partner_upload(
                client_name_from_bucket(bucket), project,
                RECEIPT_UPLOAD_FILENAME, RECEIPT_CONTENT_TYPE,
            )
            await self.uploader.post_form(
                target.upload_url, target.fields or {},
                RECEIPT_UPLOAD_FILENAME, content, RECEIPT_CONTENT_TYPE,
            )
        except GatewayError as e:
            logger.error(f"Receipt upload for {bucket}/{project} failed: {e}")
            if generation == self._generation:
                self.state = UploadState.IDLE
                self.error = e.message if e.message.startswith("Upload failed") else f"Upload failed: {e}"
            raise
        except asyncio.CancelledError:
            if generation == self._generation:
                self.state = UploadState.IDLE
            raise

        if not self._accept(pair, generation):
            logger.info(f"Selection changed during receipt upload for {bucket}/{project}, not polling")
            if generation == self._generation:
                self.state = UploadState.IDLE
            return None

        logger.info(f"Uploaded receipt batch for {bucket}/{project}, waiting for results")
        self.state = UploadState.PROCESSING
        poller: JobPoller[Optional[ReceiptBatchSummary]] = JobPoller(
            lambda: self._fetch_summary(bucket, project),
            lambda summary: summary is not None and summary != previous,
            interval=self.poll_interval,
            max_attempts=self.max_attempts,
            name=f"receipts:{bucket}/{project}",
        )
        self._poller = poller
        try:
            result = await poller.run()
        finally:
            if generation == self._generation:
                self.state = UploadState.IDLE
                self._poller = None

        if result.outcome == PollOutcome.CANCELLED or not self._accept(pair, generation):
            return None
        if result.outcome == PollOutcome.TIMED_OUT:
            self.error = TIMEOUT_MESSAGE
            raise PollTimeoutError(TIMEOUT_MESSAGE, attempts=result.attempts)

        self.summary = result.value
        return self.summary


__all__ = [
    "RECEIPT_UPLOAD_FILENAME",
    "RECEIPT_CONTENT_TYPE",
    "TIMEOUT_MESSAGE",
    "summary_key",
    "ReceiptCoordinator",
]
