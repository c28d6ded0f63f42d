"""
Contest Console Data Models

Canonical data structures exchanged with the contest backend gateway and
held by the workflow orchestrator.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .regions import canonical_regions, timezone_labels, timezones_for, ContestTimezone


# =============================================================================
# ENUMS
# =============================================================================

class WinnerPeriod(str, Enum):
    """Recurring period (or region) a winner rule draws over"""
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    STATE = "state"


class ProcessingState(str, Enum):
    """Entry data processing state reported by the backend"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ProcessingType(str, Enum):
    """Processing mode for /data/process"""
    FINAL = "final"
    TEMP = "temp"  # On-demand CSV export, returns a download URL


class RulesMode(str, Enum):
    """Which view of the contest rules the workflow is in"""
    UNSET = "unset"  # No full client/project selection
    LOADING = "loading"
    SAVED = "saved"
    EDITING = "editing"


class ProvisioningState(str, Enum):
    """Client/project creation modal state"""
    IDLE = "idle"
    CREATING = "creating"
    SUCCESS = "success"
    ERROR = "error"


class ProvisioningMode(str, Enum):
    """What the provisioning modal creates"""
    CLIENT = "client"  # New client bucket plus its first project
    PROJECT = "project"  # New project under the selected client


class UploadState(str, Enum):
    """Receipt batch upload state"""
    IDLE = "idle"
    UPLOADING = "uploading"
    PROCESSING = "processing"


class OperationState(str, Enum):
    """Per-operation status"""
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class PollOutcome(str, Enum):
    """How a polling run terminated"""
    DONE = "done"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all gateway contracts"""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


def _coerce_date(value: Any) -> Any:
    """Accept 'YYYY-MM-DD', 'YYYY-MM-DDTHH:MM:SS' and datetimes for date fields"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if "T" in value:
            return value.split("T", 1)[0]
    return value


# =============================================================================
# SELECTION
# =============================================================================

class SelectionContext(BaseContract):
    """Current (client, project) pair and the project's flight window"""

    model_config = ConfigDict(frozen=True)

    client_id: Optional[str] = None
    project_id: Optional[str] = None
    flight_start: Optional[date] = None
    flight_end: Optional[date] = None

    @field_validator("flight_start", "flight_end", mode="before")
    @classmethod
    def _dates(cls, v):
        return _coerce_date(v)

    @model_validator(mode="after")
    def validate_project_requires_client(self):
        if self.project_id and not self.client_id:
            raise ValueError("project_id requires client_id")
        return self

    @property
    def pair(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.client_id, self.project_id)

    @property
    def has_full_selection(self) -> bool:
        return bool(self.client_id and self.project_id)

    @property
    def has_flight_window(self) -> bool:
        return self.flight_start is not None and self.flight_end is not None


# =============================================================================
# CONTEST RULES
# =============================================================================

class WinnerRule(BaseContract):
    """How many winners are drawn per period"""

    model_config = ConfigDict(frozen=True)

    id: str
    count: int = 1
    period: WinnerPeriod = WinnerPeriod.DAY


class PrizeStructure(BaseContract):
    model_config = ConfigDict(frozen=True)

    grand_prize: str = "Grand Prize"
    runner_up_prizes: Tuple[str, ...] = ("1st Prize", "2nd Prize")


class ContestRules(BaseContract):
    """
    Contest rules draft.

    Frozen: every edit produces a new instance. Keys the console does not
    model are kept so a read-modify-write never drops backend fields.
    Window ordering and counts are checked at submission, not here, so a
    draft can hold a half-edited state.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    age_min: int = 18
    age_max: int = 65
    eligible_states: Tuple[str, ...] = ("CA", "FL", "NY", "TX")
    entry_start_date: Optional[date] = None
    entry_end_date: Optional[date] = None
    max_entries_per_person: int = 1
    total_winners: int = 10
    winner_rules: Tuple[WinnerRule, ...] = (WinnerRule(id="1"),)
    flight_start_date: Optional[date] = None
    flight_end_date: Optional[date] = None
    prize_structure: PrizeStructure = Field(default_factory=PrizeStructure)

    # Receipt OCR matching
    receipt_product_keyword: Optional[str] = None
    required_products: Optional[Tuple[str, ...]] = None

    @field_validator(
        "entry_start_date", "entry_end_date", "flight_start_date", "flight_end_date",
        mode="before",
    )
    @classmethod
    def _dates(cls, v):
        return _coerce_date(v)

    @field_validator("eligible_states", mode="before")
    @classmethod
    def _states(cls, v):
        if v is None:
            return ()
        return canonical_regions(str(code).upper() for code in v)

    @property
    def timezones(self) -> List[ContestTimezone]:
        return timezones_for(self.eligible_states)

    @property
    def timezone_labels(self) -> List[str]:
        return timezone_labels(self.eligible_states)

    @property
    def product_keyword(self) -> Optional[str]:
        """Receipt keyword, falling back to the legacy required_products list"""
        if self.receipt_product_keyword:
            return self.receipt_product_keyword
        if self.required_products:
            return self.required_products[0]
        return None

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the contest-rules endpoints"""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def default_template(
        cls,
        flight_start: Optional[date] = None,
        flight_end: Optional[date] = None,
    ) -> "ContestRules":
        """Blank rules form, pre-filled with the project's flight window"""
        return cls(
            entry_start_date=flight_start,
            entry_end_date=flight_end,
            flight_start_date=flight_start,
            flight_end_date=flight_end,
        )


# =============================================================================
# PROCESSING / WINNERS / RECEIPTS
# =============================================================================

class ProcessingStatus(BaseContract):
    """Snapshot of entry data processing, produced by the backend"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    state: ProcessingState = Field(..., alias="status")
    eligible_contestants: int = 0
    raw_entries: Optional[int] = None
    duplicates_removed: Optional[int] = None
    rules_violations: Optional[int] = None
    filter_statistics: Optional[Dict[str, int]] = None
    message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (ProcessingState.COMPLETED, ProcessingState.ERROR)


class WinnerRecord(BaseContract):
    """Selected winner; rank order is authoritative from the backend"""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(..., ge=1)
    first_name: str
    last_name: str
    email: str
    zip_code: str
    selection_timestamp: datetime

    @property
    def prize_label(self) -> str:
        return "Grand Prize" if self.rank == 1 else f"Prize {self.rank}"


class ReceiptBatchSummary(BaseContract):
    """Result of a receipt batch run, written by the receipt pipeline"""

    model_config = ConfigDict(frozen=True)

    total_receipts: int = 0
    confirmed: int = 0
    unconfirmed: int = 0
    errors: int = 0
    confirmation_rate: str = "0%"
    processing_timestamp: datetime
    keyword_used: str = ""
    csv_location: Optional[str] = None


# =============================================================================
# STORAGE / LISTINGS
# =============================================================================

class ClientBucket(BaseContract):
    """Client storage namespace"""
    name: str
    creation_date: Optional[datetime] = None
    region: str = "us-east-1"


class ProjectRecord(BaseContract):
    """Project folder within a client bucket"""
    name: str
    path: Optional[str] = None
    last_modified: Optional[datetime] = None


class StoredFile(BaseContract):
    """Object in a project folder"""
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None


class PresignedUpload(BaseContract):
    """Presigned upload target; PUT style has file_key, POST style has fields"""
    upload_url: str
    file_key: Optional[str] = None
    fields: Optional[Dict[str, str]] = None


class ScanAnalytics(BaseContract):
    """QR scan analytics for a live campaign"""
    total_scans: int = 0
    unique_scans: int = 0
    scans_by_city: Dict[str, int] = Field(default_factory=dict)
    scans_by_time: Dict[str, int] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None
    qr_code_url: Optional[str] = None
    campaign_name: Optional[str] = None

    def top_locations(self, limit: int = 10) -> List[Tuple[str, int]]:
        return sorted(self.scans_by_city.items(), key=lambda kv: kv[1], reverse=True)[:limit]


# =============================================================================
# WORKFLOW STATE
# =============================================================================

class OperationStatus(BaseContract):
    """Tagged status of one named operation"""

    model_config = ConfigDict(frozen=True)

    state: OperationState = OperationState.IDLE
    reason: Optional[str] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProvisioningRequest(BaseContract):
    """Fields captured by the create client/project modal"""
    mode: ProvisioningMode = ProvisioningMode.CLIENT
    client_name: str = ""
    project_handle: str = ""
    flight_start: Optional[date] = None
    flight_end: Optional[date] = None

    @field_validator("flight_start", "flight_end", mode="before")
    @classmethod
    def _dates(cls, v):
        return _coerce_date(v)


class ProvisioningResult(BaseContract):
    """Created bucket/project identifiers"""
    bucket_name: str
    project_name: str
    flight_start: date
    flight_end: date
    response: Dict[str, Any] = Field(default_factory=dict)


__all__ = [
    # Enums
    "WinnerPeriod",
    "ProcessingState",
    "ProcessingType",
    "RulesMode",
    "ProvisioningState",
    "ProvisioningMode",
    "UploadState",
    "OperationState",
    "PollOutcome",
    # Models
    "BaseContract",
    "SelectionContext",
    "WinnerRule",
    "PrizeStructure",
    "ContestRules",
    "ProcessingStatus",
    "WinnerRecord",
    "ReceiptBatchSummary",
    "ClientBucket",
    "ProjectRecord",
    "StoredFile",
    "PresignedUpload",
    "ScanAnalytics",
    "OperationStatus",
    "ProvisioningRequest",
    "ProvisioningResult",
]
