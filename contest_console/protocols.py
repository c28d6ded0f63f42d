"""
Contest Console Protocols

Defines interfaces for dependency injection and testing, and the
exception taxonomy shared by the workflow components.
"""

from typing import Any, Dict, List, Optional, Protocol

from .models import (
    ClientBucket,
    ContestRules,
    PresignedUpload,
    ProcessingStatus,
    ProcessingType,
    ProjectRecord,
    ScanAnalytics,
    StoredFile,
    WinnerRecord,
)


# ====================
# Gateway Protocol
# ====================


class GatewayClientProtocol(Protocol):
    """Protocol for the contest backend API gateway"""

    async def call(
        self, method: str, path: str, body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return decoded JSON, raising GatewayError on failure"""
        ...

    # Clients & projects
    async def list_buckets(self) -> List[ClientBucket]:
        """List client buckets"""
        ...

    async def list_projects(self, bucket: str) -> List[ProjectRecord]:
        """List projects of a client"""
        ...

    async def create_client(
        self, bucket_name: str, project_data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a client bucket, optionally with its first project"""
        ...

    # Contest rules
    async def get_rules(self, bucket: str, project: str) -> ContestRules:
        """Get saved rules, raising NotFoundError when none exist"""
        ...

    async def create_rules(self, bucket: str, project: str, rules: Dict[str, Any]) -> Dict[str, Any]:
        """Create rules (POST)"""
        ...

    async def update_rules(self, bucket: str, project: str, rules: Dict[str, Any]) -> Dict[str, Any]:
        """Update rules (PUT)"""
        ...

    async def delete_rules(self, bucket: str, project: str) -> Dict[str, Any]:
        """Remove rules"""
        ...

    # Data processing
    async def process_data(
        self, bucket: str, project: str, processing_type: ProcessingType = ProcessingType.FINAL
    ) -> Dict[str, Any]:
        """Trigger entry processing"""
        ...

    async def get_processing_status(self, bucket: str, project: str) -> ProcessingStatus:
        """Get processing status"""
        ...

    async def get_raw_entries_count(self, bucket: str, project: str) -> int:
        """Count raw entries"""
        ...

    async def list_validated_files(self, bucket: str, project: str) -> List[StoredFile]:
        """List validated entry files"""
        ...

    # Winners
    async def select_winners(self, bucket: str, project: str, number_of_winners: int) -> Dict[str, Any]:
        """Trigger winner selection"""
        ...

    async def get_winners(self, bucket: str, project: str) -> List[WinnerRecord]:
        """Get selected winners"""
        ...

    async def export_winners(self, bucket: str, project: str) -> str:
        """Get winners CSV download URL"""
        ...

    # Files
    async def presign_upload(
        self, bucket: str, project: str, filename: str, content_type: str
    ) -> PresignedUpload:
        """Presigned PUT target for a data file"""
        ...

    async def presign_partner_upload(
        self, client_name: str, project_id: str, filename: str, content_type: str
    ) -> PresignedUpload:
        """Presigned POST target (fields) for a partner upload"""
        ...

    async def get_object(self, bucket: str, key: str) -> Dict[str, Any]:
        """Read a JSON object from storage"""
        ...

    async def get_object_download_url(self, bucket: str, key: str) -> str:
        """Presigned download URL for an object"""
        ...

    async def get_file_download_url(self, bucket: str, project: str, file_name: str) -> str:
        """Download URL for a project file"""
        ...

    async def get_validated_export_url(self, bucket: str, project: str) -> str:
        """Download URL for the validated ZIP export"""
        ...

    # Analytics & health
    async def get_analytics(self, bucket: str, project: str, refresh: bool = False) -> ScanAnalytics:
        """Read (or force-refresh) scan analytics"""
        ...

    async def get_health(self) -> Dict[str, Any]:
        """System health probe"""
        ...


class UploadTransportProtocol(Protocol):
    """Protocol for direct-to-storage uploads against presigned targets"""

    async def put_file(self, upload_url: str, content: bytes, content_type: str) -> None:
        """PUT the file body to a presigned URL"""
        ...

    async def post_form(
        self, upload_url: str, fields: Dict[str, str], filename: str,
        content: bytes, content_type: str,
    ) -> None:
        """POST a multipart form (presigned fields plus file)"""
        ...


# ====================
# Custom Exceptions
# ====================


class ContestConsoleError(Exception):
    """Base exception for contest console errors"""
    pass


class GatewayError(ContestConsoleError):
    """Raised when the gateway answers with a failure status or cannot be reached"""

    def __init__(self, message: str, status: Optional[int] = None, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.path = path

    def __str__(self) -> str:
        if self.status is None:
            return f"Gateway error: {self.message}"
        return f"API Error: {self.status} {self.message}"


class NotFoundError(GatewayError):
    """Raised on 404; for rules, status, winners and summaries this means 'no data yet'"""
    pass


class ResourceConflictError(GatewayError):
    """Raised when the gateway reports the resource already exists"""
    pass


class ContestValidationError(ContestConsoleError):
    """Raised when local validation blocks an action before any network call"""

    def __init__(self, message: str, errors: Optional[List[str]] = None, field: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or [message]
        self.field = field


class InvalidWorkflowStateError(ContestConsoleError):
    """Raised when an action is not permitted in the current workflow state"""

    def __init__(self, message: str, current_state: Optional[str] = None):
        super().__init__(message)
        self.current_state = current_state


class PollTimeoutError(ContestConsoleError):
    """Raised when a bounded poll runs out of attempts; the backend may still be working"""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class StaleResponseError(ContestConsoleError):
    """Raised internally when a response belongs to a selection that is no longer current"""

    def __init__(self, message: str, pair: Optional[tuple] = None):
        super().__init__(message)
        self.pair = pair


__all__ = [
    "GatewayClientProtocol",
    "UploadTransportProtocol",
    "ContestConsoleError",
    "GatewayError",
    "NotFoundError",
    "ResourceConflictError",
    "ContestValidationError",
    "InvalidWorkflowStateError",
    "PollTimeoutError",
    "StaleResponseError",
]
