"""
Contest Gateway Client

Typed wrapper around the contest backend API gateway. Non-2xx answers are
mapped to typed failures; nothing is retried here.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from core.service_client_base import BaseServiceClient

from ..models import (
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
from ..protocols import GatewayError, NotFoundError, ResourceConflictError

logger = logging.getLogger(__name__)


def _seg(value: str) -> str:
    """Escape one path segment"""
    return quote(str(value), safe="")


def _unwrap_list(data: Any, *keys: str) -> List[Any]:
    """Accept a bare JSON list or a {key: [...]} envelope"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


class ContestGatewayClient(BaseServiceClient):
    """Client for the contest backend API gateway"""

    service_name = "contest_gateway"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        partner_api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url, api_key=api_key, timeout=timeout, transport=transport)
        self.partner_api_key = partner_api_key or None

    # ====================
    # Core request
    # ====================

    async def call(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Send a request and decode the JSON answer.

        Args:
            method: HTTP method
            path: Path under the gateway base URL
            body: JSON body
            params: Query parameters
            headers: Extra headers (override defaults)

        Returns:
            Decoded JSON, or an empty dict for empty bodies

        Raises:
            NotFoundError: 404
            ResourceConflictError: 409 or an "already exists" failure
            GatewayError: any other failure status or a transport error
        """
        try:
            response = await self.request(method, path, json=body, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise GatewayError(str(e) or e.__class__.__name__, path=path) from e

        if response.status_code >= 400:
            raise self._map_error(response, path)

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError("Invalid JSON in response", status=response.status_code, path=path) from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            for key in ("message", "error", "detail"):
                if data.get(key):
                    return str(data[key])
        return response.text.strip() or response.reason_phrase or "Request failed"

    def _map_error(self, response: httpx.Response, path: str) -> GatewayError:
        status = response.status_code
        message = self._error_message(response)

        if status == 404:
            return NotFoundError(message, status=status, path=path)
        if status == 409 or "already exists" in message.lower():
            return ResourceConflictError(message, status=status, path=path)

        logger.warning(f"Gateway returned {status} for {path}: {message}")
        return GatewayError(message, status=status, path=path)

    async def _download_url(self, path: str) -> str:
        data = await self.call("GET", path)
        url = data.get("download_url") if isinstance(data, dict) else None
        if not url:
            raise GatewayError("No download URL received", path=path)
        return url

    # ====================
    # Clients & projects
    # ====================

    async def list_buckets(self) -> List[ClientBucket]:
        data = await self.call("GET", "/buckets/list")
        items = _unwrap_list(data, "buckets", "clients")
        return [
            ClientBucket(name=item) if isinstance(item, str) else ClientBucket.model_validate(item)
            for item in items
        ]

    async def list_projects(self, bucket: str) -> List[ProjectRecord]:
        data = await self.call("GET", f"/buckets/{_seg(bucket)}/projects")
        items = _unwrap_list(data, "projects")
        return [
            ProjectRecord(name=item) if isinstance(item, str) else ProjectRecord.model_validate(item)
            for item in items
        ]

    async def create_client(
        self, bucket_name: str, project_data: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"bucket_name": bucket_name}
        if project_data is not None:
            body["project_data"] = project_data
        return await self.call("POST", "/clients/create", body)

    # ====================
    # Contest rules
    # ====================

    def _rules_path(self, bucket: str, project: str) -> str:
        return f"/contest-rules/{_seg(bucket)}/{_seg(project)}"

    async def get_rules(self, bucket: str, project: str) -> ContestRules:
        path = self._rules_path(bucket, project)
        data = await self.call("GET", path)
        if isinstance(data, dict) and "rules" in data:
            data = data["rules"]
        if not data:
            raise NotFoundError("No contest rules", status=404, path=path)
        return ContestRules.model_validate(data)

    async def create_rules(self, bucket: str, project: str, rules: Dict[str, Any]) -> Dict[str, Any]:
        return await self.call("POST", self._rules_path(bucket, project), {"rules": rules})

    async def update_rules(self, bucket: str, project: str, rules: Dict[str, Any]) -> Dict[str, Any]:
        return await self.call("PUT", self._rules_path(bucket, project), {"rules": rules})

    async def delete_rules(self, bucket: str, project: str) -> Dict[str, Any]:
        return await self.call("DELETE", self._rules_path(bucket, project))

    # ====================
    # Data processing
    # ====================

    async def process_data(
        self, bucket: str, project: str, processing_type: ProcessingType = ProcessingType.FINAL
    ) -> Dict[str, Any]:
        return await self.call("POST", "/data/process", {
            "bucket_name": bucket,
            "project_name": project,
            "processing_type": ProcessingType(processing_type).value,
        })

    async def get_processing_status(self, bucket: str, project: str) -> ProcessingStatus:
        data = await self.call("GET", f"/data/status/{_seg(bucket)}/{_seg(project)}")
        return ProcessingStatus.model_validate(data)

    async def get_raw_entries_count(self, bucket: str, project: str) -> int:
        data = await self.call("GET", f"/data/raw-count/{_seg(bucket)}/{_seg(project)}")
        if isinstance(data, dict):
            return int(data.get("count") or 0)
        return int(data or 0)

    async def list_validated_files(self, bucket: str, project: str) -> List[StoredFile]:
        data = await self.call("GET", f"/data/validated/{_seg(bucket)}/{_seg(project)}")
        return [StoredFile.model_validate(item) for item in _unwrap_list(data, "files")]

    # ====================
    # Winners
    # ====================

    async def select_winners(self, bucket: str, project: str, number_of_winners: int) -> Dict[str, Any]:
        return await self.call("POST", "/winners/select", {
            "bucket_name": bucket,
            "project_name": project,
            "number_of_winners": number_of_winners,
        })

    async def get_winners(self, bucket: str, project: str) -> List[WinnerRecord]:
        data = await self.call("GET", f"/winners/{_seg(bucket)}/{_seg(project)}")
        return [WinnerRecord.model_validate(item) for item in _unwrap_list(data, "winners")]

    async def export_winners(self, bucket: str, project: str) -> str:
        return await self._download_url(f"/winners/export/{_seg(bucket)}/{_seg(project)}")

    # ====================
    # Files
    # ====================

    async def presign_upload(
        self, bucket: str, project: str, filename: str, content_type: str
    ) -> PresignedUpload:
        data = await self.call("POST", "/presign", {
            "bucket_name": bucket,
            "project_name": project,
            "filename": filename,
            "content_type": content_type,
        })
        return PresignedUpload.model_validate(data)

    async def presign_partner_upload(
        self, client_name: str, project_id: str, filename: str, content_type: str
    ) -> PresignedUpload:
        headers = {self.API_KEY_HEADER: self.partner_api_key} if self.partner_api_key else None
        data = await self.call("POST", "/presign/partner", {
            "filename": filename,
            "content_type": content_type,
            "client_name": client_name,
            "project_id": project_id,
        }, headers=headers)
        return PresignedUpload.model_validate(data)

    async def get_object(self, bucket: str, key: str) -> Dict[str, Any]:
        return await self.call("GET", f"/files/object/{_seg(bucket)}", params={"key": key})

    async def get_object_download_url(self, bucket: str, key: str) -> str:
        data = await self.call("GET", f"/files/object-url/{_seg(bucket)}", params={"key": key})
        url = data.get("download_url") if isinstance(data, dict) else None
        if not url:
            raise GatewayError("No download URL received", path=f"/files/object-url/{bucket}")
        return url

    async def get_file_download_url(self, bucket: str, project: str, file_name: str) -> str:
        return await self._download_url(
            f"/files/download/{_seg(bucket)}/{_seg(project)}/{_seg(file_name)}"
        )

    async def get_validated_export_url(self, bucket: str, project: str) -> str:
        return await self._download_url(f"/files/export/{_seg(bucket)}/{_seg(project)}/validated")

    # ====================
    # Analytics & health
    # ====================

    async def get_analytics(self, bucket: str, project: str, refresh: bool = False) -> ScanAnalytics:
        # PUT asks the backend to pull fresh numbers instead of its cache
        method = "PUT" if refresh else "GET"
        data = await self.call(method, f"/analytics/{_seg(bucket)}/{_seg(project)}")
        return ScanAnalytics.model_validate(data)

    async def get_health(self) -> Dict[str, Any]:
        return await self.call("GET", "/health")

    async def health_check(self) -> bool:
        """Check if the gateway is healthy"""
        try:
            await self.get_health()
            return True
        except Exception as e:
            logger.warning(f"{self.service_name} health check failed: {e}")
            return False


__all__ = ["ContestGatewayClient"]
