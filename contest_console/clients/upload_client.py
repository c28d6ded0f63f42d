"""
Storage Upload Client

Sends file bodies straight to storage using presigned targets issued by the
gateway. Presigned URLs carry their own credentials, so no API key is sent.
"""

import logging
from typing import Dict, Optional

import httpx

from ..protocols import GatewayError

logger = logging.getLogger(__name__)


class StorageUploadClient:
    """Client for presigned direct-to-storage uploads"""

    def __init__(
        self,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _check(response: httpx.Response, upload_url: str) -> None:
        # S3 form posts answer 204 No Content on success
        if response.is_success:
            return
        logger.error(f"Upload failed: {response.status_code} {response.reason_phrase}")
        raise GatewayError(
            f"Upload failed: {response.reason_phrase or response.status_code}",
            status=response.status_code,
            path=upload_url.split("?", 1)[0],
        )

    async def put_file(self, upload_url: str, content: bytes, content_type: str) -> None:
        """PUT the file body to a presigned URL"""
        try:
            async with self._client() as client:
                response = await client.put(
                    upload_url, content=content, headers={"Content-Type": content_type}
                )
        except httpx.HTTPError as e:
            raise GatewayError(f"Upload failed: {e}") from e
        self._check(response, upload_url)

    async def post_form(
        self,
        upload_url: str,
        fields: Dict[str, str],
        filename: str,
        content: bytes,
        content_type: str,
    ) -> None:
        """POST presigned form fields plus the file as multipart/form-data"""
        try:
            async with self._client() as client:
                response = await client.post(
                    upload_url,
                    data=fields,
                    files={"file": (filename, content, content_type)},
                )
        except httpx.HTTPError as e:
            raise GatewayError(f"Upload failed: {e}") from e
        self._check(response, upload_url)


__all__ = ["StorageUploadClient"]
