"""
Data File Uploads

Project data files (entries, documents) go to storage through the generic
presign endpoint followed by a PUT of the file body.
"""

import logging
import mimetypes
import os
from typing import Iterable, Optional

from .protocols import ContestValidationError, GatewayClientProtocol, UploadTransportProtocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024
DEFAULT_FILE_TYPES = (".json", ".csv", ".xlsx", ".zip")

# mimetypes misses some of these on minimal systems
CONTENT_TYPES = {
    ".json": "application/json",
    ".csv": "text/csv",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".zip": "application/zip",
}


def content_type_for(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    if ext in CONTENT_TYPES:
        return CONTENT_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


class DataFileUploader:
    """Validates and uploads data files for a project"""

    def __init__(
        self,
        gateway: GatewayClientProtocol,
        uploader: UploadTransportProtocol,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        accepted_file_types: Iterable[str] = DEFAULT_FILE_TYPES,
    ):
        self.gateway = gateway
        self.uploader = uploader
        self.max_file_size = max_file_size
        self.accepted_file_types = tuple(t.lower() for t in accepted_file_types)

    def validate_file(self, filename: str, size: int) -> None:
        if size > self.max_file_size:
            limit_mb = round(self.max_file_size / (1024 * 1024))
            raise ContestValidationError(f"File size exceeds {limit_mb}MB limit", field="size")

        ext = os.path.splitext(filename)[1].lower()
        if ext not in self.accepted_file_types:
            raise ContestValidationError(
                f"File type {ext or '(none)'} not supported. "
                f"Accepted types: {', '.join(self.accepted_file_types)}",
                field="filename",
            )

    async def upload(
        self,
        bucket: str,
        project: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Optional[str]:
        """
        Upload one file.

        Returns:
            Storage key of the uploaded file, if the gateway reported one
        """
        self.validate_file(filename, len(content))
        content_type = content_type or content_type_for(filename)

        target = await self.gateway.presign_upload(bucket, project, filename, content_type)
        await self.uploader.put_file(target.upload_url, content, content_type)

        logger.info(f"Uploaded {filename} ({len(content)} bytes) to {bucket}/{project}")
        return target.file_key


__all__ = [
    "DEFAULT_MAX_FILE_SIZE",
    "DEFAULT_FILE_TYPES",
    "content_type_for",
    "DataFileUploader",
]
