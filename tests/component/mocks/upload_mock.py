"""
Upload Transport Mock for Component Testing

Records presigned uploads instead of sending them.
"""
from typing import Any, Dict, List, Optional


class MockUploadTransport:
    """Mock for StorageUploadClient"""

    def __init__(self):
        self.puts: List[Dict[str, Any]] = []
        self.forms: List[Dict[str, Any]] = []
        self._should_raise: Optional[Exception] = None

    def set_error(self, error: Exception) -> None:
        self._should_raise = error

    async def put_file(self, upload_url: str, content: bytes, content_type: str) -> None:
        if self._should_raise:
            raise self._should_raise
        self.puts.append({"url": upload_url, "size": len(content), "content_type": content_type})

    async def post_form(self, upload_url, fields, filename, content, content_type) -> None:
        if self._should_raise:
            raise self._should_raise
        self.forms.append({
            "url": upload_url,
            "fields": dict(fields),
            "filename": filename,
            "size": len(content),
            "content_type": content_type,
        })
