"""
Base Service Client for Backend Gateway Communication

Base class for clients talking to the contest backend API gateway.
"""

import httpx
import logging
from typing import Optional, Dict, Any
from abc import ABC

logger = logging.getLogger(__name__)


class BaseServiceClient(ABC):
    """
    Gateway client base class

    Handles:
    1. Base URL normalisation
    2. API key header (x-api-key) when configured
    3. HTTP client management
    4. Timeout control

    Example:
        class ContestGatewayClient(BaseServiceClient):
            service_name = "contest_gateway"

            async def list_buckets(self):
                response = await self.request("GET", "/buckets/list")
                return response.json()
    """

    # Subclasses must define this
    service_name: str = None  # e.g. "contest_gateway"

    API_KEY_HEADER = "x-api-key"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialise the gateway client

        Args:
            base_url: Gateway base URL (stage included, no trailing slash needed)
            api_key: API key sent as x-api-key; omitted when empty
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not self.service_name:
            raise ValueError(f"{self.__class__.__name__} must define 'service_name'")

        self.base_url = base_url.rstrip('/')
        self.api_key = api_key or None

        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers=self._build_default_headers(),
            transport=transport,
        )

        logger.debug(
            f"Initialized {self.service_name} client: {self.base_url} "
            f"(api_key={'set' if self.api_key else 'unset'})"
        )

    def _build_default_headers(self) -> Dict[str, str]:
        """
        Build default request headers

        Returns:
            Headers dict
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"contest-console/{self.service_name}",
        }

        if self.api_key:
            headers[self.API_KEY_HEADER] = self.api_key

        return headers

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
        logger.debug(f"Closed {self.service_name} client")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================
    # HTTP method wrappers
    # ========================================

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """Send a request to {base_url}{path}"""
        url = f"{self.base_url}{path}"
        return await self.client.request(method, url, json=json, params=params, headers=headers)


__all__ = ["BaseServiceClient"]
