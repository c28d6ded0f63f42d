"""
Contest Console Factory

Factory for creating contest console components with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import ConsoleConfig, get_settings

from .clients.gateway_client import ContestGatewayClient
from .clients.upload_client import StorageUploadClient
from .orchestrator import ContestWorkflowOrchestrator

logger = logging.getLogger(__name__)


class ContestConsoleFactory:
    """Factory for creating contest console components"""

    def __init__(self, config: Optional[ConsoleConfig] = None):
        self.config = config or get_settings()
        self._gateway: Optional[ContestGatewayClient] = None
        self._uploader: Optional[StorageUploadClient] = None
        self._orchestrator: Optional[ContestWorkflowOrchestrator] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info(f"Initializing contest console against {self.config.api_base_url}")

        if not self.config.api_key:
            logger.warning("No API key configured; gateway requests will be unauthenticated")

        self._gateway = ContestGatewayClient(
            base_url=self.config.api_base_url,
            api_key=self.config.api_key or None,
            partner_api_key=self.config.partner_api_key or None,
            timeout=self.config.request_timeout,
        )
        self._uploader = StorageUploadClient()

        self._orchestrator = ContestWorkflowOrchestrator(
            gateway=self._gateway,
            config=self.config,
            uploader=self._uploader,
        )

        logger.info("Contest console components initialized")

    async def close(self) -> None:
        """Close all components"""
        if self._orchestrator:
            await self._orchestrator.close()

        if self._gateway:
            await self._gateway.close()

        logger.info("Contest console components closed")

    @property
    def gateway(self) -> ContestGatewayClient:
        """Get gateway client"""
        if not self._gateway:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._gateway

    @property
    def uploader(self) -> StorageUploadClient:
        """Get storage upload client"""
        if not self._uploader:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._uploader

    @property
    def orchestrator(self) -> ContestWorkflowOrchestrator:
        """Get workflow orchestrator"""
        if not self._orchestrator:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._orchestrator


# Global factory instance
_factory: Optional[ContestConsoleFactory] = None


async def get_factory() -> ContestConsoleFactory:
    """Get or create factory instance"""
    global _factory
    if _factory is None:
        _factory = ContestConsoleFactory()
        await _factory.initialize()
    return _factory


async def close_factory() -> None:
    """Close factory instance"""
    global _factory
    if _factory:
        await _factory.close()
        _factory = None


__all__ = [
    "ContestConsoleFactory",
    "get_factory",
    "close_factory",
]
