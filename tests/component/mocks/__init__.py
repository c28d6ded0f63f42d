"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (gateway HTTP, storage uploads).
"""

from .gateway_mock import MockGatewayClient
from .upload_mock import MockUploadTransport

__all__ = [
    'MockGatewayClient',
    'MockUploadTransport',
]
