"""
Contest Console Clients

HTTP clients for the contest backend gateway and presigned storage uploads.
"""

from .gateway_client import ContestGatewayClient
from .upload_client import StorageUploadClient

__all__ = ["ContestGatewayClient", "StorageUploadClient"]
