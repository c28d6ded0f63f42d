#!/usr/bin/env python3
"""
Core Module for the Contest Console

Shared infrastructure used by the contest workflow orchestrator.

COMPONENTS:
    - config/: Environment-driven configuration (console + logging)
    - service_client_base.py: httpx-based HTTP client base with API key
      headers and transport injection

USAGE:
    from core.config import get_settings
    from core.service_client_base import BaseServiceClient

    settings = get_settings()
"""

from .service_client_base import BaseServiceClient

__all__ = [
    "BaseServiceClient",
]

__version__ = "1.0.0"
