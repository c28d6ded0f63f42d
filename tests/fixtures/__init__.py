"""
Shared Test Fixtures

Factories used across all test layers.

Structure:
    - contest_fixtures.py: Contest console models and gateway payloads
"""

from .contest_fixtures import (
    ContestTestDataFactory,
    make_bucket_name,
    make_client_name,
)

__all__ = [
    "ContestTestDataFactory",
    "make_bucket_name",
    "make_client_name",
]
