"""
Unit Test Fixtures for the Contest Console

The in-memory gateway mock is shared with the component layer for the few
unit tests that must prove nothing was sent.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.component.mocks import MockGatewayClient


@pytest.fixture
def mock_gateway() -> MockGatewayClient:
    return MockGatewayClient()
