"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── contest/     Orchestrator components against mocked collaborators
    └── mocks/       Mock implementations

Usage:
    pytest tests/component -v
    pytest tests/component/contest -v
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import MockGatewayClient, MockUploadTransport


def pytest_collection_modifyitems(items):
    """Tag everything under tests/component with the component marker"""
    for item in items:
        if item.nodeid.startswith("tests/component/"):
            item.add_marker(pytest.mark.component)


@pytest.fixture
def mock_gateway() -> MockGatewayClient:
    return MockGatewayClient()


@pytest.fixture
def mock_uploader() -> MockUploadTransport:
    return MockUploadTransport()
