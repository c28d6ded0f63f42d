"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (mocked gateway and storage)
    - unit/       : Unit tests (pure functions, no I/O)
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from core.config import ConsoleConfig
from tests.fixtures import ContestTestDataFactory


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "component: marks tests as component tests")
    config.addinivalue_line("markers", "slow: marks tests that wait on real timers")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def factory() -> ContestTestDataFactory:
    """Test data factory"""
    return ContestTestDataFactory()


@pytest.fixture
def fast_config() -> ConsoleConfig:
    """Console config with polling and modal delays shrunk to zero"""
    return ConsoleConfig(
        api_base_url="https://gateway.test/prod",
        api_key="test-key",
        partner_api_key="partner-key",
        processing_poll_interval=0.0,
        receipt_poll_interval=0.0,
        receipt_poll_max_attempts=5,
        provisioning_success_delay=0.0,
        provisioning_error_delay=0.0,
    )
