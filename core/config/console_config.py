#!/usr/bin/env python3
"""Contest console configuration

Backend gateway endpoint, feature flags and timing constants for the
contest workflow orchestrator. None of these affect orchestration
correctness, only affordances and timing.
"""
import os
from dataclasses import dataclass, field
from typing import List

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _enabled(val: str) -> bool:
    # Default-on flags: only an explicit "false" disables them
    return val.lower() != "false"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _float(val: str, default: float) -> float:
    try:
        return float(val) if val else default
    except ValueError:
        return default


DEFAULT_API_BASE_URL = "https://0gt6s4bqo5.execute-api.us-east-1.amazonaws.com/prod"


@dataclass
class ConsoleConfig:
    """Contest console settings"""

    # ===========================================
    # Gateway
    # ===========================================
    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    partner_api_key: str = ""
    request_timeout: float = 30.0

    # ===========================================
    # Environment
    # ===========================================
    environment: str = "dev"
    debug: bool = False
    aws_region: str = "us-east-1"

    # ===========================================
    # Monday.com embedding
    # ===========================================
    monday_board_id: str = ""
    enable_monday_integration: bool = False

    # ===========================================
    # Feature flags
    # ===========================================
    enable_testing_panel: bool = True
    enable_system_health: bool = True
    enable_s3_browser: bool = True
    enable_python_scripts: bool = True
    show_advanced_options: bool = False
    compact_mode: bool = False

    # ===========================================
    # Polling (seconds)
    # ===========================================
    processing_poll_interval: float = 2.0
    receipt_poll_interval: float = 5.0
    receipt_poll_max_attempts: int = 60
    health_check_interval: float = 60.0
    s3_refresh_interval: float = 10.0
    analytics_refresh_interval: float = 30.0

    # ===========================================
    # Provisioning modal timing (seconds)
    # ===========================================
    provisioning_success_delay: float = 2.0
    provisioning_error_delay: float = 3.0

    # ===========================================
    # Files and pagination
    # ===========================================
    max_file_size: int = 50 * 1024 * 1024
    supported_file_types: List[str] = field(
        default_factory=lambda: [".json", ".csv", ".xlsx", ".zip"]
    )
    default_page_size: int = 25
    max_page_size: int = 100

    @property
    def is_development(self) -> bool:
        return self.environment == "dev"

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @classmethod
    def from_env(cls) -> 'ConsoleConfig':
        """Load console configuration from environment variables"""
        file_types = os.getenv("CONTEST_SUPPORTED_FILE_TYPES", "")
        return cls(
            # Gateway
            api_base_url=os.getenv("CONTEST_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            api_key=os.getenv("CONTEST_API_KEY", ""),
            partner_api_key=os.getenv("CONTEST_PARTNER_API_KEY", ""),
            request_timeout=_float(os.getenv("CONTEST_REQUEST_TIMEOUT", "30"), 30.0),

            # Environment
            environment=os.getenv("CONTEST_ENVIRONMENT", "dev"),
            debug=_bool(os.getenv("CONTEST_DEBUG", "false")),
            aws_region=os.getenv("AWS_REGION", "us-east-1"),

            # Monday
            monday_board_id=os.getenv("MONDAY_BOARD_ID", ""),
            enable_monday_integration=_bool(os.getenv("ENABLE_MONDAY", "false")),

            # Feature flags
            enable_testing_panel=_enabled(os.getenv("ENABLE_TESTING_PANEL", "true")),
            enable_system_health=_enabled(os.getenv("ENABLE_SYSTEM_HEALTH", "true")),
            enable_s3_browser=_enabled(os.getenv("ENABLE_S3_BROWSER", "true")),
            enable_python_scripts=_enabled(os.getenv("ENABLE_PYTHON_SCRIPTS", "true")),
            show_advanced_options=_bool(os.getenv("SHOW_ADVANCED", "false")),
            compact_mode=_bool(os.getenv("COMPACT_MODE", "false")),

            # Polling
            processing_poll_interval=_float(os.getenv("PROCESSING_POLL_INTERVAL", "2"), 2.0),
            receipt_poll_interval=_float(os.getenv("RECEIPT_POLL_INTERVAL", "5"), 5.0),
            receipt_poll_max_attempts=_int(os.getenv("RECEIPT_POLL_MAX_ATTEMPTS", "60"), 60),
            health_check_interval=_float(os.getenv("HEALTH_CHECK_INTERVAL", "60"), 60.0),
            s3_refresh_interval=_float(os.getenv("S3_REFRESH_INTERVAL", "10"), 10.0),
            analytics_refresh_interval=_float(os.getenv("ANALYTICS_REFRESH_INTERVAL", "30"), 30.0),

            # Provisioning
            provisioning_success_delay=_float(os.getenv("PROVISIONING_SUCCESS_DELAY", "2"), 2.0),
            provisioning_error_delay=_float(os.getenv("PROVISIONING_ERROR_DELAY", "3"), 3.0),

            # Files and pagination
            max_file_size=_int(os.getenv("CONTEST_MAX_FILE_SIZE", ""), 50 * 1024 * 1024),
            supported_file_types=(
                [t.strip().lower() for t in file_types.split(",") if t.strip()]
                if file_types else [".json", ".csv", ".xlsx", ".zip"]
            ),
            default_page_size=_int(os.getenv("DEFAULT_PAGE_SIZE", "25"), 25),
            max_page_size=_int(os.getenv("MAX_PAGE_SIZE", "100"), 100),
        )
