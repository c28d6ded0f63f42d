"""
Unit Tests for Console and Logging Configuration
"""

from core.config import ConsoleConfig, LoggingConfig
from core.config.console_config import DEFAULT_API_BASE_URL


CONSOLE_VARS = [
    "CONTEST_API_BASE_URL",
    "CONTEST_API_KEY",
    "CONTEST_DEBUG",
    "ENABLE_S3_BROWSER",
    "ENABLE_MONDAY",
    "PROCESSING_POLL_INTERVAL",
    "RECEIPT_POLL_MAX_ATTEMPTS",
    "CONTEST_SUPPORTED_FILE_TYPES",
    "LOG_LEVEL",
]


def clear_env(monkeypatch):
    for name in CONSOLE_VARS:
        monkeypatch.delenv(name, raising=False)


class TestConsoleConfig:

    def test_defaults(self, monkeypatch):
        clear_env(monkeypatch)
        config = ConsoleConfig.from_env()

        assert config.api_base_url == DEFAULT_API_BASE_URL
        assert config.processing_poll_interval == 2.0
        assert config.receipt_poll_interval == 5.0
        assert config.receipt_poll_max_attempts == 60
        assert config.max_file_size == 50 * 1024 * 1024
        assert config.supported_file_types == [".json", ".csv", ".xlsx", ".zip"]
        assert config.default_page_size == 25
        assert config.max_page_size == 100

    def test_feature_flags_default_on(self, monkeypatch):
        clear_env(monkeypatch)
        config = ConsoleConfig.from_env()
        assert config.enable_s3_browser
        assert config.enable_testing_panel
        assert not config.enable_monday_integration

    def test_overrides(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("CONTEST_API_BASE_URL", "https://api.example.com/stage/")
        monkeypatch.setenv("CONTEST_API_KEY", "secret")
        monkeypatch.setenv("ENABLE_S3_BROWSER", "false")
        monkeypatch.setenv("ENABLE_MONDAY", "true")
        monkeypatch.setenv("PROCESSING_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("CONTEST_SUPPORTED_FILE_TYPES", ".CSV, .zip")

        config = ConsoleConfig.from_env()
        assert config.api_base_url == "https://api.example.com/stage"
        assert config.api_key == "secret"
        assert not config.enable_s3_browser
        assert config.enable_monday_integration
        assert config.processing_poll_interval == 0.5
        assert config.supported_file_types == [".csv", ".zip"]

    def test_bad_numbers_fall_back(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("RECEIPT_POLL_MAX_ATTEMPTS", "many")
        assert ConsoleConfig.from_env().receipt_poll_max_attempts == 60

    def test_environment_helpers(self):
        assert ConsoleConfig(environment="dev").is_development
        assert ConsoleConfig(environment="prod").is_production


class TestLoggingConfig:

    def test_debug_flag_lowers_level(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("CONTEST_DEBUG", "true")
        assert LoggingConfig.from_env().log_level == "DEBUG"

    def test_explicit_level_wins(self, monkeypatch):
        clear_env(monkeypatch)
        monkeypatch.setenv("CONTEST_DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        assert LoggingConfig.from_env().log_level == "WARNING"

    def test_service_name(self, monkeypatch):
        monkeypatch.delenv("SERVICE_NAME", raising=False)
        assert LoggingConfig.from_env().service_name == "contest_console"
