#!/usr/bin/env python3
"""Logging configuration"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"


@dataclass
class LoggingConfig:
    """Logging configuration"""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: str = ""
    enable_console: bool = True

    # Quiet down httpx request lines unless debugging the gateway
    log_http_requests: bool = False

    # Service identity for logging
    service_name: str = "contest_console"
    environment: str = "dev"

    @classmethod
    def from_env(cls) -> 'LoggingConfig':
        """Load logging config from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "dev")
        debug = _bool(os.getenv("CONTEST_DEBUG", "false"))
        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG" if debug else "INFO"),
            log_format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("LOG_FILE", ""),
            enable_console=True,
            log_http_requests=_bool(os.getenv("LOG_HTTP_REQUESTS", "false")),
            service_name=os.getenv("SERVICE_NAME", "contest_console"),
            environment=env,
        )
