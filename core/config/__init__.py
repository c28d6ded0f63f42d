#!/usr/bin/env python3
"""Configuration system for the contest console

Configuration hierarchy:
- console_config: Gateway endpoint, feature flags, polling and file constants
- logging_config: Logging configuration
"""
import os
from dotenv import load_dotenv
from .console_config import ConsoleConfig
from .logging_config import LoggingConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "dev")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
    "prod": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = ConsoleConfig.from_env()

def get_settings() -> ConsoleConfig:
    """Get global settings instance"""
    return settings

def reload_settings() -> ConsoleConfig:
    """Reload settings from environment"""
    global settings
    settings = ConsoleConfig.from_env()
    return settings

__all__ = [
    'ConsoleConfig',
    'LoggingConfig',
    'get_settings',
    'reload_settings',
    'settings',
]
