"""
Configuration management for Foreman Client.

Handles loading and validation of configuration files.
"""

from foreman_client.config.settings import (
    CredentialsConfig,
    ForemanConfig,
    HTTPClientConfig,
    LoggingConfig,
    RetryConfig,
    ServerConfig,
    TaskPollConfig,
    TaxonomyConfig,
    configure_logging,
    get_default_config,
    get_default_config_path,
    load_config,
)

__all__ = [
    "CredentialsConfig",
    "ForemanConfig",
    "HTTPClientConfig",
    "LoggingConfig",
    "RetryConfig",
    "ServerConfig",
    "TaskPollConfig",
    "TaxonomyConfig",
    "configure_logging",
    "get_default_config",
    "get_default_config_path",
    "load_config",
]
