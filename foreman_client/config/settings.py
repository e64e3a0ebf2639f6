"""
Configuration management for Foreman Client.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from foreman_client.exceptions import InvalidConfigurationError
from foreman_client.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

# Credential fallbacks recognised when the file leaves them empty
CLIENT_USERNAME_ENV = "FOREMAN_CLIENT_USERNAME"
CLIENT_PASSWORD_ENV = "FOREMAN_CLIENT_PASSWORD"


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.
    
    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}
    
    Examples:
        "${FOREMAN_URL}" -> value of FOREMAN_URL env var
        "${FOREMAN_URL:https://localhost}" -> value of FOREMAN_URL or the default
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'
        
        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)
        
        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class ServerConfig:
    """Foreman server location."""
    
    url: str = "https://localhost"


@dataclass
class CredentialsConfig:
    """HTTP basic authentication credentials."""
    
    username: str = ""
    password: str = ""


@dataclass
class HTTPClientConfig:
    """Transport tuning."""
    
    tls_insecure: bool = False
    negotiate_auth: bool = False
    timeout: float = 60.0
    pool_connections: int = 10
    pool_maxsize: int = 20


@dataclass
class TaxonomyConfig:
    """Default organization/location scoping injected into payloads."""
    
    default_organization_id: Optional[int] = None
    default_location_id: Optional[int] = None


@dataclass
class RetryConfig:
    """Attempt budgets for operations known to be flaky server-side."""
    
    host_attempts: int = 2
    power_attempts: int = 2


@dataclass
class TaskPollConfig:
    """Async task polling settings."""
    
    attempts: int = 3
    interval_seconds: float = 0.5


@dataclass
class LoggingConfig:
    """Logging configuration."""
    
    level: str = "INFO"
    format: str = "json"  # "json" or "console"
    file: str = ""


@dataclass
class ForemanConfig:
    """Main configuration for Foreman Client."""
    
    server: ServerConfig = field(default_factory=ServerConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    client: HTTPClientConfig = field(default_factory=HTTPClientConfig)
    taxonomy: TaxonomyConfig = field(default_factory=TaxonomyConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    tasks: TaskPollConfig = field(default_factory=TaskPollConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    return os.path.expanduser("~/.foreman_client/config.yaml")


def get_default_config() -> ForemanConfig:
    """
    Get default configuration.
    
    Credentials are taken from the environment when available.
    """
    config = ForemanConfig()
    _apply_credential_env(config)
    return config


def load_config(config_path: Optional[str] = None) -> ForemanConfig:
    """
    Load configuration from YAML file with validation.
    
    If config file is not found, returns default configuration.
    If config file is malformed or invalid, raises InvalidConfigurationError.
    
    Args:
        config_path: Path to configuration file. If None, uses default path.
    
    Returns:
        ForemanConfig: Loaded and validated configuration
    
    Raises:
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    if config_path is None:
        config_path = get_default_config_path()
    
    config_path = os.path.expanduser(config_path)
    
    if not os.path.exists(config_path):
        logger.info(f"Configuration file not found at {config_path}, using defaults")
        return get_default_config()
    
    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug(f"Loaded configuration from {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to parse YAML configuration file '{config_path}': {e}"
        ) from e
    except OSError as e:
        logger.error(f"Failed to read configuration file '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Failed to read configuration file '{config_path}': {e}"
        ) from e
    
    if config_data is None:
        logger.info(f"Configuration file {config_path} is empty, using defaults")
        return get_default_config()
    
    if not isinstance(config_data, dict):
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': top level must be a mapping"
        )
    
    config_data = _expand_env_vars(config_data)
    
    try:
        config = _build_config_from_dict(config_data)
        _apply_credential_env(config)
        _validate_config(config)
    except InvalidConfigurationError as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}")
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': {e}"
        ) from e
    
    logger.info(f"Successfully loaded and validated configuration from {config_path}")
    return config


def configure_logging(config: ForemanConfig) -> None:
    """
    Set up structured logging from the logging section of a configuration.
    
    Args:
        config: Loaded configuration
    """
    log_file = Path(config.logging.file) if config.logging.file else None
    setup_logging(
        level=config.logging.level,
        log_file=log_file,
        json_format=config.logging.format == "json",
    )
    logger.debug(
        "Logging configured from configuration",
        level=config.logging.level,
        format=config.logging.format,
        file=config.logging.file or None,
    )


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    data = config_data.get(name) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Section '{name}' must be a mapping")
    return data


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _build_config_from_dict(config_data: Dict[str, Any]) -> ForemanConfig:
    """
    Build ForemanConfig from dictionary loaded from YAML.
    
    Merges user configuration with defaults.
    """
    defaults = ForemanConfig()
    
    server_data = _section(config_data, 'server')
    credentials_data = _section(config_data, 'credentials')
    client_data = _section(config_data, 'client')
    taxonomy_data = _section(config_data, 'taxonomy')
    retry_data = _section(config_data, 'retry')
    tasks_data = _section(config_data, 'tasks')
    logging_data = _section(config_data, 'logging')
    
    try:
        return ForemanConfig(
            server=ServerConfig(
                url=str(server_data.get('url', defaults.server.url)),
            ),
            credentials=CredentialsConfig(
                username=str(credentials_data.get('username', defaults.credentials.username) or ""),
                password=str(credentials_data.get('password', defaults.credentials.password) or ""),
            ),
            client=HTTPClientConfig(
                tls_insecure=_as_bool(client_data.get('tls_insecure', defaults.client.tls_insecure)),
                negotiate_auth=_as_bool(client_data.get('negotiate_auth', defaults.client.negotiate_auth)),
                timeout=float(client_data.get('timeout', defaults.client.timeout)),
                pool_connections=int(client_data.get('pool_connections', defaults.client.pool_connections)),
                pool_maxsize=int(client_data.get('pool_maxsize', defaults.client.pool_maxsize)),
            ),
            taxonomy=TaxonomyConfig(
                default_organization_id=_optional_int(
                    taxonomy_data.get('default_organization_id'), 'default_organization_id'
                ),
                default_location_id=_optional_int(
                    taxonomy_data.get('default_location_id'), 'default_location_id'
                ),
            ),
            retry=RetryConfig(
                host_attempts=int(retry_data.get('host_attempts', defaults.retry.host_attempts)),
                power_attempts=int(retry_data.get('power_attempts', defaults.retry.power_attempts)),
            ),
            tasks=TaskPollConfig(
                attempts=int(tasks_data.get('attempts', defaults.tasks.attempts)),
                interval_seconds=float(tasks_data.get('interval_seconds', defaults.tasks.interval_seconds)),
            ),
            logging=LoggingConfig(
                level=str(logging_data.get('level', defaults.logging.level)),
                format=str(logging_data.get('format', defaults.logging.format)),
                file=str(logging_data.get('file', defaults.logging.file) or ""),
            ),
        )
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(str(e)) from e


def _apply_credential_env(config: ForemanConfig) -> None:
    if not config.credentials.username:
        config.credentials.username = os.environ.get(CLIENT_USERNAME_ENV, "")
    if not config.credentials.password:
        config.credentials.password = os.environ.get(CLIENT_PASSWORD_ENV, "")


def _validate_config(config: ForemanConfig) -> None:
    """
    Validate configuration values.
    
    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if not config.server.url:
        raise InvalidConfigurationError("server.url must not be empty")
    if not config.server.url.startswith(("http://", "https://")):
        raise InvalidConfigurationError(
            f"server.url must start with http:// or https://, got '{config.server.url}'"
        )
    if config.client.timeout <= 0:
        raise InvalidConfigurationError(
            f"client.timeout must be positive, got {config.client.timeout}"
        )
    if config.client.pool_connections < 1 or config.client.pool_maxsize < 1:
        raise InvalidConfigurationError("client pool sizes must be at least 1")
    if config.retry.host_attempts < 1:
        raise InvalidConfigurationError(
            f"retry.host_attempts must be at least 1, got {config.retry.host_attempts}"
        )
    if config.retry.power_attempts < 1:
        raise InvalidConfigurationError(
            f"retry.power_attempts must be at least 1, got {config.retry.power_attempts}"
        )
    if config.tasks.attempts < 1:
        raise InvalidConfigurationError(
            f"tasks.attempts must be at least 1, got {config.tasks.attempts}"
        )
    if config.tasks.interval_seconds < 0:
        raise InvalidConfigurationError(
            f"tasks.interval_seconds must not be negative, got {config.tasks.interval_seconds}"
        )
    valid_formats = ["json", "console"]
    if config.logging.format not in valid_formats:
        raise InvalidConfigurationError(
            f"logging.format must be one of {valid_formats}, got '{config.logging.format}'"
        )
