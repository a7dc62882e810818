"""
Configuration management for GnuDIP Gateway.

This module handles loading and validating configuration from TOML files
and command-line arguments. Configuration priority (high to low):
1. Command-line arguments
2. Configuration file
3. Default values
"""

from __future__ import annotations

import argparse
import copy
import logging
import sys
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from gnudip_gateway.challenge import DEFAULT_SALT_SIZE
from gnudip_gateway.logging_config import DATE_FORMAT, LOG_FORMAT
from gnudip_gateway.models import ProviderName
from gnudip_gateway.signer import DEFAULT_KEY_SIZE
from gnudip_gateway.verifier import DEFAULT_FRESHNESS_WINDOW, DEFAULT_MAX_CLOCK_SKEW

if TYPE_CHECKING:
    from typing import Any, Final, Self

# Configure basic logging for early startup messages.
# This ensures log messages during config loading (before "setup_logging()" is called)
# are visible with proper formatting. The main logging setup in "setup_logging()"
# will reconfigure the "gnudip_gateway" logger with full settings later.
# Note: Logs from this logger will not be output to a file as the log file path has not been parsed yet.
logger_basic = logging.getLogger(__name__)
logger_basic.setLevel(logging.DEBUG)
handler = logging.StreamHandler()
formatter = logging.Formatter(
    fmt=LOG_FORMAT,
    datefmt=DATE_FORMAT,
)
handler.setFormatter(formatter)
logger_basic.addHandler(handler)
logger_basic.propagate = False


# Provider fields that must be set, per provider
REQUIRED_PROVIDER_FIELDS: Final[dict[ProviderName, tuple[str, ...]]] = {
    ProviderName.VULTR: ("api_key", "domain", "record_id"),
    ProviderName.CLOUDFLARE: ("api_key", "zone_id", "record_id"),
    ProviderName.ALIYUN: ("access_key_id", "access_key_secret", "record_id", "record"),
    ProviderName.TENCENT: (
        "access_key_id",
        "access_key_secret",
        "domain",
        "record_id",
        "record",
    ),
}


class ConfigValidationError(Exception):
    """
    Exception raised when configuration validation fails.

    This exception is raised when the TOML configuration contains
    invalid types or values.

    Attributes
    ----------
    message : str
        Human-readable error message describing the validation failures.
    config_path : Path | None
        Path to the configuration file that failed validation.
    """

    def __init__(self, message: str, config_path: Path | None = None) -> None:
        """
        Initialize ConfigValidationError.

        Parameters
        ----------
        message : str
            Human-readable error message.
        config_path : Path | None, optional
            Path to the configuration file.
        """
        self.config_path = config_path
        super().__init__(message)


# Configuration models (Pydantic with type validation and coercion)


class ServerConfig(BaseModel):
    """
    Server configuration.

    Attributes
    ----------
    host : str
        Host address to bind to.
    port : int
        Port number to listen on.
    """

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 38080


class AuthConfig(BaseModel):
    """
    Challenge-response authentication configuration.

    Attributes
    ----------
    username : str
        The GnuDIP username clients log in with.
    password : str
        The shared secret clients derive their salted password from.
    freshness_window : int
        Seconds a challenge stays valid after issue.
    max_clock_skew : int
        Seconds a challenge time may lie ahead of the local clock.
    key_size : int
        Size of the process signing key in bytes.
    salt_size : int
        Size of each challenge salt in bytes.
    """

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    freshness_window: int = Field(default=DEFAULT_FRESHNESS_WINDOW, ge=1)
    max_clock_skew: int = Field(default=DEFAULT_MAX_CLOCK_SKEW, ge=0)
    key_size: int = Field(default=DEFAULT_KEY_SIZE, ge=10, le=64)
    salt_size: int = Field(default=DEFAULT_SALT_SIZE, ge=9, le=48)


class ProviderConfig(BaseModel):
    """
    DNS provider configuration.

    Attributes
    ----------
    name : ProviderName
        The DNS provider to update.
    timeout : float
        Upper bound in seconds for one provider update.
    api_key : str | None
        API key or token (Vultr, CloudFlare).
    domain : str | None
        DNS zone name (Vultr, Tencent).
    zone_id : str | None
        Zone ID (CloudFlare).
    record_id : str | None
        ID of the record to update.
    record : str | None
        Host record name, e.g. "home" or "@" (Alibaba Cloud, Tencent).
    access_key_id : str | None
        Access key ID (Alibaba Cloud) or SecretId (Tencent).
    access_key_secret : str | None
        Access key secret (Alibaba Cloud) or SecretKey (Tencent).
    record_line : str
        Record line (Tencent).
    """

    name: ProviderName
    timeout: float = Field(default=30.0, gt=0)
    api_key: str | None = None
    domain: str | None = None
    zone_id: str | None = None
    record_id: str | None = None
    record: str | None = None
    access_key_id: str | None = None
    access_key_secret: str | None = None
    record_line: str = "默认"

    @model_validator(mode="after")
    def check_required_fields(self) -> Self:
        """
        Validate that the fields the selected provider needs are set.

        Returns
        -------
        Self
            The validated model.

        Raises
        ------
        PydanticCustomError
            If a required provider field is missing or empty.
        """
        missing = [
            field
            for field in REQUIRED_PROVIDER_FIELDS[self.name]
            if not getattr(self, field)
        ]
        if missing:
            err_type = "provider_config_error"
            raise PydanticCustomError(
                err_type,
                'Provider "{provider}" requires: {fields}',
                {"provider": self.name.value, "fields": ", ".join(missing)},
            )
        return self


class LoggingConfig(BaseModel):
    """
    Logging configuration.

    Attributes
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    file_enabled : bool
        Whether to log to file.
    file_path : str
        Path to the log file.
    """

    level: str = "INFO"
    file_enabled: bool = False
    file_path: str = "/var/log/gnudip-gateway.log"

    @property
    def file_path_as_path(self) -> Path:
        """
        Get the log file path as a Path object.

        Returns
        -------
        Path
            The resolved log file path.
        """
        return Path(self.file_path)


class Config(BaseModel):
    """
    Application configuration.

    Attributes
    ----------
    server : ServerConfig
        Server configuration.
    auth : AuthConfig
        Authentication configuration.
    provider : ProviderConfig
        DNS provider configuration.
    logging : LoggingConfig
        Logging configuration.
    """

    server: ServerConfig = ServerConfig()
    auth: AuthConfig
    provider: ProviderConfig
    logging: LoggingConfig = LoggingConfig()


def _format_validation_errors(
    error: ValidationError,
    config_path: Path | None,
) -> str:
    """
    Format Pydantic validation errors into human-readable messages.

    Parameters
    ----------
    error : ValidationError
        Pydantic validation error.
    config_path : Path | None
        Path to the configuration file.

    Returns
    -------
    str
        Human-readable error message.
    """
    lines: list[str] = []

    if config_path:
        lines.append(f'Configuration error in "{config_path}":')
    else:
        lines.append("Configuration error:")

    for err in error.errors():
        # Build field path (e.g., "server.port")
        field_path = ".".join(str(loc) for loc in err["loc"])

        error_type = err["type"]

        if error_type == "provider_config_error":
            lines.append(f"  [{field_path}]: {err['msg']}.")
        elif error_type == "missing":
            lines.append(f"  [{field_path}]: Required field is missing.")
        else:
            error_input = err["input"]
            input_type = type(error_input).__name__

            # Format the value for display
            value_repr = (
                f'"{error_input}"' if isinstance(error_input, str) else repr(error_input)
            )

            # Determine expected type from error type
            expected_type = _get_expected_type(error_type)
            lines.append(
                f"  [{field_path}]: Expected {expected_type}, got {input_type} (value: {value_repr}). {err['msg']}.",
            )

    return "\n".join(lines)


def _get_expected_type(error_type: str) -> str:
    """
    Get human-readable expected type from Pydantic error type.

    Parameters
    ----------
    error_type : str
        Pydantic error type string.

    Returns
    -------
    str
        Human-readable type name.
    """
    type_mapping = {
        "int_type": "int",
        "int_parsing": "int",
        "float_type": "float",
        "float_parsing": "float",
        "bool_type": "bool",
        "bool_parsing": "bool",
        "string_type": "str",
        "enum": "provider name",
    }
    return type_mapping.get(error_type, error_type)


def validate_config_dict(
    data: dict[str, Any],
    config_path: Path | None = None,
) -> None:
    """
    Validate configuration dictionary using Pydantic.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary to validate.
    config_path : Path | None, optional
        Path to the configuration file (for error messages).

    Raises
    ------
    ConfigValidationError
        If validation fails.
    """
    try:
        Config(**data)
    except ValidationError as e:
        msg = _format_validation_errors(e, config_path)
        raise ConfigValidationError(msg, config_path) from e


def load_config_from_file(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a TOML file.

    Parameters
    ----------
    config_path : Path
        Path to the configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    tomllib.TOMLDecodeError
        If the configuration file is not valid TOML.
    """
    with config_path.open("rb") as f:
        return tomllib.load(f)


def merge_config(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration.
    override : dict[str, Any]
        Override configuration (takes precedence).

    Returns
    -------
    dict[str, Any]
        Merged configuration.
    """
    # Use deep copy to avoid modifying the original base configuration
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def dict_to_config(data: dict[str, Any]) -> Config:
    """
    Convert a dictionary to a Config object.

    Parameters
    ----------
    data : dict[str, Any]
        Configuration dictionary.

    Returns
    -------
    Config
        Configuration object.
    """
    # Handle file_path expansion before Pydantic validation
    if "logging" in data and "file_path" in data["logging"]:
        data = copy.deepcopy(data)
        data["logging"]["file_path"] = str(
            Path(data["logging"]["file_path"]).expanduser(),
        )

    return Config.model_validate(data)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Parameters
    ----------
    args : list[str] | None, optional
        Command-line arguments. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="gnudip-gateway",
        description="GnuDIP Gateway - A GnuDIP-compatible dynamic DNS update endpoint",
    )

    # Config arguments
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml)",
    )

    # Server arguments
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port number to listen on",
    )

    # Auth arguments
    parser.add_argument(
        "--username",
        type=str,
        default=None,
        help="GnuDIP username",
    )
    parser.add_argument(
        "--password",
        type=str,
        default=None,
        help="GnuDIP password (prefer the configuration file)",
    )
    parser.add_argument(
        "--freshness-window",
        type=int,
        dest="freshness_window",
        default=None,
        help="Seconds a challenge stays valid after issue",
    )

    # Provider arguments
    parser.add_argument(
        "--provider",
        type=str,
        choices=[p.value for p in ProviderName],
        default=None,
        help="DNS provider to update",
    )

    # Logging arguments
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level",
    )
    log_file_group = parser.add_mutually_exclusive_group()
    log_file_group.add_argument(
        "--log-file-enabled",
        action="store_true",
        dest="log_file_enabled",
        default=None,
        help="Enable logging to file",
    )
    log_file_group.add_argument(
        "--log-file-disabled",
        action="store_false",
        dest="log_file_enabled",
        default=None,
        help="Disable logging to file",
    )
    parser.add_argument(
        "--log-file-path",
        type=Path,
        dest="log_file_path",
        default=None,
        help="Path to the log file",
    )

    return parser.parse_args(args)


def load_config(args: argparse.Namespace | None = None) -> Config:
    """
    Load configuration from file and command-line arguments.

    Priority (high to low):
    1. Command-line arguments
    2. Configuration file
    3. Default values

    Parameters
    ----------
    args : argparse.Namespace | None, optional
        Parsed command-line arguments.

    Returns
    -------
    Config
        Loaded configuration.

    Raises
    ------
    ConfigValidationError
        If the merged configuration is invalid.
    """
    if args is None:
        args = parse_args()

    # Start with empty config dict
    config_dict: dict[str, Any] = {}

    # Load from config file if specified or if default exists
    config_path = args.config
    if config_path is not None:
        config_path = config_path.expanduser()
    if config_path is None:
        default_config = Path("config.toml")
        if default_config.exists():
            config_path = default_config

    if config_path is not None:
        if config_path.exists():
            logger_basic.info('Loading configuration from "%s".', config_path)
            try:
                config_dict = load_config_from_file(config_path)
            except tomllib.TOMLDecodeError as e:
                logger_basic.critical('Failed to parse configuration file: "%s".', e)
                sys.exit(1)
        else:
            logger_basic.critical("Configuration file not found: %s", config_path)
            sys.exit(1)

    # Apply command-line overrides
    cli_overrides: dict[str, Any] = {}

    # Server overrides
    if args.host is not None:
        cli_overrides.setdefault("server", {})["host"] = args.host
    if args.port is not None:
        cli_overrides.setdefault("server", {})["port"] = args.port

    # Auth overrides
    if args.username is not None:
        cli_overrides.setdefault("auth", {})["username"] = args.username
    if args.password is not None:
        cli_overrides.setdefault("auth", {})["password"] = args.password
    if args.freshness_window is not None:
        cli_overrides.setdefault("auth", {})["freshness_window"] = args.freshness_window

    # Provider overrides
    if args.provider is not None:
        cli_overrides.setdefault("provider", {})["name"] = args.provider

    # Logging overrides
    if args.log_level is not None:
        cli_overrides.setdefault("logging", {})["level"] = args.log_level
    if args.log_file_enabled is not None:
        cli_overrides.setdefault("logging", {})["file_enabled"] = args.log_file_enabled
    if args.log_file_path is not None:
        cli_overrides.setdefault("logging", {})["file_path"] = str(args.log_file_path)

    if cli_overrides:
        config_dict = merge_config(config_dict, cli_overrides)

    # Validate merged configuration
    validate_config_dict(config_dict, config_path)

    return dict_to_config(config_dict)
