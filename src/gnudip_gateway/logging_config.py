"""
Logging configuration for GnuDIP Gateway.

GnuDIP clients send `pass` and `sign` in the URL, so every handler, uvicorn's
access log included, runs records through `SensitiveFilter` before output.
"""

from __future__ import annotations

import copy
import logging
import logging.handlers
import re
import sys
from typing import TYPE_CHECKING

from uvicorn.config import LOGGING_CONFIG

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Any, Final

    from gnudip_gateway.config import LoggingConfig


# (pattern, replacement) pairs; the first groups keep what stays visible
SENSITIVE_PATTERNS: Final[list[tuple[re.Pattern[str], str]]] = [
    # Provider API tokens: keep 6 characters
    (
        re.compile(
            r"((?:Authorization:\s*)?Bearer\s+)(.{0,6})([^\s\"']*)", re.IGNORECASE,
        ),
        r"\1\2******",
    ),
    # Salted password: mask completely
    (
        re.compile(r"([?&]pass=)([^\s&\"']*)", re.IGNORECASE),
        r"\1******",
    ),
    # Challenge signature: keep 4 characters
    (
        re.compile(r"([?&]sign=)([^\s&\"']{0,4})([^\s&\"']*)", re.IGNORECASE),
        r"\1\2******",
    ),
    # Provider secrets in key=value form
    (
        re.compile(
            r"((?:api_key|access_key_secret|password)=)(['\"]?)([^\s,&\"']*)",
            re.IGNORECASE,
        ),
        r"\1\2******",
    ),
]

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

_PACKAGE_LOGGER: Final[str] = "gnudip_gateway"


def mask_sensitive(value: str) -> str:
    """
    Mask credentials in a string.

    Parameters
    ----------
    value : str
        A log message or argument.

    Returns
    -------
    str
        The string with every `SENSITIVE_PATTERNS` match masked.
    """
    for pattern, replacement in SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveFilter(logging.Filter):
    """
    Mask credentials in the message and arguments of every record.

    uvicorn access records carry the request path, query string included,
    as a positional argument.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = mask_sensitive(str(record.msg))

        if isinstance(record.args, dict):
            record.args = {
                k: mask_sensitive(v) if isinstance(v, str) else v
                for k, v in record.args.items()
            }
        elif isinstance(record.args, tuple):
            record.args = tuple(
                mask_sensitive(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


def _ensure_log_file(log_path: Path) -> None:
    """Create the log file and its directory, exiting when that is impossible."""
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.touch(exist_ok=True)
    except OSError as e:
        logging.getLogger(_PACKAGE_LOGGER).critical("Failed to create log file: %s", e)
        sys.exit(1)


def setup_logging(config: LoggingConfig) -> None:
    """
    Configure the package logger from `[logging]`.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file_enabled:
        _ensure_log_file(config.file_path_as_path)
        handlers.append(
            logging.handlers.WatchedFileHandler(
                str(config.file_path_as_path),
                encoding="utf-8",
            ),
        )

    for handler in handlers:
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        handler.addFilter(SensitiveFilter())
        logger.addHandler(handler)

    if config.file_enabled:
        logger.info('File logging enabled: "%s".', config.file_path_as_path)

    logger.propagate = False


def build_uvicorn_log_config(config: LoggingConfig) -> dict[str, Any]:
    """
    Build the uvicorn `log_config` dictionary.

    uvicorn's console output is kept as is, with `SensitiveFilter` added to
    its handlers and an optional file handler for the `uvicorn` loggers.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.

    Returns
    -------
    dict[str, Any]
        A `logging.config.dictConfig` compatible dictionary.
    """
    log_config = copy.deepcopy(LOGGING_CONFIG)

    log_config.setdefault("filters", {})["sensitive"] = {
        "()": f"{__name__}.SensitiveFilter",
    }
    for name in ("default", "access"):
        log_config["handlers"][name].setdefault("filters", []).append("sensitive")

    if config.file_enabled:
        log_path = config.file_path_as_path
        _ensure_log_file(log_path)

        log_config["formatters"]["file"] = {
            "format": LOG_FORMAT,
            "datefmt": DATE_FORMAT,
        }
        log_config["handlers"]["file"] = {
            "class": "logging.handlers.WatchedFileHandler",
            "filename": str(log_path),
            "encoding": "utf-8",
            "formatter": "file",
            "filters": ["sensitive"],
        }
        # "uvicorn.error" propagates to "uvicorn"
        for name in ("uvicorn", "uvicorn.access"):
            log_config["loggers"][name]["handlers"].append("file")

    return log_config
