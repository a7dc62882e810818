"""
CLI entry point for GnuDIP Gateway.

This module provides the command-line interface for starting the server.
"""

from __future__ import annotations

import logging
import sys

import uvicorn

from gnudip_gateway.config import ConfigValidationError, load_config, parse_args
from gnudip_gateway.errors import EntropySourceError
from gnudip_gateway.logging_config import build_uvicorn_log_config, setup_logging
from gnudip_gateway.server import build_gateway, set_gateway, set_preloaded_config

logger = logging.getLogger(__name__)


def main() -> None:
    """
    Start the GnuDIP Gateway server.

    Parse command-line arguments, load configuration, generate the signing
    key, and run the server.
    """
    args = parse_args()
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.logging)

    # Without randomness no challenge can be issued or verified safely
    try:
        gateway = build_gateway(config)
    except EntropySourceError:
        logger.critical("Cannot generate the signing key: entropy source unavailable.")
        sys.exit(1)

    # Inject the loaded configuration and components into the server module
    # to prevent re-parsing arguments when the app starts.
    set_preloaded_config(config)
    set_gateway(gateway)

    uvicorn.run(
        "gnudip_gateway.server:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
        access_log=True,
        log_config=build_uvicorn_log_config(config.logging),
    )


if __name__ == "__main__":
    main()
