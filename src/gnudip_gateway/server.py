"""
FastAPI server for GnuDIP Gateway.

This module provides the GnuDIP HTTP endpoint. Every path answers GET:
without a query string it issues a login challenge, with one it verifies and
executes an update request. Responses are HTML pages carrying the result as
`<meta name=... content=...>` tags, the format GnuDIP clients parse.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response
from fastapi.templating import Jinja2Templates
from starlette import status as st_status
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from gnudip_gateway import __version__
from gnudip_gateway.challenge import ChallengeIssuer
from gnudip_gateway.config import Config, load_config
from gnudip_gateway.dispatcher import UpdateDispatcher
from gnudip_gateway.errors import EntropySourceError, GatewayError
from gnudip_gateway.models import ProviderName, UpdateParams
from gnudip_gateway.providers.aliyun import AliyunUpdater
from gnudip_gateway.providers.cloudflare import CloudFlareUpdater
from gnudip_gateway.providers.tencent import TencentUpdater
from gnudip_gateway.providers.vultr import VultrUpdater
from gnudip_gateway.signer import Signer
from gnudip_gateway.verifier import RequestVerifier

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from gnudip_gateway.config import ProviderConfig
    from gnudip_gateway.providers.base import BaseUpdater


logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")

# Global config and gateway (set during startup)
_config: Config | None = None
_gateway: Gateway | None = None

# Updater implementations
_updaters: dict[ProviderName, type[BaseUpdater]] = {
    ProviderName.VULTR: VultrUpdater,
    ProviderName.CLOUDFLARE: CloudFlareUpdater,
    ProviderName.ALIYUN: AliyunUpdater,
    ProviderName.TENCENT: TencentUpdater,
}


class Gateway:
    """
    The request-handling components, built once per process.

    Attributes
    ----------
    issuer : ChallengeIssuer
        Issues login challenges.
    verifier : RequestVerifier
        Authenticates update requests.
    dispatcher : UpdateDispatcher
        Executes authenticated updates.
    """

    def __init__(
        self,
        issuer: ChallengeIssuer,
        verifier: RequestVerifier,
        dispatcher: UpdateDispatcher,
    ) -> None:
        self.issuer = issuer
        self.verifier = verifier
        self.dispatcher = dispatcher


def create_updater(config: ProviderConfig) -> BaseUpdater:
    """
    Create the updater for the configured provider.

    Parameters
    ----------
    config : ProviderConfig
        Provider configuration.

    Returns
    -------
    BaseUpdater
        The provider updater.
    """
    return _updaters[config.name](config)


def build_gateway(
    config: Config,
    *,
    signer: Signer | None = None,
    updater: BaseUpdater | None = None,
    clock: Callable[[], float] = time.time,
) -> Gateway:
    """
    Build the gateway components from configuration.

    Parameters
    ----------
    config : Config
        Application configuration.
    signer : Signer | None, optional
        Signer to use; a new one with a random key by default.
    updater : BaseUpdater | None, optional
        Updater to use; built from `config.provider` by default.
    clock : Callable[[], float], optional
        Source of the current Unix time.

    Returns
    -------
    Gateway
        The gateway components.

    Raises
    ------
    EntropySourceError
        If a signing key cannot be generated.
    """
    if signer is None:
        signer = Signer.generate(config.auth.key_size)
    if updater is None:
        updater = create_updater(config.provider)

    return Gateway(
        issuer=ChallengeIssuer(signer, salt_size=config.auth.salt_size, clock=clock),
        verifier=RequestVerifier(
            signer,
            username=config.auth.username,
            password=config.auth.password,
            freshness_window=config.auth.freshness_window,
            max_clock_skew=config.auth.max_clock_skew,
            clock=clock,
        ),
        dispatcher=UpdateDispatcher(updater, timeout=config.provider.timeout),
    )


def get_config() -> Config:
    """Get the current configuration."""
    if _config is None:
        msg = "Configuration not loaded"
        raise RuntimeError(msg)
    return _config


def set_preloaded_config(config: Config) -> None:
    """
    Inject a pre-loaded configuration into the server module.

    This allows the CLI entry point to pass the parsed configuration to the
    server instance, avoiding the need to re-parse command-line arguments
    during application startup (e.g. in the lifespan handler).

    Parameters
    ----------
    config : Config
        The configuration object to set.
    """
    global _config  # noqa: PLW0603
    _config = config


def get_gateway() -> Gateway:
    """Get the gateway components."""
    if _gateway is None:
        msg = "Gateway not initialized"
        raise RuntimeError(msg)
    return _gateway


def set_gateway(gateway: Gateway) -> None:
    """
    Inject pre-built gateway components into the server module.

    Parameters
    ----------
    gateway : Gateway
        The gateway components to serve requests with.
    """
    global _gateway  # noqa: PLW0603
    _gateway = gateway


def render_meta(
    request: Request,
    fields: dict[str, str],
    status_code: int = st_status.HTTP_200_OK,
    headers: dict[str, str] | None = None,
) -> Response:
    """
    Render response fields as an HTML page of meta tags.

    Parameters
    ----------
    request : Request
        The request being answered.
    fields : dict[str, str]
        Names and values of the meta tags.
    status_code : int, optional
        HTTP status code.
    headers : dict[str, str] | None, optional
        Extra response headers.

    Returns
    -------
    Response
        The HTML response.
    """
    if status_code != st_status.HTTP_200_OK:
        logger.warning("[response] status=%d fields=%s", status_code, fields)
    return templates.TemplateResponse(
        request,
        "meta.html",
        {"fields": fields},
        status_code=status_code,
        headers=headers,
    )


class MethodMiddleware(BaseHTTPMiddleware):
    """Reject every method except GET with 405 before routing."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process the request through method validation."""
        if request.method != "GET":
            return render_meta(
                request,
                {"error": "Method not allowed"},
                st_status.HTTP_405_METHOD_NOT_ALLOWED,
                headers={"Allow": "GET"},
            )
        return await call_next(request)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global _config, _gateway  # noqa: PLW0603

    # If config was not set by CLI (e.g., running via uvicorn directly),
    # load it here
    if _config is None:
        _config = load_config()
    if _gateway is None:
        _gateway = build_gateway(_config)

    logger.info(
        'GnuDIP Gateway starting on "%s:%d" (Provider: "%s").',
        _config.server.host,
        _config.server.port,
        _config.provider.name,
    )

    yield

    logger.info("GnuDIP Gateway shutting down.")


app = FastAPI(
    title="GnuDIP Gateway",
    description="GnuDIP-compatible dynamic DNS update endpoint",
    version=__version__,
    lifespan=lifespan,
    # Every path belongs to the GnuDIP endpoint
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

app.add_middleware(MethodMiddleware)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
    """Render request-terminating errors as `{error: message}`."""
    if isinstance(exc, EntropySourceError):
        logger.critical("[response] %s", exc.message)
    return render_meta(request, {"error": exc.message}, exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> Response:
    """Render HTTP exceptions in the same meta-tag format."""
    return render_meta(request, {"error": str(exc.detail)}, exc.status_code)


@app.get("/{path:path}", include_in_schema=False)
async def gnudip(request: Request) -> Response:
    """
    Issue a challenge or execute an update request.

    Without a query string the response carries `salt`, `time` and `sign`.
    With one, the query is an update request (`salt, time, sign, user, pass,
    domn, reqc, addr`) and the response carries `retc` (and `addr` for
    `reqc=2`).
    """
    gateway = get_gateway()

    if not request.url.query:
        challenge = gateway.issuer.issue()
        logger.debug("[challenge] salt=%s time=%d", challenge.salt, challenge.time)
        return render_meta(request, challenge.as_fields())

    logger.info("[request] %s", str(request.url))

    # First value wins for repeated keys
    params = UpdateParams.model_validate(
        {key: request.query_params.getlist(key)[0] for key in request.query_params},
    )
    peer_address = request.client.host if request.client else None

    validated = gateway.verifier.verify(params, peer_address=peer_address)
    logger.info(
        "[request] user=%s domn=%s reqc=%d addr=%s",
        validated.user,
        validated.domain,
        validated.req_code,
        validated.addr,
    )

    result = await gateway.dispatcher.dispatch(validated)
    return render_meta(request, result.as_fields())
