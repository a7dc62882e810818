"""Shared fixtures for GnuDIP Gateway tests."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest

from gnudip_gateway.config import AuthConfig, Config, ProviderConfig
from gnudip_gateway.providers.base import BaseUpdater, ProviderResult
from gnudip_gateway.server import build_gateway
from gnudip_gateway.signer import Signer
from gnudip_gateway.verifier import derive_password

if TYPE_CHECKING:
    from collections.abc import Callable

    from gnudip_gateway.models import Challenge
    from gnudip_gateway.server import Gateway


USERNAME = "home"
PASSWORD = "s3cret-passw0rd"
START_TIME = 1_700_000_000.0

_META_PATTERN = re.compile(r'<meta name="([^"]+)" content="([^"]*)">')


class FakeClock:
    """A controllable replacement for `time.time`."""

    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpdater(BaseUpdater):
    """Updater that records addresses instead of calling a provider."""

    def __init__(self, result: ProviderResult | None = None) -> None:
        super().__init__(
            ProviderConfig(
                name="vultr",
                api_key="test-key",
                domain="example.com",
                record_id="rec-1",
            ),
        )
        self.calls: list[str] = []
        self.result = result or ProviderResult(success=True, message="updated")

    @property
    def name(self) -> str:
        return "fake"

    async def update(self, address: str) -> ProviderResult:
        self.calls.append(address)
        return self.result


def parse_meta(html: str) -> dict[str, str]:
    """Extract meta tag name/content pairs from a response page."""
    return dict(_META_PATTERN.findall(html))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START_TIME)


@pytest.fixture
def signer() -> Signer:
    return Signer(b"0123456789")


@pytest.fixture
def updater() -> FakeUpdater:
    return FakeUpdater()


@pytest.fixture
def config() -> Config:
    return Config(
        auth=AuthConfig(username=USERNAME, password=PASSWORD),
        provider=ProviderConfig(
            name="vultr",
            api_key="test-key",
            domain="example.com",
            record_id="rec-1",
        ),
    )


@pytest.fixture
def gateway(config: Config, signer: Signer, updater: FakeUpdater, clock: FakeClock) -> Gateway:
    return build_gateway(config, signer=signer, updater=updater, clock=clock)


@pytest.fixture
def login_query() -> Callable[..., dict[str, str]]:
    """Build an update query answering a challenge with the test credential."""

    def _build(
        challenge: Challenge,
        *,
        user: str = USERNAME,
        password: str = PASSWORD,
        **extra: str,
    ) -> dict[str, str]:
        query = {
            "salt": challenge.salt,
            "time": str(challenge.time),
            "sign": challenge.sign,
            "user": user,
            "pass": derive_password(password, challenge.salt),
            "domn": "home.example.com",
        }
        query.update(extra)
        return query

    return _build
