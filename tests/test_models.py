"""Tests for data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gnudip_gateway.models import (
    OFFLINE_ADDRESS,
    Challenge,
    ProviderName,
    RecordType,
    ReqCode,
    UpdateParams,
    UpdateResult,
)


class TestProviderName:
    """Tests for ProviderName enum."""

    def test_provider_values(self):
        assert ProviderName.VULTR == "vultr"
        assert ProviderName.CLOUDFLARE == "cloudflare"
        assert ProviderName.ALIYUN == "aliyun"
        assert ProviderName.TENCENT == "tencent"

    def test_provider_from_string(self):
        assert ProviderName("vultr") == ProviderName.VULTR
        assert ProviderName("tencent") == ProviderName.TENCENT


class TestReqCode:
    """Tests for ReqCode enum."""

    def test_values(self):
        assert ReqCode.REGISTER_ADDRESS == 0
        assert ReqCode.GO_OFFLINE == 1
        assert ReqCode.REGISTER_PEER == 2  # noqa: PLR2004

    def test_unknown_code(self):
        with pytest.raises(ValueError):  # noqa: PT011
            ReqCode(3)


class TestRecordType:
    """Tests for RecordType enum."""

    def test_record_type_values(self):
        assert RecordType.A == "A"
        assert RecordType.AAAA == "AAAA"


def test_offline_address():
    assert OFFLINE_ADDRESS == "0.0.0.0"  # noqa: S104


class TestChallenge:
    """Tests for Challenge model."""

    def test_as_fields(self):
        challenge = Challenge(salt="c2FsdHNhbHRz", time=1_700_000_000, sign="A" * 20)
        assert challenge.as_fields() == {
            "salt": "c2FsdHNhbHRz",
            "time": "1700000000",
            "sign": "A" * 20,
        }

    def test_frozen(self):
        challenge = Challenge(salt="c2FsdHNhbHRz", time=1_700_000_000, sign="A" * 20)
        with pytest.raises(ValidationError):
            challenge.salt = "other"


class TestUpdateParams:
    """Tests for UpdateParams model."""

    def test_from_query(self):
        params = UpdateParams.model_validate(
            {
                "salt": "c2FsdHNhbHRz",
                "time": "1700000000",
                "sign": "A" * 20,
                "user": "home",
                "pass": "0123456789abcdef",
                "domn": "home.example.com",
                "reqc": "0",
                "addr": "203.0.113.5",
            },
        )
        assert params.password == "0123456789abcdef"
        assert params.domn == "home.example.com"
        assert params.reqc == "0"

    def test_defaults_to_empty(self):
        params = UpdateParams()
        assert params.salt == ""
        assert params.password == ""
        assert params.addr == ""

    def test_password_only_from_pass_key(self):
        params = UpdateParams.model_validate({"password": "secret"})
        assert params.password == ""

    def test_unknown_fields_ignored(self):
        params = UpdateParams.model_validate({"user": "home", "extra": "value"})
        assert params.user == "home"
        assert not hasattr(params, "extra")


class TestUpdateResult:
    """Tests for UpdateResult model."""

    def test_as_fields_drops_missing_addr(self):
        assert UpdateResult(retc="0").as_fields() == {"retc": "0"}

    def test_as_fields_with_addr(self):
        result = UpdateResult(retc="0", addr="198.51.100.7")
        assert result.as_fields() == {"retc": "0", "addr": "198.51.100.7"}
