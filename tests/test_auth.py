"""
Tests for address classification and JWT issuance/validation.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from backend_walletpnl.api_server.auth import (
    check_credentials,
    create_access_token,
    decode_access_token,
)
from backend_walletpnl.api_server.classifier import classify
from backend_walletpnl.core.exceptions import InvalidAddressError, InvalidTokenError
from backend_walletpnl.ledger.models import ChainFamily

from conftest import EVM_WALLET, SOL_WALLET


def test_classify_evm():
    assert classify(EVM_WALLET) is ChainFamily.EVM
    assert classify(EVM_WALLET.upper().replace("0X", "0x")) is ChainFamily.EVM


def test_classify_solana():
    assert classify(SOL_WALLET) is ChainFamily.SOLANA
    assert classify("  " + SOL_WALLET + "  ") is ChainFamily.SOLANA


@pytest.mark.parametrize(
    "address",
    [
        "",
        "   ",
        "0x123",
        "0x" + "g" * 40,
        "not-an-address",
        "0OIl" * 10,
    ],
)
def test_classify_invalid(address):
    with pytest.raises(InvalidAddressError):
        classify(address)


def test_check_credentials(settings):
    assert check_credentials(settings, "user@example.com", "password")
    assert not check_credentials(settings, "user@example.com", "nope")
    assert not check_credentials(settings, "other@example.com", "password")
    assert not check_credentials(replace(settings, auth_password=""), "user@example.com", "")


def test_token_round_trip(settings):
    token = create_access_token(settings, "user@example.com")
    payload = decode_access_token(settings, token)
    assert payload["sub"] == "user@example.com"
    assert payload["email"] == "user@example.com"
    assert payload["exp"] > payload["iat"]


def test_expired_token_rejected(settings):
    token = create_access_token(replace(settings, jwt_expiration_minutes=-1), "user@example.com")
    with pytest.raises(InvalidTokenError) as exc_info:
        decode_access_token(settings, token)
    assert "expired" in exc_info.value.message.lower()


def test_token_signed_with_other_secret_rejected(settings):
    token = create_access_token(replace(settings, jwt_secret="another-secret-key-with-enough-length!!"), "user@example.com")
    with pytest.raises(InvalidTokenError):
        decode_access_token(settings, token)
