"""Tests for the siteverify client."""

import json
import logging
from unittest.mock import patch

import httpx
import pytest

from src.config.constants import RECAPTCHA_VERIFY_URL, AddressPolicy, FailureKind
from src.services.verification.models import SubmittedChallenge
from src.services.verification.verifier import Verifier


def make_verifier(stub, **kwargs) -> Verifier:
    client = httpx.Client(transport=httpx.MockTransport(stub))
    return Verifier("S", client=client, **kwargs)


def test_accepted_token(siteverify):
    verifier = make_verifier(siteverify)
    result = verifier.verify("token-123")
    assert result.success is True
    assert result
    assert result.errors == []
    assert result.failure is None
    assert verifier.last_error() == []


def test_request_shape(siteverify):
    verifier = make_verifier(siteverify)
    verifier.verify("token-123")
    request = siteverify.requests[-1]
    assert request.method == "POST"
    assert str(request.url) == RECAPTCHA_VERIFY_URL
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert siteverify.last_form == {"secret": ["S"], "response": ["token-123"]}


def test_empty_token_rejected(siteverify):
    """Empty token is forwarded and the provider's code comes back verbatim."""
    siteverify.reply = {"success": False, "error-codes": ["missing-input-response"]}
    verifier = make_verifier(siteverify)
    result = verifier.verify("")
    assert siteverify.last_form["response"] == [""]
    assert result.success is False
    assert result.failure == FailureKind.PROVIDER_REJECTED
    assert verifier.last_error() == ["missing-input-response"]


def test_none_token_sent_as_empty(siteverify):
    verifier = make_verifier(siteverify)
    verifier.verify(None)
    assert siteverify.last_form["response"] == [""]


def test_rejected_codes_preserve_order(siteverify):
    codes = ["invalid-input-secret", "timeout-or-duplicate", "invalid-input-response"]
    siteverify.reply = {"success": False, "error-codes": codes}
    verifier = make_verifier(siteverify)
    assert not verifier.verify("t")
    assert verifier.last_error() == codes
    assert "" not in verifier.last_error()


def test_rejected_without_codes(siteverify):
    siteverify.reply = {"success": False}
    verifier = make_verifier(siteverify)
    result = verifier.verify("t")
    assert result.success is False
    assert result.errors == []


def test_provider_metadata_kept(siteverify):
    siteverify.reply = {
        "success": True,
        "hostname": "example.com",
        "challenge_ts": "2024-01-01T00:00:00Z",
        "score": 0.9,
    }
    result = make_verifier(siteverify).verify("t")
    assert result.hostname == "example.com"
    assert result.challenge_ts == "2024-01-01T00:00:00Z"


@pytest.mark.parametrize("error", [httpx.ConnectError, httpx.ReadTimeout, httpx.ConnectTimeout])
def test_transport_failure_single_diagnostic(siteverify, error):
    siteverify.error = error
    verifier = make_verifier(siteverify)
    result = verifier.verify("t")
    assert result.success is False
    assert result.failure == FailureKind.TRANSPORT
    assert len(verifier.last_error()) == 1
    assert verifier.last_error()[0].startswith("transport-error:")


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b"[1, 2]",
        b'{"error-codes": []}',
        b"",
        b'{"success": "true"}',
        b'{"success": 1}',
        b'{"success": "yes"}',
        b'{"success": false, "error-codes": [1]}',
    ],
)
def test_undecodable_reply(siteverify, raw):
    siteverify.raw = raw
    verifier = make_verifier(siteverify)
    result = verifier.verify("t")
    assert result.success is False
    assert result.failure == FailureKind.DECODE
    assert len(result.errors) == 1
    assert result.errors[0].startswith("decode-error:")


def test_non_200_reply_still_decoded(siteverify):
    siteverify.status_code = 500
    siteverify.reply = {"success": False, "error-codes": ["bad-request"]}
    result = make_verifier(siteverify).verify("t")
    assert result.errors == ["bad-request"]


def test_last_error_overwritten_not_accumulated(siteverify):
    siteverify.reply = {"success": False, "error-codes": ["invalid-input-response"]}
    verifier = make_verifier(siteverify)
    verifier.verify("t")
    verifier.verify("t")
    assert verifier.last_error() == ["invalid-input-response"]

    siteverify.reply = {"success": True}
    verifier.verify("t")
    assert verifier.last_error() == []


def test_last_error_idempotent(siteverify):
    siteverify.reply = {"success": False, "error-codes": ["timeout-or-duplicate"]}
    verifier = make_verifier(siteverify)
    verifier.verify("t")
    first = verifier.last_error()
    first.append("mutated")
    assert verifier.last_error() == ["timeout-or-duplicate"]
    assert verifier.last_error() == verifier.last_error()


def test_last_error_before_any_call():
    assert Verifier("S").last_error() == []


def test_remoteip_from_forwarded_for(siteverify):
    verifier = make_verifier(siteverify, address_policy=AddressPolicy.TRUST_FORWARDED_FOR_LAST_HOP)
    result = verifier.verify("t", "9.9.9.9:443", "1.2.3.4, 5.6.7.8")
    assert siteverify.last_form["remoteip"] == ["5.6.7.8"]
    assert result.remote_ip == "5.6.7.8"


def test_remoteip_from_connection(siteverify):
    verifier = make_verifier(siteverify, address_policy=AddressPolicy.USE_CONNECTION_ADDRESS)
    verifier.verify_challenge(SubmittedChallenge("t", "9.9.9.9:443", "1.2.3.4"))
    assert siteverify.last_form["remoteip"] == ["9.9.9.9"]


def test_remoteip_omitted_by_default(siteverify):
    verifier = make_verifier(siteverify)
    verifier.verify("t", "9.9.9.9:443", "1.2.3.4")
    assert "remoteip" not in siteverify.last_form


def test_from_settings(settings):
    settings.address_policy = AddressPolicy.USE_CONNECTION_ADDRESS
    settings.trusted_proxies = ["10.0.0.0/8"]
    verifier = Verifier.from_settings(settings)
    assert verifier.secret == "S"
    assert verifier.timeout == 20.0
    assert verifier.address_policy == AddressPolicy.USE_CONNECTION_ADDRESS
    assert len(verifier.trusted_proxies) == 1
    assert verifier.verify_url == RECAPTCHA_VERIFY_URL


def test_transport_failure_logged_with_traceback(siteverify, caplog):
    siteverify.error = httpx.ConnectError
    verifier = make_verifier(siteverify)
    with caplog.at_level(logging.ERROR, logger="src.services.verification.verifier"):
        verifier.verify("t")
    record = next(r for r in caplog.records if r.levelno == logging.ERROR)
    assert record.exc_info is not None
    payload = json.loads(record.getMessage())
    assert payload["step"] == "recaptcha_request"
    assert payload["error_type"] == "ConnectError"
    assert payload["context"] == {"url": RECAPTCHA_VERIFY_URL}


EXPECTED_TIMEOUT = {"connect": 20.0, "read": 20.0, "write": 20.0, "pool": 20.0}


def test_timeout_on_injected_client(siteverify):
    verifier = make_verifier(siteverify)
    verifier.verify("t")
    assert siteverify.requests[-1].extensions["timeout"] == EXPECTED_TIMEOUT


def test_timeout_on_short_lived_client(siteverify):
    real_client = httpx.Client

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(siteverify), **kwargs)

    with patch("src.services.verification.verifier.httpx.Client", side_effect=client_factory) as factory:
        result = Verifier("S").verify("t")

    factory.assert_called_once_with(timeout=20.0)
    assert result.success is True
    assert siteverify.requests[-1].extensions["timeout"] == EXPECTED_TIMEOUT
