"""reCAPTCHA siteverify client."""

import asyncio
import logging
import threading
import time
from collections.abc import Iterable

import httpx
from pydantic import ValidationError

from src.config.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    RECAPTCHA_VERIFY_URL,
    AddressPolicy,
    FailureKind,
)
from src.config.settings import Settings
from src.infrastructure.logging.logger import StructuredLogger
from src.services.verification.address import parse_networks, resolve_remote_ip
from src.services.verification.models import (
    RemoteResponse,
    SubmittedChallenge,
    VerificationResult,
)

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


def _describe(error: Exception) -> str:
    """Exception text, falling back to its type name when empty."""
    return str(error) or type(error).__name__


class Verifier:
    """Verifies challenge tokens against the siteverify endpoint."""

    def __init__(
        self,
        secret: str,
        address_policy: AddressPolicy = AddressPolicy.NEVER,
        trusted_proxies: Iterable[str] = (),
        verify_url: str = RECAPTCHA_VERIFY_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
        async_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize verifier.

        Args:
            secret: Server-side key paired with the widget's site key
            address_policy: How the remoteip parameter is chosen
            trusted_proxies: Networks allowed to supply X-Forwarded-For
            verify_url: Provider endpoint
            timeout: Bound on one verification round trip, in seconds
            client: Shared sync client; a short-lived one is used when omitted
            async_client: Shared async client; a short-lived one is used when omitted
        """
        self.secret = secret
        self.address_policy = AddressPolicy(address_policy)
        self.trusted_proxies = parse_networks(trusted_proxies)
        self.verify_url = verify_url
        self.timeout = timeout
        self._client = client
        self._async_client = async_client
        self._last_errors: list[str] = []
        self._lock = threading.Lock()
        self._events = StructuredLogger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.Client | None = None,
        async_client: httpx.AsyncClient | None = None,
    ) -> "Verifier":
        """Build a verifier from application settings."""
        return cls(
            secret=settings.recaptcha_secret,
            address_policy=settings.address_policy,
            trusted_proxies=settings.trusted_proxies,
            verify_url=settings.recaptcha_verify_url,
            timeout=settings.recaptcha_timeout,
            client=client,
            async_client=async_client,
        )

    def resolve_remote_ip(
        self, client_address: str | None = None, forwarded_for: str | None = None
    ) -> str | None:
        """Select the remoteip value according to this verifier's policy."""
        return resolve_remote_ip(
            self.address_policy, client_address, forwarded_for, self.trusted_proxies
        )

    def build_params(self, token: str | None, remote_ip: str | None = None) -> dict[str, str]:
        """Form body for one siteverify request."""
        params = {"secret": self.secret, "response": token or ""}
        if remote_ip:
            params["remoteip"] = remote_ip
        return params

    def verify(
        self,
        token: str | None,
        client_address: str | None = None,
        forwarded_for: str | None = None,
    ) -> VerificationResult:
        """
        Verify a submitted token.

        Transport, decode and provider failures are reported through the
        returned result; none of them raise.

        Args:
            token: Value of the g-recaptcha-response form field
            client_address: Connection address of the submitting client
            forwarded_for: X-Forwarded-For header value, if any

        Returns:
            VerificationResult, truthy when the provider accepted the token
        """
        remote_ip = self.resolve_remote_ip(client_address, forwarded_for)
        params = self.build_params(token, remote_ip)
        start = time.perf_counter()

        try:
            if self._client is not None:
                response = self._client.post(
                    self.verify_url, data=params, headers=_FORM_HEADERS, timeout=self.timeout
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.verify_url, data=params, headers=_FORM_HEADERS)
        except httpx.HTTPError as e:
            result = self._transport_failure(e, remote_ip)
        else:
            result = self._interpret(response, remote_ip)

        return self._record(result, start)

    async def verify_async(
        self,
        token: str | None,
        client_address: str | None = None,
        forwarded_for: str | None = None,
    ) -> VerificationResult:
        """Verify a submitted token without blocking the event loop."""
        remote_ip = self.resolve_remote_ip(client_address, forwarded_for)
        params = self.build_params(token, remote_ip)
        start = time.perf_counter()

        try:
            if self._async_client is not None:
                response = await self._async_client.post(
                    self.verify_url, data=params, headers=_FORM_HEADERS, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.verify_url, data=params, headers=_FORM_HEADERS
                    )
        except asyncio.CancelledError:
            logger.warning("reCAPTCHA request to %s cancelled", self.verify_url)
            with self._lock:
                self._last_errors = ["transport-error: cancelled"]
            raise
        except httpx.HTTPError as e:
            result = self._transport_failure(e, remote_ip)
        else:
            result = self._interpret(response, remote_ip)

        return self._record(result, start)

    def verify_challenge(self, challenge: SubmittedChallenge) -> VerificationResult:
        """Verify the fields extracted from an inbound submission."""
        return self.verify(challenge.token, challenge.client_address, challenge.forwarded_for)

    async def verify_challenge_async(self, challenge: SubmittedChallenge) -> VerificationResult:
        """Async variant of verify_challenge."""
        return await self.verify_async(
            challenge.token, challenge.client_address, challenge.forwarded_for
        )

    def last_error(self) -> list[str]:
        """Errors recorded by the most recent verification on this instance."""
        with self._lock:
            return list(self._last_errors)

    def _transport_failure(self, error: httpx.HTTPError, remote_ip: str | None) -> VerificationResult:
        self._events.log_error("recaptcha_request", error, context={"url": self.verify_url})
        return VerificationResult.failed(
            FailureKind.TRANSPORT, f"transport-error: {_describe(error)}", remote_ip
        )

    def _interpret(self, response: httpx.Response, remote_ip: str | None) -> VerificationResult:
        """Decode a siteverify reply into a result."""
        if response.status_code != httpx.codes.OK:
            logger.warning("reCAPTCHA endpoint returned HTTP %s", response.status_code)

        try:
            remote = RemoteResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Could not decode reCAPTCHA reply: %s", _describe(e))
            return VerificationResult.failed(
                FailureKind.DECODE, f"decode-error: {_describe(e)}", remote_ip
            )

        if not remote.success:
            return VerificationResult(
                success=False,
                errors=list(remote.error_codes),
                failure=FailureKind.PROVIDER_REJECTED,
                remote_ip=remote_ip,
                hostname=remote.hostname,
                challenge_ts=remote.challenge_ts,
            )

        return VerificationResult(
            success=True,
            remote_ip=remote_ip,
            hostname=remote.hostname,
            challenge_ts=remote.challenge_ts,
        )

    def _record(self, result: VerificationResult, start: float) -> VerificationResult:
        with self._lock:
            self._last_errors = list(result.errors)
        self._events.log_verification(
            success=result.success,
            errors=result.errors,
            failure=result.failure.value if result.failure else None,
            remote_ip_sent=result.remote_ip is not None,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return result
