"""Verification service models."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.config.constants import FailureKind


class RemoteResponse(BaseModel):
    """Decoded siteverify reply."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, strict=True)

    success: bool
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")
    hostname: str | None = None
    challenge_ts: str | None = None


@dataclass(frozen=True)
class SubmittedChallenge:
    """Fields of an inbound submission that verification needs."""

    token: str | None
    client_address: str | None = None
    forwarded_for: str | None = None


@dataclass
class VerificationResult:
    """Result of one verification exchange."""

    success: bool
    errors: list[str] = field(default_factory=list)
    failure: FailureKind | None = None
    remote_ip: str | None = None
    hostname: str | None = None
    challenge_ts: str | None = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failed(cls, failure: FailureKind, message: str, remote_ip: str | None = None) -> "VerificationResult":
        """Build a single-diagnostic failure."""
        return cls(success=False, errors=[message], failure=failure, remote_ip=remote_ip)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and API responses."""
        return {
            "success": self.success,
            "error_codes": list(self.errors),
            "failure": self.failure.value if self.failure else None,
            "hostname": self.hostname,
            "challenge_ts": self.challenge_ts,
        }
