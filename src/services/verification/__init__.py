"""Verification service module."""

from src.services.verification.address import resolve_remote_ip
from src.services.verification.models import (
    RemoteResponse,
    SubmittedChallenge,
    VerificationResult,
)
from src.services.verification.verifier import Verifier

__all__ = [
    "RemoteResponse",
    "SubmittedChallenge",
    "VerificationResult",
    "Verifier",
    "resolve_remote_ip",
]
