"""FastAPI dependencies."""

import httpx
from fastapi import Depends, Request

from src.config.constants import FORWARDED_FOR_HEADER
from src.config.settings import Settings, get_settings
from src.services.verification.models import SubmittedChallenge
from src.services.verification.verifier import Verifier


def get_verifier(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> Verifier:
    """Per-request verifier sharing the application's connection pool."""
    async_client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)
    return Verifier.from_settings(settings, async_client=async_client)


def extract_challenge(request: Request, token: str | None) -> SubmittedChallenge:
    """Collect the inbound fields verification needs from a request."""
    client_address = None
    if request.client is not None:
        client_address = request.client.host
    return SubmittedChallenge(
        token=token,
        client_address=client_address,
        forwarded_for=request.headers.get(FORWARDED_FOR_HEADER),
    )
