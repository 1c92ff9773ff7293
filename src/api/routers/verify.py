"""JSON verification and health endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import extract_challenge, get_verifier
from src.api.models import HealthResponse, VerifyRequest, VerifyResponse
from src.config.settings import Settings, get_settings
from src.services.verification.verifier import Verifier

router = APIRouter()


@router.post("/verify", response_model=VerifyResponse)
async def verify(
    body: VerifyRequest,
    request: Request,
    verifier: Verifier = Depends(get_verifier),
) -> dict[str, Any]:
    """Verify a token and report the provider's verdict."""
    challenge = extract_challenge(request, body.token)
    result = await verifier.verify_challenge_async(challenge)
    return result.to_dict()


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """Health check."""
    return HealthResponse(status="healthy", version=settings.app_version)
