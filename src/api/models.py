"""Request/Response models for API endpoints."""

from pydantic import BaseModel, Field


class VerifyRequest(BaseModel):
    """Request model for the JSON verification endpoint."""

    token: str = Field("", description="Value of the g-recaptcha-response field")


class VerifyResponse(BaseModel):
    """Response model for the JSON verification endpoint."""

    success: bool = Field(..., description="Whether the provider accepted the token")
    error_codes: list[str] = Field(default_factory=list, description="Diagnostics, empty on success")
    failure: str | None = Field(None, description="transport, decode or provider_rejected")
    hostname: str | None = Field(None, description="Site the token was issued for")
    challenge_ts: str | None = Field(None, description="When the challenge was solved")


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
