"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Registration itself is submitted form-encoded, so it has no request model.
"""

from pydantic import BaseModel, Field


class DiagnosticModel(BaseModel):
    """One validation failure; an empty field means the whole form."""

    field: str
    message: str


class RegistrationResponse(BaseModel):
    """Response model for an accepted registration."""

    username: str
    email: str
    tiers: list[str]
    required_actions: list[str]


class RegistrationErrorResponse(BaseModel):
    """Response model for a rejected registration."""

    error: str = Field(..., description="Event code: invalid_registration or email_in_use")
    errors: list[DiagnosticModel] = Field(default_factory=list)


class InviteLinkResponse(BaseModel):
    """Today's invite link for the realm."""

    success: bool
    days: int
    link: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
