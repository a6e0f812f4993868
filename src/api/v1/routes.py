"""
API v1 routes.

Defines REST endpoints for realm-scoped self-service registration.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.adapters.repository.postgres import PostgresUserDirectory
from src.api.dependencies import (
    get_directory,
    get_invite_issuer,
    get_realm,
    get_registration_service,
    require_operator,
)
from src.api.models import (
    DiagnosticModel,
    ErrorResponse,
    InviteLinkResponse,
    RegistrationErrorResponse,
    RegistrationResponse,
)
from src.config.settings import Settings, get_settings
from src.domain.exceptions import EmailAlreadyInUse, UsernameAlreadyInUse
from src.domain.invites import InviteIssuer
from src.domain.models import (
    FIELD_EMAIL,
    FIELD_USERNAME,
    Decision,
    Diagnostic,
    RegistrationSubmission,
    ValidationResult,
)
from src.domain.registration import MSG_EMAIL_EXISTS, MSG_USERNAME_EXISTS, RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])


def _rejection(result: ValidationResult) -> JSONResponse:
    status_code = (
        status.HTTP_409_CONFLICT
        if result.decision is Decision.EMAIL_IN_USE
        else status.HTTP_400_BAD_REQUEST
    )
    body = RegistrationErrorResponse(
        error=result.decision.value,
        errors=[DiagnosticModel(field=d.field_name, message=d.message) for d in result.diagnostics],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post(
    "/realms/{realm}/registrations",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": RegistrationErrorResponse, "description": "Invalid registration"},
        404: {"model": ErrorResponse, "description": "Unknown realm"},
        409: {"model": RegistrationErrorResponse, "description": "Email already in use"},
    },
    summary="Register a new account",
    description="Submit the form-encoded registration page. Requires either a valid "
    "invite code or a verified client certificate.",
)
async def register(
    request: Request,
    realm: str = Depends(get_realm),
    service: RegistrationService = Depends(get_registration_service),
    directory: PostgresUserDirectory = Depends(get_directory),
) -> RegistrationResponse | JSONResponse:
    """
    Validate a registration and create the account.

    Every validation rule runs; a rejection lists all diagnostics at once.
    The account and its tier assignment are written in one transaction.
    """
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}

    result = service.submit(fields, request)
    if not result.accepted:
        return _rejection(result)

    try:
        with directory.transaction() as unit:
            account = unit.create_account(RegistrationSubmission.from_form(fields), realm)
            plan = service.complete(account, request, unit)
    except EmailAlreadyInUse:
        return _rejection(
            ValidationResult(Decision.EMAIL_IN_USE, (Diagnostic(FIELD_EMAIL, MSG_EMAIL_EXISTS),))
        )
    except UsernameAlreadyInUse:
        return _rejection(
            ValidationResult(
                Decision.INVALID_REGISTRATION, (Diagnostic(FIELD_USERNAME, MSG_USERNAME_EXISTS),)
            )
        )

    return RegistrationResponse(
        username=account.username,
        email=account.email,
        tiers=sorted(t.value for t in plan.tiers),
        required_actions=[a.value for a in plan.required_actions],
    )


@router.get(
    "/realms/{realm}/invite",
    response_model=InviteLinkResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Operator authentication required"},
        404: {"model": ErrorResponse, "description": "Unknown realm"},
    },
    summary="Get today's invite link",
    description="Returns the realm's registration link carrying today's invite code. "
    "Requires operator credentials via HTTP BASIC AUTH.",
)
async def invite_link(
    realm: str = Depends(get_realm),
    operator: str = Depends(require_operator),
    issuer: InviteIssuer = Depends(get_invite_issuer),
    settings: Settings = Depends(get_settings),
) -> InviteLinkResponse:
    """Issue today's invite link; success is false when no invite secret is configured."""
    link = issuer.issue(settings.invite_config(), realm)
    if link.issued:
        logger.info("Invite link issued for realm %s by %s", realm, operator)
    return InviteLinkResponse(success=link.issued, days=link.valid_days, link=link.link)
