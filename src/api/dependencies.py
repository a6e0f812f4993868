"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

import secrets

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from psycopg_pool import ConnectionPool

from src.adapters.events.logging_sink import LoggingRegistrationEvents
from src.adapters.identity.certificate import CertificateHeaderResolver
from src.adapters.repository.postgres import PostgresUserDirectory
from src.config.settings import Settings, get_settings
from src.domain.invites import DigestCache, InviteIssuer, InviteVerifier
from src.domain.registration import RegistrationService, RegistrationValidator
from src.domain.tiers import TierAssignment


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_digest_cache(request: Request) -> DigestCache:
    """Get the process-wide digest cache owned by the application."""
    return request.app.state.digest_cache


def get_realm(realm: str, settings: Settings = Depends(get_settings)) -> str:
    """Resolve the realm path parameter; only the configured realm is served."""
    if realm != settings.realm:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Realm not found")
    return realm


def get_directory(request: Request) -> PostgresUserDirectory:
    """Create user directory with connection pool from app state."""
    return PostgresUserDirectory(get_pool(request))


def get_registration_service(
    request: Request,
    realm: str = Depends(get_realm),
    directory: PostgresUserDirectory = Depends(get_directory),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires the directory, certificate resolver, invite verifier and event
    sink into the validation pipeline for the realm.
    """
    resolver = CertificateHeaderResolver(
        directory,
        realm,
        verify_header=settings.certificate_verify_header,
        subject_header=settings.certificate_subject_header,
    )
    domain_config = settings.domain_config()
    validator = RegistrationValidator(
        realm=realm,
        invite_config=settings.invite_config(),
        domain_config=domain_config,
        invite_verifier=InviteVerifier(get_digest_cache(request)),
        identity_resolver=resolver,
        directory=directory,
        events=LoggingRegistrationEvents(realm),
    )
    return RegistrationService(validator=validator, tier_assignment=TierAssignment(domain_config))


def get_invite_issuer(request: Request) -> InviteIssuer:
    """Create invite issuer sharing the application's digest cache."""
    return InviteIssuer(get_digest_cache(request))


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()

BCRYPT_MAX_PASSWORD_BYTES = 72


def require_operator(
    credentials: HTTPBasicCredentials = Depends(http_basic),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Authenticate the operator allowed to issue invite links.

    Both comparisons always run so a wrong username costs the same as a
    wrong password.

    Returns:
        The operator username
    """
    if settings.operator_username is None or settings.operator_password_hash is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    username_valid = secrets.compare_digest(
        credentials.username.encode(), settings.operator_username.encode()
    )
    password = credentials.password.encode()
    # bcrypt rejects input past 72 bytes instead of matching it
    password_valid = len(password) <= BCRYPT_MAX_PASSWORD_BYTES and bcrypt.checkpw(
        password, settings.operator_password_hash.encode()
    )
    if not (username_valid and password_valid):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
