"""
Bearer-token authentication.

Tokens are signed by the user service; this service only verifies them and
extracts two claims, the subject id and the global role, into an
``IdentityContext``. No sessions, passwords or token issuance for end users
live here.
"""

from typing import Any
from datetime import timedelta, datetime, timezone
from fastapi import Request
from jose import JWTError, jwt
from projectgate.config import settings
from projectgate.policy import GlobalRole, IdentityContext
from projectgate.api.v1.helpers.responses import unauthorized_response
import logging

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    role: GlobalRole | str,
    expires_delta: timedelta | None = None,
    extra_claims: dict | None = None,
) -> str:
    """Mint a token the way the user service does. Used by tests and tooling."""
    role_value = role.value if isinstance(role, GlobalRole) else role
    to_encode = {
        settings.jwt_subject_claim: subject,
        settings.jwt_role_claim: role_value,
        "exp": datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15)),
    }
    if settings.jwt_issuer:
        to_encode["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def identity_from_claims(payload: dict[str, Any]) -> IdentityContext:
    user_id = payload.get(settings.jwt_subject_claim)
    if not user_id or not isinstance(user_id, str):
        raise unauthorized_response("No user id found in token")

    role = GlobalRole.parse(payload.get(settings.jwt_role_claim))
    if role is None:
        logger.warning(f"Rejected token for {user_id}: unrecognised role claim")
        raise unauthorized_response("Unrecognised role in token")

    return IdentityContext(user_id=user_id, global_role=role)


def validate_jwt_token(jwt_token: str) -> IdentityContext:
    try:
        payload = jwt.decode(
            jwt_token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError:
        raise unauthorized_response("Invalid JWT")
    return identity_from_claims(payload)


def _bearer_token(request: Any) -> str | None:
    auth_header: str | None = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return None


class JWTAuthenticationProvider:
    """Authenticates requests carrying ``Authorization: Bearer <jwt>``."""

    async def authenticate(self, request: Any) -> IdentityContext:
        jwt_token = _bearer_token(request)
        if not jwt_token:
            raise unauthorized_response("No authentication method found")
        return validate_jwt_token(jwt_token)


async def get_current_identity(request: Request) -> IdentityContext:
    provider = getattr(request.app.state, "authentication_provider", None)
    if provider is None:
        provider = JWTAuthenticationProvider()
    return await provider.authenticate(request)
