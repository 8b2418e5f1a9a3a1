"""
Auth/Authz interface protocols.

These Protocols define the authentication and authorization contracts used by
the endpoints. Implementations are registered on ``app.state`` at startup:

* ``app.state.authentication_provider`` — ``AuthenticationProvider``
* ``app.state.authorization_provider``  — ``AuthorizationProvider``
* ``app.state.project_directory``       — defined in ``directory.py``
"""

from typing import Any, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from projectgate.api.v1.helpers.directory import (
    DirectoryLookupError,
    ProjectDirectory,
    SqlProjectDirectory,
)
from projectgate.api.v1.helpers.responses import forbidden_response
from projectgate.policy import (
    Capability,
    Decision,
    IdentityContext,
    PermissionGrant,
    ProjectMembershipSnapshot,
    ResourceOwnership,
    evaluate,
)
import logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authentication provider
# ---------------------------------------------------------------------------


@runtime_checkable
class AuthenticationProvider(Protocol):
    """Authenticates an incoming request and returns the actor."""

    async def authenticate(self, request: Any) -> IdentityContext:
        """Return an ``IdentityContext`` or raise 401."""
        ...


# ---------------------------------------------------------------------------
# Authorization provider
# ---------------------------------------------------------------------------


@runtime_checkable
class AuthorizationProvider(Protocol):
    """Checks whether the authenticated caller can perform an action."""

    async def load_context(
        self,
        user: IdentityContext,
        db: AsyncSession,
        project_id: Optional[str],
        directory: Optional[ProjectDirectory] = None,
    ) -> Tuple[ProjectMembershipSnapshot, Optional[PermissionGrant]]:
        """Return (membership, grant) for the caller or raise 403."""
        ...

    async def check_permissions(
        self,
        user: IdentityContext,
        db: AsyncSession,
        required_permissions: Iterable[Capability | str],
        project_id: Optional[str] = None,
        mode: str = "all",
        ownership: Optional[ResourceOwnership] = None,
        directory: Optional[ProjectDirectory] = None,
    ) -> List[Decision]:
        """Raise HTTP 403 if denied; return the decisions if allowed."""
        ...


# ---------------------------------------------------------------------------
# Policy-backed implementation
# ---------------------------------------------------------------------------


class PolicyAuthorizationProvider:
    """
    Loads membership and grant data, then defers every decision to
    ``projectgate.policy.evaluate``.

    Anything that prevents loading those facts (unknown project, store error,
    invalid stored tokens) is a denial: the evaluator is never handed an
    invented empty context.
    """

    async def load_context(
        self,
        user: IdentityContext,
        db: AsyncSession,
        project_id: Optional[str],
        directory: Optional[ProjectDirectory] = None,
    ) -> Tuple[ProjectMembershipSnapshot, Optional[PermissionGrant]]:
        if not project_id:
            raise forbidden_response("A project is required for this check")

        directory = directory or SqlProjectDirectory()
        try:
            membership = await directory.get_membership(project_id, db)
            if membership is None:
                raise forbidden_response("Access denied to this project")
            grant = await directory.get_grant(project_id, user.user_id, db)
        except DirectoryLookupError:
            raise forbidden_response("Access denied: permissions could not be loaded")

        return membership, grant

    async def check_permissions(
        self,
        user: IdentityContext,
        db: AsyncSession,
        required_permissions: Iterable[Capability | str],
        project_id: Optional[str] = None,
        mode: str = "all",
        ownership: Optional[ResourceOwnership] = None,
        directory: Optional[ProjectDirectory] = None,
    ) -> List[Decision]:
        required = list(required_permissions)
        if mode not in ("all", "any"):
            raise ValueError(f"Unsupported permission mode: {mode!r}")
        if not required:
            raise forbidden_response("No permission requested")

        membership, grant = await self.load_context(user, db, project_id, directory)
        decisions = [
            evaluate(user, membership, grant, permission, ownership)
            for permission in required
        ]

        if mode == "all":
            allowed = all(decisions)
        else:
            allowed = any(decisions)

        if not allowed:
            missing = [
                f"{getattr(permission, 'value', permission)}: {decision.reason.value}"
                for permission, decision in zip(required, decisions)
                if not decision.allowed
            ]
            logger.debug(
                f"Denied {user.user_id} on project {project_id}: {', '.join(missing)}"
            )
            raise forbidden_response("Access forbidden", errors=missing)

        return decisions


def get_authorization_provider(request: Request) -> AuthorizationProvider:
    provider = getattr(request.app.state, "authorization_provider", None)
    if provider is None:
        provider = PolicyAuthorizationProvider()
    return provider
