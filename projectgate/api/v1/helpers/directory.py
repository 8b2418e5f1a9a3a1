"""
ProjectDirectory interface and implementations.

The evaluator never fetches anything itself. This module is the caller side:
it turns store rows into ``ProjectMembershipSnapshot`` and ``PermissionGrant``
values.

- SqlProjectDirectory: reads the project projection and the grant tables.
- RequestScopedDirectory: memoises lookups for the lifetime of one request so
  several checks in one handler share a single query. A new instance is built
  per request; nothing survives the request boundary.
"""

from typing import Dict, Optional, Protocol, Tuple

from fastapi import Request
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projectgate.models.iam.permissions import ProjectMemberPermission
from projectgate.models.iam.projects import Project
from projectgate.models.iam.relationships import project_members
from projectgate.policy import PermissionGrant, ProjectMembershipSnapshot
import logging

logger = logging.getLogger(__name__)


class DirectoryLookupError(Exception):
    """The project or grant store could not answer. Callers must deny."""


class ProjectDirectory(Protocol):
    async def get_membership(
        self, project_id: str, db: AsyncSession
    ) -> Optional[ProjectMembershipSnapshot]:
        ...

    async def get_grant(
        self, project_id: str, user_id: str, db: AsyncSession
    ) -> Optional[PermissionGrant]:
        ...


class SqlProjectDirectory:
    async def get_membership(
        self, project_id: str, db: AsyncSession
    ) -> Optional[ProjectMembershipSnapshot]:
        try:
            result = await db.execute(
                select(Project).where(Project.project_id == project_id)
            )
            project = result.scalar_one_or_none()
            if project is None:
                return None

            members = await db.execute(
                select(project_members.c.user_id).where(
                    project_members.c.project_id == project_id
                )
            )
            return ProjectMembershipSnapshot(
                project_id=project.project_id,
                manager_user_id=project.manager_user_id,
                member_user_ids=frozenset(members.scalars().all()),
            )
        except SQLAlchemyError as e:
            logger.error(f"Membership lookup failed for project {project_id}: {e}")
            raise DirectoryLookupError("Project store unavailable") from e

    async def get_grant(
        self, project_id: str, user_id: str, db: AsyncSession
    ) -> Optional[PermissionGrant]:
        try:
            result = await db.execute(
                select(ProjectMemberPermission)
                .options(selectinload(ProjectMemberPermission.permissions))
                .where(
                    ProjectMemberPermission.project_id == project_id,
                    ProjectMemberPermission.user_id == user_id,
                )
            )
            record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                f"Grant lookup failed for project {project_id}, user {user_id}: {e}"
            )
            raise DirectoryLookupError("Permission store unavailable") from e

        if record is None:
            return None

        try:
            return PermissionGrant(
                project_id=record.project_id,
                user_id=record.user_id,
                tokens=[permission.name for permission in record.permissions],
            )
        except ValidationError as e:
            # A stored token outside the closed set means the store was written
            # around validation; refuse to guess what it meant.
            logger.error(
                f"Invalid stored grant for project {project_id}, user {user_id}: {e}"
            )
            raise DirectoryLookupError("Stored grant failed validation") from e


class RequestScopedDirectory:
    """Per-request memo over another ``ProjectDirectory``."""

    def __init__(self, inner: ProjectDirectory):
        self._inner = inner
        self._memberships: Dict[str, Optional[ProjectMembershipSnapshot]] = {}
        self._grants: Dict[Tuple[str, str], Optional[PermissionGrant]] = {}

    async def get_membership(
        self, project_id: str, db: AsyncSession
    ) -> Optional[ProjectMembershipSnapshot]:
        if project_id not in self._memberships:
            self._memberships[project_id] = await self._inner.get_membership(
                project_id, db
            )
        return self._memberships[project_id]

    async def get_grant(
        self, project_id: str, user_id: str, db: AsyncSession
    ) -> Optional[PermissionGrant]:
        key = (project_id, user_id)
        if key not in self._grants:
            self._grants[key] = await self._inner.get_grant(project_id, user_id, db)
        return self._grants[key]

    def invalidate(self, project_id: str, user_id: str | None = None) -> None:
        """Drop memoised grants after a write within the same request."""
        for key in list(self._grants):
            if key[0] == project_id and (user_id is None or key[1] == user_id):
                del self._grants[key]


def get_project_directory(request: Request) -> RequestScopedDirectory:
    inner = getattr(request.app.state, "project_directory", None)
    if inner is None:
        inner = SqlProjectDirectory()
    return RequestScopedDirectory(inner)
