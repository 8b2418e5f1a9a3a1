"""
Immutable inputs and outputs of a policy decision.

Every value here is created per evaluation and discarded afterwards. They are
frozen pydantic models so they can be built straight from store rows or wire
payloads (``model_validate``) and passed between threads without copying.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .capabilities import Capability, serialize, validate


class GlobalRole(str, Enum):
    ADMIN = "Admin"
    PROJECT_MANAGER = "ProjectManager"
    TEAM_MEMBER = "TeamMember"

    @classmethod
    def parse(cls, raw: Any) -> "GlobalRole | None":
        """Match a role claim case-insensitively, ignoring underscores."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = raw.strip().lower().replace("_", "")
        for role in cls:
            if role.value.lower() == key:
                return role
        return None


class ResourceKind(str, Enum):
    COMMENT = "comment"
    SUBTASK = "subtask"
    TASK = "task"


class DecisionReason(str, Enum):
    GLOBAL_ADMIN = "GlobalAdmin"
    PROJECT_OWNER = "ProjectOwner"
    GRANT_ADMIN = "GrantAdmin"
    FULL_ACCESS_LIMITED = "FullAccessLimited"
    IMPLICIT_VIEW = "ImplicitView"
    EXPLICIT_GRANT = "ExplicitGrant"
    SELF_OWNERSHIP = "SelfOwnership"
    ASSIGNEE_ELEVATION = "AssigneeElevation"
    NO_GRANT = "NoGrant"
    NOT_MEMBER = "NotMember"
    CONTEXT_MISMATCH = "ContextMismatch"
    UNKNOWN_CAPABILITY = "UnknownCapability"


class IdentityContext(BaseModel):
    """The authenticated actor, as extracted from a verified bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    global_role: GlobalRole

    @field_validator("global_role", mode="before")
    @classmethod
    def _parse_role(cls, value):
        return GlobalRole.parse(value) or value


class ProjectMembershipSnapshot(BaseModel):
    """Read-only projection of one project, fetched fresh for each request."""

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(..., min_length=1)
    manager_user_id: str | None = None
    member_user_ids: frozenset[str] = frozenset()

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_user_ids or user_id == self.manager_user_id


class PermissionGrant(BaseModel):
    """
    Explicit tokens one user holds on one project.

    ``tokens`` accepts wire strings and runs them through
    ``capabilities.validate``; an unknown token fails model validation.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    tokens: frozenset[Capability] = frozenset()

    @field_validator("tokens", mode="before")
    @classmethod
    def _validate_tokens(cls, value):
        if value is None:
            return frozenset()
        return validate(value)

    @classmethod
    def empty(cls, project_id: str, user_id: str) -> "PermissionGrant":
        return cls(project_id=project_id, user_id=user_id)

    def wire_tokens(self) -> list[str]:
        return serialize(self.tokens)


class ResourceOwnership(BaseModel):
    """
    Ownership facts about the resource a query concerns.

    For comments and subtasks ``resource_owner_user_id`` is the author; for
    tasks it is the assignee.
    """

    model_config = ConfigDict(frozen=True)

    resource_owner_user_id: str = Field(..., min_length=1)
    kind: ResourceKind = ResourceKind.COMMENT


class Decision(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: DecisionReason

    @classmethod
    def allow(cls, reason: DecisionReason) -> "Decision":
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, reason: DecisionReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __bool__(self) -> bool:
        return self.allowed
