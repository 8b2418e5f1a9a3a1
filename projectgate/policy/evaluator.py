"""
Project-scoped policy evaluator.

``evaluate`` is the single decision entry point for every page and endpoint
that needs to know whether an actor may do something on a project. It is a
pure function: no I/O, no caching, no mutation. Callers fetch the identity,
the membership snapshot and the grant, then ask as many questions as they
need.

Precedence, first match wins:

1. global Admin role                       -> GlobalAdmin
2. ProjectManager who manages the project  -> ProjectOwner
3. grant evaluation
   a. grant holds ``admin``                -> GrantAdmin
   b. ``full_access_limited``, not admin   -> FullAccessLimited
   c. ``view`` for a project member        -> ImplicitView
   d. grant holds the capability           -> ExplicitGrant
   e. otherwise                            -> NoGrant / NotMember
4. member authoring the comment/subtask    -> SelfOwnership
   (edit, plus manage_comments / manage_subtasks for that kind)
5. member assigned to the task             -> AssigneeElevation
   (edit, manage_subtasks, manage_comments)

Steps 4 and 5 only widen a denial from step 3; they never replace an allow.
Deleting one's own comment is a named action (``actions.authorize``), not a
capability, so ownership never reaches ``admin`` here.
"""

import logging
from typing import Any

from .capabilities import Capability, parse_capability
from .context import (
    Decision,
    DecisionReason,
    GlobalRole,
    IdentityContext,
    PermissionGrant,
    ProjectMembershipSnapshot,
    ResourceKind,
    ResourceOwnership,
)

logger = logging.getLogger(__name__)

# Capabilities an author exercises over their own comment or subtask.
SELF_OWNED_CAPABILITIES: dict[ResourceKind, frozenset[Capability]] = {
    ResourceKind.COMMENT: frozenset({Capability.EDIT, Capability.MANAGE_COMMENTS}),
    ResourceKind.SUBTASK: frozenset({Capability.EDIT, Capability.MANAGE_SUBTASKS}),
}

TASK_AUTHORING_CAPABILITIES = frozenset(
    {Capability.EDIT, Capability.MANAGE_SUBTASKS, Capability.MANAGE_COMMENTS}
)


def _context_mismatch(
    identity: Any, membership: Any, grant: Any, ownership: Any
) -> str | None:
    """Describe why the inputs are inconsistent, or None if they line up."""
    if not isinstance(identity, IdentityContext):
        return "identity is not an IdentityContext"
    if not isinstance(membership, ProjectMembershipSnapshot):
        return "membership is not a ProjectMembershipSnapshot"
    if grant is not None:
        if not isinstance(grant, PermissionGrant):
            return "grant is not a PermissionGrant"
        if grant.user_id != identity.user_id:
            return f"grant user {grant.user_id!r} != identity {identity.user_id!r}"
        if grant.project_id != membership.project_id:
            return (
                f"grant project {grant.project_id!r} != "
                f"membership project {membership.project_id!r}"
            )
    if ownership is not None and not isinstance(ownership, ResourceOwnership):
        return "ownership is not a ResourceOwnership"
    return None


def _evaluate_grant(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    grant: PermissionGrant | None,
    requested: Capability,
) -> Decision:
    if identity.global_role == GlobalRole.ADMIN:
        return Decision.allow(DecisionReason.GLOBAL_ADMIN)

    if (
        identity.global_role == GlobalRole.PROJECT_MANAGER
        and membership.manager_user_id == identity.user_id
    ):
        return Decision.allow(DecisionReason.PROJECT_OWNER)

    # Non-owning project managers are judged on their grant like anyone else.
    tokens = grant.tokens if grant is not None else frozenset()

    if Capability.ADMIN in tokens:
        return Decision.allow(DecisionReason.GRANT_ADMIN)

    if Capability.FULL_ACCESS_LIMITED in tokens and requested != Capability.ADMIN:
        return Decision.allow(DecisionReason.FULL_ACCESS_LIMITED)

    if requested == Capability.VIEW and membership.is_member(identity.user_id):
        return Decision.allow(DecisionReason.IMPLICIT_VIEW)

    if requested in tokens:
        return Decision.allow(DecisionReason.EXPLICIT_GRANT)

    if requested == Capability.VIEW:
        return Decision.deny(DecisionReason.NOT_MEMBER)
    return Decision.deny(DecisionReason.NO_GRANT)


def owns_resource(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    ownership: ResourceOwnership | None,
    kind: ResourceKind,
) -> bool:
    """True when a project member authored (or is assigned) the resource."""
    return (
        ownership is not None
        and ownership.kind == kind
        and ownership.resource_owner_user_id == identity.user_id
        and membership.is_member(identity.user_id)
    )


def _ownership_override(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    requested: Capability,
    ownership: ResourceOwnership | None,
) -> Decision | None:
    if ownership is None or not owns_resource(
        identity, membership, ownership, ownership.kind
    ):
        return None

    if requested in SELF_OWNED_CAPABILITIES.get(ownership.kind, frozenset()):
        return Decision.allow(DecisionReason.SELF_OWNERSHIP)

    if ownership.kind == ResourceKind.TASK and requested in TASK_AUTHORING_CAPABILITIES:
        return Decision.allow(DecisionReason.ASSIGNEE_ELEVATION)

    return None


def evaluate(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    grant: PermissionGrant | None,
    requested: Capability | str,
    ownership: ResourceOwnership | None = None,
) -> Decision:
    """
    Decide whether ``identity`` may exercise ``requested`` on the project.

    Args:
        identity: The authenticated actor.
        membership: Snapshot of the project the question is about.
        grant: The actor's grant on that project, or None when the store has
            no record (no explicit tokens).
        requested: A Capability, or a wire token which is parsed here.
        ownership: Optional ownership facts about the targeted resource.

    Returns:
        A Decision. Malformed input is a denial, never an exception.
    """
    mismatch = _context_mismatch(identity, membership, grant, ownership)
    if mismatch is not None:
        logger.error(f"Policy context mismatch, denying: {mismatch}")
        return Decision.deny(DecisionReason.CONTEXT_MISMATCH)

    capability = parse_capability(requested)
    if capability is None:
        logger.warning(f"Unknown capability requested: {requested!r}")
        return Decision.deny(DecisionReason.UNKNOWN_CAPABILITY)

    decision = _evaluate_grant(identity, membership, grant, capability)
    if decision.allowed:
        return decision

    return _ownership_override(identity, membership, capability, ownership) or decision


def effective_capabilities(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    grant: PermissionGrant | None,
    ownership: ResourceOwnership | None = None,
) -> frozenset[Capability]:
    """Every capability ``evaluate`` would allow for this actor and project."""
    mismatch = _context_mismatch(identity, membership, grant, ownership)
    if mismatch is not None:
        logger.error(f"Policy context mismatch, no capabilities: {mismatch}")
        return frozenset()

    return frozenset(
        capability
        for capability in Capability
        if evaluate(identity, membership, grant, capability, ownership).allowed
    )
