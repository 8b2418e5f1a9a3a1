"""
Named actions on top of the capability evaluator.

Screens ask about concrete actions ("can this user delete this task?") rather
than raw capabilities. Each action maps to an ordered any-of list of
capabilities and, for content that can be owned, the resource kind whose
ownership facts apply. ``authorize`` runs every candidate through
``evaluate`` so the precedence rules live in exactly one place.
"""

from dataclasses import dataclass
from enum import Enum

from .capabilities import Capability
from .context import (
    Decision,
    DecisionReason,
    IdentityContext,
    PermissionGrant,
    ProjectMembershipSnapshot,
    ResourceKind,
    ResourceOwnership,
)
from .evaluator import evaluate, owns_resource
from .exceptions import UnknownActionError


class Action(str, Enum):
    VIEW_PROJECT = "view_project"
    EDIT_PROJECT = "edit_project"
    DELETE_PROJECT = "delete_project"
    MANAGE_PHASES = "manage_phases"
    EDIT_PHASE = "edit_phase"
    DELETE_PHASE = "delete_phase"
    MANAGE_DELIVERABLES = "manage_deliverables"
    EDIT_DELIVERABLE = "edit_deliverable"
    DELETE_DELIVERABLE = "delete_deliverable"
    MANAGE_TASKS = "manage_tasks"
    EDIT_TASK = "edit_task"
    DELETE_TASK = "delete_task"
    MANAGE_SUBTASKS = "manage_subtasks"
    EDIT_SUBTASK = "edit_subtask"
    ADD_COMMENT = "add_comment"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"
    MANAGE_TEAM = "manage_team"


@dataclass(frozen=True)
class ActionRule:
    action: Action
    capabilities: tuple[Capability, ...]
    ownership_kind: ResourceKind | None = None
    # The resource's owner may perform the action without any capability.
    owner_allowed: bool = False


_RULES: tuple[ActionRule, ...] = (
    ActionRule(Action.VIEW_PROJECT, (Capability.VIEW,)),
    ActionRule(Action.EDIT_PROJECT, (Capability.EDIT,)),
    ActionRule(Action.DELETE_PROJECT, (Capability.ADMIN,)),
    ActionRule(Action.MANAGE_PHASES, (Capability.MANAGE_PHASES,)),
    ActionRule(Action.EDIT_PHASE, (Capability.EDIT, Capability.MANAGE_PHASES)),
    ActionRule(Action.DELETE_PHASE, (Capability.ADMIN,)),
    ActionRule(Action.MANAGE_DELIVERABLES, (Capability.MANAGE_DELIVERABLES,)),
    ActionRule(
        Action.EDIT_DELIVERABLE, (Capability.EDIT, Capability.MANAGE_DELIVERABLES)
    ),
    ActionRule(
        Action.DELETE_DELIVERABLE, (Capability.MANAGE_DELIVERABLES, Capability.ADMIN)
    ),
    ActionRule(Action.MANAGE_TASKS, (Capability.MANAGE_TASKS,)),
    ActionRule(
        Action.EDIT_TASK,
        (Capability.EDIT, Capability.MANAGE_TASKS),
        ResourceKind.TASK,
    ),
    ActionRule(Action.DELETE_TASK, (Capability.ADMIN,)),
    ActionRule(
        Action.MANAGE_SUBTASKS,
        (Capability.MANAGE_TASKS, Capability.MANAGE_SUBTASKS),
        ResourceKind.TASK,
    ),
    ActionRule(
        Action.EDIT_SUBTASK,
        (Capability.MANAGE_TASKS, Capability.MANAGE_SUBTASKS),
        ResourceKind.SUBTASK,
    ),
    ActionRule(
        Action.ADD_COMMENT,
        (Capability.MANAGE_TASKS, Capability.MANAGE_COMMENTS),
        ResourceKind.TASK,
    ),
    # Other users' comments are admin-only; FullAccessLimited does not reach them.
    ActionRule(
        Action.EDIT_COMMENT,
        (Capability.ADMIN,),
        ResourceKind.COMMENT,
        owner_allowed=True,
    ),
    ActionRule(
        Action.DELETE_COMMENT,
        (Capability.ADMIN,),
        ResourceKind.COMMENT,
        owner_allowed=True,
    ),
    ActionRule(Action.MANAGE_TEAM, (Capability.MANAGE_TEAM,)),
)

ACTION_RULES: dict[Action, ActionRule] = {rule.action: rule for rule in _RULES}


def get_action_rule(action: Action | str) -> ActionRule:
    try:
        key = Action(action.strip().lower() if isinstance(action, str) else action)
    except ValueError:
        raise UnknownActionError(str(action)) from None
    return ACTION_RULES[key]


def authorize(
    identity: IdentityContext,
    membership: ProjectMembershipSnapshot,
    grant: PermissionGrant | None,
    action: Action | str,
    ownership: ResourceOwnership | None = None,
) -> Decision:
    """
    Decide a named action: the first allowing capability wins, otherwise the
    denial for the first candidate is returned.

    Ownership facts of a kind the action does not consult are dropped, so a
    task assignee cannot use their assignment to delete the task. Actions
    marked ``owner_allowed`` fall back to the author: a project member may
    edit or delete their own comment with no grant at all.
    """
    rule = get_action_rule(action)
    if ownership is not None and ownership.kind != rule.ownership_kind:
        ownership = None

    first_denial = None
    for capability in rule.capabilities:
        decision = evaluate(identity, membership, grant, capability, ownership)
        if decision.allowed:
            return decision
        if first_denial is None:
            first_denial = decision

    if (
        rule.owner_allowed
        and first_denial.reason == DecisionReason.NO_GRANT
        and owns_resource(identity, membership, ownership, rule.ownership_kind)
    ):
        return Decision.allow(DecisionReason.SELF_OWNERSHIP)
    return first_denial
