"""
Capability taxonomy and wire-token validation.

Permission tokens arrive as plain strings from the grant store and from the
assignment API. ``validate`` is the single place where they are turned into
``Capability`` members; nothing downstream of it ever handles raw strings.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .exceptions import CapabilityValidationError


class Capability(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    MANAGE_PHASES = "manage_phases"
    MANAGE_DELIVERABLES = "manage_deliverables"
    MANAGE_TASKS = "manage_tasks"
    MANAGE_SUBTASKS = "manage_subtasks"
    MANAGE_COMMENTS = "manage_comments"
    MANAGE_TEAM = "manage_team"
    FULL_ACCESS_LIMITED = "full_access_limited"
    ADMIN = "admin"

    @property
    def token(self) -> str:
        return self.value


@dataclass(frozen=True)
class CapabilityInfo:
    capability: Capability
    label: str
    description: str
    implies_view: bool = True
    full_access_limited_eligible: bool = True

    @property
    def token(self) -> str:
        return self.capability.value


# Registry order is the canonical serialization order.
CAPABILITY_REGISTRY: tuple[CapabilityInfo, ...] = (
    CapabilityInfo(
        Capability.VIEW,
        "View Project",
        "Can view project details and timeline",
    ),
    CapabilityInfo(
        Capability.EDIT,
        "Edit Content",
        "Can edit project details and deliverables",
    ),
    CapabilityInfo(
        Capability.MANAGE_PHASES,
        "Manage Phases",
        "Can add, edit, and delete project phases",
    ),
    CapabilityInfo(
        Capability.MANAGE_DELIVERABLES,
        "Manage Deliverables",
        "Can add, update and remove project deliverables",
    ),
    CapabilityInfo(
        Capability.MANAGE_TASKS,
        "Manage Tasks",
        "Can create, update, assign and remove project tasks",
    ),
    CapabilityInfo(
        Capability.MANAGE_SUBTASKS,
        "Manage Subtasks",
        "Can add, update and remove subtasks on any task",
    ),
    CapabilityInfo(
        Capability.MANAGE_COMMENTS,
        "Manage Comments",
        "Can post comments on any task in the project",
    ),
    CapabilityInfo(
        Capability.MANAGE_TEAM,
        "Manage Team",
        "Can change the permissions of project members",
    ),
    CapabilityInfo(
        Capability.FULL_ACCESS_LIMITED,
        "Full Access (No Deletion)",
        "Has full access to features except delete actions",
    ),
    CapabilityInfo(
        Capability.ADMIN,
        "Admin Access",
        "Full administrative access to the project",
        full_access_limited_eligible=False,
    ),
)

_INFO_BY_CAPABILITY: dict[Capability, CapabilityInfo] = {
    info.capability: info for info in CAPABILITY_REGISTRY
}
_ORDER: dict[Capability, int] = {
    info.capability: index for index, info in enumerate(CAPABILITY_REGISTRY)
}


# Wire tokens match after strip and case-folding ("manage_phases",
# " MANAGE_PHASES "); enum-style names only in exact PascalCase
# ("ManagePhases"). Nothing else is normalized.
_BY_WIRE_TOKEN: dict[str, Capability] = {
    capability.value: capability for capability in Capability
}
_BY_PASCAL_NAME: dict[str, Capability] = {
    "".join(part.capitalize() for part in capability.value.split("_")): capability
    for capability in Capability
}

ALL_CAPABILITIES: frozenset[Capability] = frozenset(Capability)

FULL_ACCESS_LIMITED_COVERAGE: frozenset[Capability] = frozenset(
    info.capability
    for info in CAPABILITY_REGISTRY
    if info.full_access_limited_eligible
)


def capability_info(capability: Capability) -> CapabilityInfo:
    return _INFO_BY_CAPABILITY[capability]


def parse_capability(raw) -> Capability | None:
    """Return the capability for a single token, or None if it is not one."""
    if isinstance(raw, Capability):
        return raw
    if not isinstance(raw, str):
        return None
    token = raw.strip()
    return _BY_WIRE_TOKEN.get(token.lower()) or _BY_PASCAL_NAME.get(token)


def validate(tokens: Iterable) -> frozenset[Capability]:
    """
    Convert wire tokens into a set of capabilities.

    Args:
        tokens: Iterable of token strings (or already-parsed capabilities).

    Returns:
        frozenset of Capability members; duplicates collapse.

    Raises:
        CapabilityValidationError: if any token is unknown. Every offending
            token is reported, not only the first.
    """
    if isinstance(tokens, str):
        # A bare string would otherwise be iterated character by character.
        tokens = [tokens]

    capabilities = set()
    invalid = []
    for raw in tokens:
        capability = parse_capability(raw)
        if capability is None:
            invalid.append(raw)
        else:
            capabilities.add(capability)

    if invalid:
        raise CapabilityValidationError(invalid)
    return frozenset(capabilities)


def sort_capabilities(capabilities: Iterable[Capability]) -> list[Capability]:
    return sorted(set(capabilities), key=_ORDER.__getitem__)


def serialize(capabilities: Iterable[Capability]) -> list[str]:
    """Wire tokens for ``capabilities`` in registry order."""
    return [capability.value for capability in sort_capabilities(capabilities)]
