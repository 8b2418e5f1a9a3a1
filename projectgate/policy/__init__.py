"""
Project-scoped authorization core.

Pure, synchronous and free of I/O: safe to call from any number of request
handlers at once. The service layer fetches identity, membership and grant
data and hands them to ``evaluate`` / ``authorize``.
"""

from .actions import ACTION_RULES, Action, ActionRule, authorize, get_action_rule
from .capabilities import (
    ALL_CAPABILITIES,
    CAPABILITY_REGISTRY,
    Capability,
    CapabilityInfo,
    capability_info,
    parse_capability,
    serialize,
    validate,
)
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
from .evaluator import effective_capabilities, evaluate, owns_resource
from .exceptions import (
    CapabilityValidationError,
    PolicyError,
    UnknownActionError,
    UnknownPresetError,
)
from .presets import Preset, expand, get_preset, presets

__all__ = [
    # Taxonomy
    "ALL_CAPABILITIES",
    "CAPABILITY_REGISTRY",
    "Capability",
    "CapabilityInfo",
    "capability_info",
    "parse_capability",
    "serialize",
    "validate",
    # Inputs / outputs
    "Decision",
    "DecisionReason",
    "GlobalRole",
    "IdentityContext",
    "PermissionGrant",
    "ProjectMembershipSnapshot",
    "ResourceKind",
    "ResourceOwnership",
    # Evaluation
    "evaluate",
    "effective_capabilities",
    "owns_resource",
    "Action",
    "ActionRule",
    "ACTION_RULES",
    "authorize",
    "get_action_rule",
    # Presets
    "Preset",
    "expand",
    "get_preset",
    "presets",
    # Errors
    "PolicyError",
    "CapabilityValidationError",
    "UnknownPresetError",
    "UnknownActionError",
]
