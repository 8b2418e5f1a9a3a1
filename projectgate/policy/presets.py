"""
Permission preset catalog.

Presets are static starting points for the member-permission assignment UI.
They are not stored per project: once an operator customises the expanded
token set, the result is saved as a plain grant and no longer tied to a preset.
"""

from dataclasses import dataclass

from .capabilities import ALL_CAPABILITIES, Capability, serialize
from .exceptions import UnknownPresetError


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    tokens: frozenset[Capability]

    def wire_tokens(self) -> list[str]:
        return serialize(self.tokens)


_PRESETS: tuple[Preset, ...] = (
    Preset(
        id="viewer",
        name="Viewer",
        description="Can only view project details",
        tokens=frozenset({Capability.VIEW}),
    ),
    Preset(
        id="editor",
        name="Editor",
        description="Can view and edit project content",
        tokens=frozenset(
            {Capability.VIEW, Capability.EDIT, Capability.MANAGE_DELIVERABLES}
        ),
    ),
    Preset(
        id="manager",
        name="Manager",
        description="Can manage all aspects except deletion",
        tokens=frozenset(
            {
                Capability.VIEW,
                Capability.EDIT,
                Capability.MANAGE_PHASES,
                Capability.MANAGE_DELIVERABLES,
                Capability.MANAGE_TASKS,
                Capability.MANAGE_TEAM,
            }
        ),
    ),
    Preset(
        id="admin",
        name="Administrator",
        description="Full administrative access",
        tokens=ALL_CAPABILITIES,
    ),
)

_BY_KEY: dict[str, Preset] = {}
for _preset in _PRESETS:
    _BY_KEY[_preset.id] = _preset
    _BY_KEY[_preset.name.lower()] = _preset


def presets() -> tuple[Preset, ...]:
    """All presets, narrowest first."""
    return _PRESETS


def get_preset(name: str) -> Preset:
    preset = _BY_KEY.get(name.strip().lower()) if isinstance(name, str) else None
    if preset is None:
        raise UnknownPresetError(name)
    return preset


def expand(name: str) -> frozenset[Capability]:
    """
    Expand a preset into its capability set.

    ``View`` is always part of the result. Unknown names raise
    ``UnknownPresetError``; there is no fallback preset.
    """
    return get_preset(name).tokens | {Capability.VIEW}
