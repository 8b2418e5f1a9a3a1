"""Permission preset catalog."""

import pytest

from projectgate.policy import (
    ALL_CAPABILITIES,
    Capability,
    UnknownPresetError,
    expand,
    get_preset,
    presets,
)


def test_viewer_expands_to_view_only():
    assert expand("Viewer") == {Capability.VIEW}


def test_editor_and_manager_contents():
    assert expand("Editor") == {
        Capability.VIEW,
        Capability.EDIT,
        Capability.MANAGE_DELIVERABLES,
    }
    manager = expand("Manager")
    assert Capability.MANAGE_TEAM in manager
    assert Capability.ADMIN not in manager
    assert Capability.FULL_ACCESS_LIMITED not in manager


def test_administrator_is_superset_of_every_preset():
    administrator = expand("Administrator")
    assert administrator == ALL_CAPABILITIES
    for preset in presets():
        assert expand(preset.name) <= administrator


def test_every_expansion_contains_view():
    for preset in presets():
        assert Capability.VIEW in expand(preset.name)


def test_presets_are_ordered_narrowest_first():
    assert [preset.name for preset in presets()] == [
        "Viewer",
        "Editor",
        "Manager",
        "Administrator",
    ]


@pytest.mark.parametrize("name", ["administrator", "ADMINISTRATOR", "admin", " Admin "])
def test_lookup_is_case_insensitive_and_accepts_ids(name):
    assert get_preset(name).name == "Administrator"


@pytest.mark.parametrize("name", ["not-a-preset", "", "owner"])
def test_unknown_preset_fails(name):
    with pytest.raises(UnknownPresetError):
        expand(name)


def test_expansion_can_be_customised_by_caller():
    tokens = set(expand("Editor"))
    tokens.discard(Capability.MANAGE_DELIVERABLES)
    tokens.add(Capability.MANAGE_COMMENTS)
    # The catalog itself is unaffected.
    assert Capability.MANAGE_DELIVERABLES in expand("Editor")
    assert Capability.MANAGE_COMMENTS not in expand("Editor")
