"""PolicyAuthorizationProvider and the request-scoped directory, without HTTP."""

import pytest
from fastapi import HTTPException

from projectgate.api.v1.helpers.auth_interface import PolicyAuthorizationProvider
from projectgate.api.v1.helpers.directory import (
    DirectoryLookupError,
    RequestScopedDirectory,
    SqlProjectDirectory,
)
from projectgate.policy import (
    Capability,
    DecisionReason,
    GlobalRole,
    IdentityContext,
    PermissionGrant,
    ProjectMembershipSnapshot,
)

MEMBER = IdentityContext(user_id="tm-1", global_role=GlobalRole.TEAM_MEMBER)


class FakeDirectory:
    """In-memory directory that counts lookups."""

    def __init__(self, membership=None, grant=None, fail=False):
        self.membership = membership
        self.grant = grant
        self.fail = fail
        self.membership_calls = 0
        self.grant_calls = 0

    async def get_membership(self, project_id, db):
        self.membership_calls += 1
        if self.fail:
            raise DirectoryLookupError("store down")
        return self.membership

    async def get_grant(self, project_id, user_id, db):
        self.grant_calls += 1
        if self.fail:
            raise DirectoryLookupError("store down")
        return self.grant


def make_directory(*tokens, **kwargs):
    membership = ProjectMembershipSnapshot(
        project_id="p1", manager_user_id="pm", member_user_ids={"tm-1"}
    )
    grant = (
        PermissionGrant(project_id="p1", user_id="tm-1", tokens=list(tokens))
        if tokens
        else None
    )
    return FakeDirectory(membership=membership, grant=grant, **kwargs)


@pytest.mark.asyncio
async def test_store_failure_is_forbidden():
    provider = PolicyAuthorizationProvider()
    with pytest.raises(HTTPException) as exc:
        await provider.check_permissions(
            MEMBER, None, [Capability.VIEW], project_id="p1",
            directory=make_directory(fail=True),
        )
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_unknown_project_is_forbidden():
    provider = PolicyAuthorizationProvider()
    with pytest.raises(HTTPException) as exc:
        await provider.check_permissions(
            MEMBER, None, [Capability.VIEW], project_id="p1",
            directory=FakeDirectory(membership=None),
        )
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_missing_project_id_is_forbidden():
    provider = PolicyAuthorizationProvider()
    with pytest.raises(HTTPException) as exc:
        await provider.load_context(MEMBER, None, None, make_directory())
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_mode_all_requires_every_capability():
    provider = PolicyAuthorizationProvider()
    directory = make_directory("edit")

    decisions = await provider.check_permissions(
        MEMBER, None, ["view", "edit"], project_id="p1", directory=directory
    )
    assert [d.reason for d in decisions] == [
        DecisionReason.IMPLICIT_VIEW,
        DecisionReason.EXPLICIT_GRANT,
    ]

    with pytest.raises(HTTPException) as exc:
        await provider.check_permissions(
            MEMBER, None, ["edit", "manage_team"], project_id="p1", directory=directory
        )
    assert exc.value.status_code == 403
    assert exc.value.detail["errors"] == ["manage_team: NoGrant"]


@pytest.mark.asyncio
async def test_mode_any_needs_one_capability():
    provider = PolicyAuthorizationProvider()
    decisions = await provider.check_permissions(
        MEMBER,
        None,
        [Capability.MANAGE_TEAM, Capability.EDIT],
        project_id="p1",
        mode="any",
        directory=make_directory("edit"),
    )
    assert [d.allowed for d in decisions] == [False, True]


@pytest.mark.asyncio
async def test_invalid_mode_and_empty_requirements():
    provider = PolicyAuthorizationProvider()
    with pytest.raises(ValueError):
        await provider.check_permissions(
            MEMBER, None, ["view"], project_id="p1", mode="most",
            directory=make_directory(),
        )
    with pytest.raises(HTTPException) as exc:
        await provider.check_permissions(
            MEMBER, None, [], project_id="p1", directory=make_directory()
        )
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_request_scoped_directory_memoises():
    inner = make_directory("edit")
    directory = RequestScopedDirectory(inner)
    provider = PolicyAuthorizationProvider()

    for capability in ("view", "edit", "view"):
        await provider.check_permissions(
            MEMBER, None, [capability], project_id="p1", directory=directory
        )

    assert inner.membership_calls == 1
    assert inner.grant_calls == 1


@pytest.mark.asyncio
async def test_request_scoped_directory_invalidate():
    inner = make_directory("edit")
    directory = RequestScopedDirectory(inner)

    await directory.get_grant("p1", "tm-1", None)
    await directory.get_grant("p1", "tm-2", None)
    directory.invalidate("p1", "tm-1")
    await directory.get_grant("p1", "tm-1", None)
    await directory.get_grant("p1", "tm-2", None)
    assert inner.grant_calls == 3

    directory.invalidate("p1")
    await directory.get_grant("p1", "tm-2", None)
    assert inner.grant_calls == 4


@pytest.mark.asyncio
async def test_sql_directory_reads_membership_and_grant(
    db_session, project, grant_factory
):
    await grant_factory(project.project_id, "user-member", ["EDIT", "view"])
    directory = SqlProjectDirectory()

    membership = await directory.get_membership(project.project_id, db_session)
    assert membership.manager_user_id == "user-manager"
    assert membership.member_user_ids == {
        "user-member",
        "user-member-2",
        "user-other-manager",
    }

    grant = await directory.get_grant(project.project_id, "user-member", db_session)
    assert grant.tokens == {Capability.EDIT, Capability.VIEW}

    assert await directory.get_membership("missing", db_session) is None
    assert await directory.get_grant(project.project_id, "nobody", db_session) is None


@pytest.mark.asyncio
async def test_sql_directory_rejects_corrupted_grant(
    db_session, project, grant_factory
):
    await grant_factory(project.project_id, "user-member", ["edit", "root"])
    with pytest.raises(DirectoryLookupError):
        await SqlProjectDirectory().get_grant(
            project.project_id, "user-member", db_session
        )
