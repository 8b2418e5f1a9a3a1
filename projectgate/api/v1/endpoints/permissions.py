"""
Project permissions API.

Grant assignment and lookup, the capability/preset catalog for the
assignment UI, and decision endpoints so screens can ask "may I?" without
re-implementing the rules.

``POST /assign`` and ``DELETE /{project_id}/{user_id}`` are the only writes to
the grant store; both validate tokens through ``policy.validate`` first.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projectgate.api.v1.helpers.auth_interface import (
    AuthorizationProvider,
    get_authorization_provider,
)
from projectgate.api.v1.helpers.authentication import get_current_identity
from projectgate.api.v1.helpers.directory import (
    DirectoryLookupError,
    RequestScopedDirectory,
    get_project_directory,
)
from projectgate.api.v1.helpers.responses import (
    error_response,
    forbidden_response,
    not_found_response,
    success_response,
    validation_error_response,
)
from projectgate.db.session import get_db
from projectgate.models.iam.permissions import (
    ProjectMemberPermission,
    ProjectPermission,
)
from projectgate.models.pydantic_models.core_models import (
    CapabilityModel,
    DecisionModel,
    EffectivePermissionsModel,
    MemberPermissionsEntry,
    PresetModel,
    ProjectMemberPermissionsModel,
    ProjectPermissionsEntry,
)
from projectgate.policy import (
    CAPABILITY_REGISTRY,
    Capability,
    CapabilityValidationError,
    GlobalRole,
    IdentityContext,
    ResourceKind,
    ResourceOwnership,
    UnknownActionError,
    UnknownPresetError,
    authorize,
    effective_capabilities,
    evaluate,
    get_preset,
    parse_capability,
    presets,
    serialize,
    validate,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/permissions", tags=["Permissions"])


# ── request schemas ───────────────────────────────────────────────────────


class AssignPermissionsRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    permissions: List[str]


class CheckRequest(BaseModel):
    project_id: str = Field(..., min_length=1)
    capability: Optional[str] = None
    action: Optional[str] = None
    resource_owner_user_id: Optional[str] = None
    resource_kind: ResourceKind = ResourceKind.COMMENT

    @model_validator(mode="after")
    def _one_question(self):
        if (self.capability is None) == (self.action is None):
            raise ValueError("Provide exactly one of 'capability' or 'action'")
        return self

    def ownership(self) -> Optional[ResourceOwnership]:
        if not self.resource_owner_user_id:
            return None
        return ResourceOwnership(
            resource_owner_user_id=self.resource_owner_user_id,
            kind=self.resource_kind,
        )


# ── helpers ───────────────────────────────────────────────────────────────


def _to_model(record: ProjectMemberPermission) -> ProjectMemberPermissionsModel:
    return ProjectMemberPermissionsModel(
        project_id=record.project_id,
        user_id=record.user_id,
        permissions=[permission.name for permission in record.permissions],
    )


async def _get_member_permission(
    project_id: str, user_id: str, db: AsyncSession
) -> Optional[ProjectMemberPermission]:
    result = await db.execute(
        select(ProjectMemberPermission)
        .options(selectinload(ProjectMemberPermission.permissions))
        .where(
            ProjectMemberPermission.project_id == project_id,
            ProjectMemberPermission.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def _require_existing_project(
    project_id: str, db: AsyncSession, directory: RequestScopedDirectory
) -> None:
    try:
        membership = await directory.get_membership(project_id, db)
    except DirectoryLookupError:
        raise forbidden_response("Access denied: permissions could not be loaded")
    if membership is None:
        raise not_found_response(f"Project with ID '{project_id}' not found.")


# ── grant store ───────────────────────────────────────────────────────────


@router.post("/assign")
async def assign_permissions(
    request: AssignPermissionsRequest,
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """
    Assign or replace a user's permissions on a project.

    The caller is authorized before the payload is looked at, so a caller
    without ``manage_team`` gets a 403 whatever the tokens are.
    """
    await _require_existing_project(request.project_id, db, directory)
    await authorization.check_permissions(
        current_user,
        db,
        [Capability.MANAGE_TEAM],
        project_id=request.project_id,
        directory=directory,
    )

    if not request.permissions:
        raise validation_error_response(["At least one permission must be provided."])

    try:
        capabilities = validate(request.permissions)
    except CapabilityValidationError as e:
        raise validation_error_response(
            [str(token) for token in e.invalid_tokens],
            message="Unknown permission tokens",
        )

    member_permission = await _get_member_permission(
        request.project_id, request.user_id, db
    )
    try:
        if member_permission is None:
            member_permission = ProjectMemberPermission(
                project_id=request.project_id,
                user_id=request.user_id,
                permissions=[],
            )
            db.add(member_permission)
        else:
            # Old rows must be gone before the unique (grant, name) rows return.
            member_permission.permissions.clear()
            await db.flush()

        member_permission.permissions.extend(
            ProjectPermission(name=token) for token in serialize(capabilities)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving permissions: {e}")
        raise error_response(
            "An error occurred while saving permissions. Please try again.",
            status_code=500,
        )

    directory.invalidate(request.project_id, request.user_id)
    logger.info(
        f"{current_user.user_id} assigned {serialize(capabilities)} "
        f"to {request.user_id} on project {request.project_id}"
    )

    return success_response(
        message="Permissions assigned successfully.",
        data=ProjectMemberPermissionsModel(
            project_id=request.project_id,
            user_id=request.user_id,
            permissions=serialize(capabilities),
        ),
    )


@router.get("/by-project-and-user", response_model=ProjectMemberPermissionsModel)
async def get_permissions_by_project_and_user(
    project_id: str = Query(..., min_length=1),
    user_id: str = Query(..., min_length=1),
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """The stored grant for one user on one project (404 when none exists)."""
    await authorization.check_permissions(
        current_user, db, [Capability.VIEW], project_id=project_id, directory=directory
    )

    record = await _get_member_permission(project_id, user_id, db)
    if record is None:
        raise not_found_response("No permissions found for the given user and project.")
    return _to_model(record)


@router.get("/by-project/{project_id}", response_model=List[MemberPermissionsEntry])
async def get_permissions_by_project(
    project_id: str,
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """Every stored grant on a project."""
    await authorization.check_permissions(
        current_user, db, [Capability.VIEW], project_id=project_id, directory=directory
    )

    result = await db.execute(
        select(ProjectMemberPermission)
        .options(selectinload(ProjectMemberPermission.permissions))
        .where(ProjectMemberPermission.project_id == project_id)
        .order_by(ProjectMemberPermission.user_id)
    )
    return [
        MemberPermissionsEntry(
            user_id=record.user_id,
            permissions=[permission.name for permission in record.permissions],
        )
        for record in result.scalars().all()
    ]


@router.get("/by-user/{user_id}", response_model=List[ProjectPermissionsEntry])
async def get_permissions_by_user(
    user_id: str,
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Every stored grant held by a user. Only the user or a global admin."""
    if (
        current_user.user_id != user_id
        and current_user.global_role != GlobalRole.ADMIN
    ):
        raise forbidden_response("Access denied to this user's permissions")

    result = await db.execute(
        select(ProjectMemberPermission)
        .options(selectinload(ProjectMemberPermission.permissions))
        .where(ProjectMemberPermission.user_id == user_id)
        .order_by(ProjectMemberPermission.project_id)
    )
    return [
        ProjectPermissionsEntry(
            project_id=record.project_id,
            permissions=[permission.name for permission in record.permissions],
        )
        for record in result.scalars().all()
    ]


@router.delete("/{project_id}/{user_id}")
async def revoke_permissions(
    project_id: str,
    user_id: str,
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """Remove a user's grant on a project."""
    await _require_existing_project(project_id, db, directory)
    await authorization.check_permissions(
        current_user,
        db,
        [Capability.MANAGE_TEAM],
        project_id=project_id,
        directory=directory,
    )

    record = await _get_member_permission(project_id, user_id, db)
    if record is None:
        raise not_found_response("No permissions found for the given user and project.")

    try:
        await db.delete(record)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error revoking permissions: {e}")
        raise error_response(
            "An error occurred while revoking permissions. Please try again.",
            status_code=500,
        )

    directory.invalidate(project_id, user_id)
    logger.info(f"{current_user.user_id} revoked permissions of {user_id} on {project_id}")

    return success_response(message="Permissions revoked successfully.")


# ── catalog ───────────────────────────────────────────────────────────────


@router.get("/capabilities", response_model=List[CapabilityModel])
async def list_capabilities():
    return [
        CapabilityModel(
            token=info.token,
            label=info.label,
            description=info.description,
            implies_view=info.implies_view,
            full_access_limited_eligible=info.full_access_limited_eligible,
        )
        for info in CAPABILITY_REGISTRY
    ]


@router.get("/presets", response_model=List[PresetModel])
async def list_presets():
    return [
        PresetModel(
            id=preset.id,
            name=preset.name,
            description=preset.description,
            permissions=preset.wire_tokens(),
        )
        for preset in presets()
    ]


@router.get("/presets/{name}", response_model=PresetModel)
async def get_preset_by_name(name: str):
    try:
        preset = get_preset(name)
    except UnknownPresetError as e:
        raise not_found_response(str(e))
    return PresetModel(
        id=preset.id,
        name=preset.name,
        description=preset.description,
        permissions=preset.wire_tokens(),
    )


# ── decisions ─────────────────────────────────────────────────────────────


@router.post("/check", response_model=DecisionModel)
async def check_permission(
    request: CheckRequest,
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """
    Answer one authorization question for the caller.

    Returns the decision either way; a denial is a 200 with
    ``allowed: false``. Unknown capability or action names are a 422.
    """
    capability = None
    if request.capability is not None:
        capability = parse_capability(request.capability)
        if capability is None:
            raise validation_error_response(
                [request.capability], message="Unknown capability"
            )

    membership, grant = await authorization.load_context(
        current_user, db, request.project_id, directory
    )

    if capability is not None:
        decision = evaluate(
            current_user, membership, grant, capability, request.ownership()
        )
        return DecisionModel(
            allowed=decision.allowed,
            reason=decision.reason.value,
            capability=capability.value,
        )

    try:
        decision = authorize(
            current_user, membership, grant, request.action, request.ownership()
        )
    except UnknownActionError as e:
        raise validation_error_response([request.action], message=str(e))
    return DecisionModel(
        allowed=decision.allowed,
        reason=decision.reason.value,
        action=request.action.strip().lower(),
    )


@router.get("/effective", response_model=EffectivePermissionsModel)
async def get_effective_permissions(
    project_id: str = Query(..., min_length=1),
    current_user: IdentityContext = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    directory: RequestScopedDirectory = Depends(get_project_directory),
    authorization: AuthorizationProvider = Depends(get_authorization_provider),
):
    """The caller's effective capability set on a project."""
    membership, grant = await authorization.load_context(
        current_user, db, project_id, directory
    )
    return EffectivePermissionsModel(
        project_id=project_id,
        user_id=current_user.user_id,
        global_role=current_user.global_role.value,
        permissions=serialize(effective_capabilities(current_user, membership, grant)),
    )
