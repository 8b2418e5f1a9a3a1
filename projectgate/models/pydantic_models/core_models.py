"""
Pydantic response models for the permissions API.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ProjectMemberPermissionsModel(BaseModel):
    project_id: str
    user_id: str
    permissions: List[str]


class MemberPermissionsEntry(BaseModel):
    user_id: str
    permissions: List[str]


class ProjectPermissionsEntry(BaseModel):
    project_id: str
    permissions: List[str]


class CapabilityModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    label: str
    description: str
    implies_view: bool
    full_access_limited_eligible: bool


class PresetModel(BaseModel):
    id: str
    name: str
    description: str
    permissions: List[str]


class DecisionModel(BaseModel):
    allowed: bool
    reason: str
    capability: Optional[str] = None
    action: Optional[str] = None


class EffectivePermissionsModel(BaseModel):
    project_id: str
    user_id: str
    global_role: str
    permissions: List[str]
