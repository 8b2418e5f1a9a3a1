from .iam import (
    project_members as project_members,
    Project as Project,
    ProjectMemberPermission as ProjectMemberPermission,
    ProjectPermission as ProjectPermission,
)
