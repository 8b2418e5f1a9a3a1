"""
IAM read model for projectgate.

Users live in the separate user service; here they are plain string ids.
Projects and memberships are a read-only projection used to build
membership snapshots. The permission tables are the grant store.
"""

from .relationships import project_members
from .projects import Project
from .permissions import ProjectMemberPermission, ProjectPermission

__all__ = [
    "project_members",
    "Project",
    "ProjectMemberPermission",
    "ProjectPermission",
]
