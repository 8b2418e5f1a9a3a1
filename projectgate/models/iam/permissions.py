"""
Permission grant store.

One ``ProjectMemberPermission`` row per (project, user) holds that user's
explicit tokens as ``ProjectPermission`` child rows. Token names are stored
in wire form and are only ever written after ``policy.validate``.
"""

from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from projectgate.db.base import Base
import uuid


class ProjectMemberPermission(Base):
    __tablename__ = "project_member_permissions"

    id = Column(
        String,
        primary_key=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    project_id = Column(
        String,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="member_permissions")
    permissions = relationship(
        "ProjectPermission",
        back_populates="member_permission",
        cascade="all, delete-orphan",
        order_by="ProjectPermission.name",
    )

    __table_args__ = (
        UniqueConstraint(
            "project_id", "user_id", name="uq_project_member_permission"
        ),
    )


class ProjectPermission(Base):
    __tablename__ = "project_permissions"

    id = Column(
        String,
        primary_key=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    name = Column(String, nullable=False)
    member_permission_id = Column(
        String,
        ForeignKey("project_member_permissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    member_permission = relationship(
        "ProjectMemberPermission", back_populates="permissions"
    )

    __table_args__ = (
        UniqueConstraint(
            "member_permission_id", "name", name="uq_project_permission_name"
        ),
    )
