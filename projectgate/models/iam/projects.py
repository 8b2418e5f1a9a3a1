"""
Project projection.

Only the columns an authorization decision needs: who manages the project
and who belongs to it. The project service owns the full record.
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from projectgate.db.base import Base
import uuid


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(
        String,
        primary_key=True,
        index=True,
        nullable=False,
        default=lambda: str(uuid.uuid4()),
    )
    title = Column(String, nullable=False)
    manager_user_id = Column(String, nullable=True, index=True)
    created_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    member_permissions = relationship(
        "ProjectMemberPermission",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
