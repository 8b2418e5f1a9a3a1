"""
Association tables for the IAM read model.

Members are external user ids, so ``user_id`` carries no foreign key.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.sql import func
from projectgate.db.base import Base


project_members = Table(
    "project_members",
    Base.metadata,
    Column(
        "project_id",
        String,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("user_id", String, primary_key=True, index=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)
