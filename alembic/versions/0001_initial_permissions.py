"""initial project projection and permission grant tables

Revision ID: 0001_initial_permissions
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial_permissions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("manager_user_id", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("project_id"),
    )
    op.create_index("ix_projects_project_id", "projects", ["project_id"])
    op.create_index("ix_projects_manager_user_id", "projects", ["manager_user_id"])

    op.create_table(
        "project_members",
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.project_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("project_id", "user_id"),
    )
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"])

    op.create_table(
        "project_member_permissions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["project_id"], ["projects.project_id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "project_id", "user_id", name="uq_project_member_permission"
        ),
    )
    op.create_index(
        "ix_project_member_permissions_project_id",
        "project_member_permissions",
        ["project_id"],
    )
    op.create_index(
        "ix_project_member_permissions_user_id",
        "project_member_permissions",
        ["user_id"],
    )

    op.create_table(
        "project_permissions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("member_permission_id", sa.String(), nullable=False),
        sa.ForeignKeyConstraint(
            ["member_permission_id"],
            ["project_member_permissions.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "member_permission_id", "name", name="uq_project_permission_name"
        ),
    )
    op.create_index(
        "ix_project_permissions_member_permission_id",
        "project_permissions",
        ["member_permission_id"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_project_permissions_member_permission_id",
        table_name="project_permissions",
    )
    op.drop_table("project_permissions")
    op.drop_index(
        "ix_project_member_permissions_user_id",
        table_name="project_member_permissions",
    )
    op.drop_index(
        "ix_project_member_permissions_project_id",
        table_name="project_member_permissions",
    )
    op.drop_table("project_member_permissions")
    op.drop_index("ix_project_members_user_id", table_name="project_members")
    op.drop_table("project_members")
    op.drop_index("ix_projects_manager_user_id", table_name="projects")
    op.drop_index("ix_projects_project_id", table_name="projects")
    op.drop_table("projects")
