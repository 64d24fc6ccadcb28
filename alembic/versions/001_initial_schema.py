"""Initial schema — projects, profiles, profile config/devices, instances.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Seeds the default project with profiles enabled; the default profile is
created by ProfileService.ensure_default_project() on startup.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    projects = op.create_table(
        "projects",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("profiles_enabled", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.UniqueConstraint("project_id", "name", name="profiles_project_id_name_key"),
    )

    op.create_table(
        "profiles_config",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("profile_id", sa.Integer, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.UniqueConstraint("profile_id", "key", name="profiles_config_profile_id_key_key"),
    )

    op.create_table(
        "profiles_devices",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("profile_id", sa.Integer, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.String(64), nullable=True),
        sa.UniqueConstraint("profile_id", "name", name="profiles_devices_profile_id_name_key"),
    )

    op.create_table(
        "profiles_devices_config",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "profile_device_id", sa.Integer,
            sa.ForeignKey("profiles_devices.id"), nullable=False,
        ),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.UniqueConstraint(
            "profile_device_id", "key",
            name="profiles_devices_config_profile_device_id_key_key",
        ),
    )

    op.create_table(
        "instances",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("type", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint("project_id", "name", name="instances_project_id_name_key"),
    )

    op.create_table(
        "instances_profiles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "instance_id", sa.Integer,
            sa.ForeignKey("instances.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("profile_id", sa.Integer, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("apply_order", sa.Integer, nullable=False, server_default="0"),
        sa.UniqueConstraint(
            "instance_id", "profile_id",
            name="instances_profiles_instance_id_profile_id_key",
        ),
    )

    op.bulk_insert(projects, [
        {"name": "default", "description": "Default project", "profiles_enabled": True},
    ])


def downgrade() -> None:
    op.drop_table("instances_profiles")
    op.drop_table("instances")
    op.drop_table("profiles_devices_config")
    op.drop_table("profiles_devices")
    op.drop_table("profiles_config")
    op.drop_table("profiles")
    op.drop_table("projects")
