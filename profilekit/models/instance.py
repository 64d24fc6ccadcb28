"""Instance ORM — the minimal instance shape needed for usage scans.

Invariants:
    - (project_id, name) is unique on instances
    - instances_profiles.apply_order is the expansion order of an instance's profiles
    - instances_profiles.profile_id has no cascade: a reference blocks profile deletion

Design Decisions:
    - Instances are owned by an external instance-management layer; profilekit
      only reads these tables
"""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from profilekit.core.domain_types import InstanceType
from profilekit.db.base import Base


class Instance(Base):
    """Workload instance (container or virtual machine)."""
    __tablename__ = "instances"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="instances_project_id_name_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[int] = mapped_column(
        Integer, nullable=False, default=InstanceType.CONTAINER.value,
    )


class InstanceProfile(Base):
    """Ordered link between an instance and a profile."""
    __tablename__ = "instances_profiles"
    __table_args__ = (
        UniqueConstraint(
            "instance_id", "profile_id", name="instances_profiles_instance_id_profile_id_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instance_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("instances.id", ondelete="CASCADE"), nullable=False,
    )
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id"), nullable=False,
    )
    apply_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
