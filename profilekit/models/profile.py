"""Profile ORM — profile rows and their config/device dependents.

Invariants:
    - (project_id, name) is unique on profiles
    - Dependency chain: profiles → profiles_config, profiles_devices → profiles_devices_config
    - Values stored in *_config tables are never empty strings
    - profiles_devices.type holds the device `type` key (nullable)

Design Decisions:
    - No ORM relationships: the store issues explicit statements in dependency order
    - ON DELETE CASCADE is not relied on; deletes are explicit so SQLite and
      PostgreSQL behave the same, and prune_orphans repairs any drift
"""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from profilekit.db.base import Base


class Profile(Base):
    """Profile row — identity plus description."""
    __tablename__ = "profiles"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="profiles_project_id_name_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default="",
    )


class ProfileConfig(Base):
    """Flat key/value config of a profile."""
    __tablename__ = "profiles_config"
    __table_args__ = (
        UniqueConstraint("profile_id", "key", name="profiles_config_profile_id_key_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id"), nullable=False,
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)


class ProfileDevice(Base):
    """Named device attached to a profile."""
    __tablename__ = "profiles_devices"
    __table_args__ = (
        UniqueConstraint("profile_id", "name", name="profiles_devices_profile_id_name_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles.id"), nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str | None] = mapped_column(String(64), nullable=True)


class ProfileDeviceConfig(Base):
    """Key/value config of one profile device."""
    __tablename__ = "profiles_devices_config"
    __table_args__ = (
        UniqueConstraint(
            "profile_device_id", "key",
            name="profiles_devices_config_profile_device_id_key_key",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_device_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("profiles_devices.id"), nullable=False,
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
