"""Project ORM — isolation scope for profile and instance names.

Invariants:
    - name is unique
    - profiles_enabled=False redirects every profile query to the default project
    - The default project row always has profiles_enabled=True
"""

from sqlalchemy import Boolean, Integer, String, Text, true
from sqlalchemy.orm import Mapped, mapped_column

from profilekit.db.base import Base


class Project(Base):
    """Project — carries the "profiles enabled" capability flag."""
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default="",
    )
    profiles_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true(),
    )
