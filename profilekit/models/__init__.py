"""ORM Models — SQLAlchemy declarative models for projects, profiles and instances.

Invariants:
    - All models inherit from Base (db/base.py)
    - Profile tables are scoped by project_id

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all
      or alembic autogenerate runs
"""

from profilekit.models.project import Project  # noqa: F401
from profilekit.models.profile import (  # noqa: F401
    Profile, ProfileConfig, ProfileDevice, ProfileDeviceConfig,
)
from profilekit.models.instance import Instance, InstanceProfile  # noqa: F401
