"""Garbage Collector — removes config/device rows whose owning profile is gone.

Invariants:
    - Three unconditional deletes, children first: device config whose device
      or profile is gone, devices whose profile is gone, profile config whose
      profile is gone
    - Runs inside the caller's transaction; idempotent
    - Not part of the create/update/delete path — repairs drift only
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from profilekit.models.profile import (
    Profile, ProfileConfig, ProfileDevice, ProfileDeviceConfig,
)

logger = logging.getLogger(__name__)


async def prune_orphans(db: AsyncSession) -> int:
    """Delete orphaned config/device rows. Returns the number of rows removed."""
    live_profiles = select(Profile.id)
    live_devices = select(ProfileDevice.id).where(
        ProfileDevice.profile_id.in_(live_profiles),
    )
    statements = (
        delete(ProfileDeviceConfig).where(
            ProfileDeviceConfig.profile_device_id.not_in(live_devices),
        ),
        delete(ProfileDevice).where(
            ProfileDevice.profile_id.not_in(live_profiles),
        ),
        delete(ProfileConfig).where(
            ProfileConfig.profile_id.not_in(live_profiles),
        ),
    )
    removed = 0
    for stmt in statements:
        result = await db.execute(
            stmt.execution_options(synchronize_session=False),
        )
        removed += max(result.rowcount or 0, 0)

    if removed:
        logger.info(
            f"Removed {removed} orphaned profile rows",
            extra={"rows_deleted": removed},
        )
    return removed
