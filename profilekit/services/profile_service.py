"""Profile Service — transactional entry points used by routes and the instance layer.

Invariants:
    - Every public method is one transaction (DatabaseSessionManager.transaction())
    - The project is resolved first, inside the same transaction as the profile queries
    - Writes that fail part-way roll back entirely
    - The default profile cannot be renamed or deleted
    - Deleting a profile that instances still use is refused before any row changes

Design Decisions:
    - Partial updates (patch_profile) read, merge in memory, then replace_config()
    - expand_instance() loads profiles in caller order; ordering is never decided here
"""

import logging

from sqlalchemy import select, update

from profilekit.core.domain_types import (
    ConfigMap, DEFAULT_PROFILE, DEFAULT_PROJECT, DeviceMap, Profile, ProfileId,
)
from profilekit.core.errors import (
    ErrorContext, ProfileInUseError, ProtectedProfileError,
)
from profilekit.core.expand import expand_instance_config, expand_instance_devices
from profilekit.core.patch import merge_config, merge_devices
from profilekit.infrastructure.database import DatabaseSessionManager
from profilekit.models.project import Project
from profilekit.services.garbage_collector import prune_orphans
from profilekit.services.namespace_resolver import resolve_project
from profilekit.services.profile_store import ProfileStore
from profilekit.services.usage_scanner import find_referencing_instances

logger = logging.getLogger(__name__)


class ProfileService:
    """Profile operations with project resolution and transaction boundaries."""

    def __init__(self, db_manager: DatabaseSessionManager):
        self.db_manager = db_manager

    # ─── Reads ──────────────────────────────────────────────────

    async def get_profile_names(self, project: str) -> list[str]:
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            return await ProfileStore(db).list_names(project)

    async def get_profile(self, project: str, name: str) -> Profile:
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            return await ProfileStore(db).get(project, name)

    async def get_profiles(self, project: str, names: list[str]) -> list[Profile]:
        """Profiles with the given names, in the given order."""
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            return await ProfileStore(db).get_many(project, names)

    async def get_all_profiles(self, project: str) -> list[Profile]:
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            store = ProfileStore(db)
            return await store.get_many(project, await store.list_names(project))

    async def get_instances_with_profile(
        self, project: str, profile: str,
    ) -> dict[str, list[str]]:
        """Instances using the profile, grouped by their own project."""
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            await ProfileStore(db).get_id(project, profile)
            return await find_referencing_instances(db, project, profile)

    async def expand_instance(
        self,
        project: str,
        profiles: list[str],
        config: ConfigMap,
        devices: DeviceMap,
    ) -> tuple[ConfigMap, DeviceMap]:
        """Effective config and devices of an instance using `profiles` in order."""
        loaded = await self.get_profiles(project, profiles)
        return (
            expand_instance_config(config, loaded),
            expand_instance_devices(devices, loaded),
        )

    # ─── Writes ─────────────────────────────────────────────────

    async def create_profile(
        self,
        project: str,
        name: str,
        description: str = "",
        config: ConfigMap | None = None,
        devices: DeviceMap | None = None,
    ) -> ProfileId:
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            return await ProfileStore(db).create(
                project, name, description, config, devices,
            )

    async def update_profile(
        self,
        project: str,
        name: str,
        description: str,
        config: ConfigMap,
        devices: DeviceMap,
    ) -> None:
        """Replace description, config and devices of a profile."""
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            store = ProfileStore(db)
            profile_id = await store.get_id(project, name)
            await store.update_description(profile_id, description)
            await store.replace_config(profile_id, config, devices)

    async def patch_profile(
        self,
        project: str,
        name: str,
        description: str | None = None,
        config: ConfigMap | None = None,
        devices: DeviceMap | None = None,
    ) -> None:
        """Merge the given fields into a profile and store the result."""
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            store = ProfileStore(db)
            current = await store.get(project, name)
            if description is not None:
                await store.update_description(current.id, description)
            await store.replace_config(
                current.id,
                merge_config(current.config, config or {}),
                merge_devices(current.devices, devices or {}),
            )

    async def rename_profile(self, project: str, old_name: str, new_name: str) -> None:
        if old_name == DEFAULT_PROFILE:
            raise ProtectedProfileError(
                "renamed", ErrorContext(project=project, profile=old_name),
            )
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            await ProfileStore(db).rename(project, old_name, new_name)

    async def delete_profile(self, project: str, name: str) -> None:
        if name == DEFAULT_PROFILE:
            raise ProtectedProfileError(
                "deleted", ErrorContext(project=project, profile=name),
            )
        async with self.db_manager.transaction() as db:
            project = await resolve_project(db, project)
            store = ProfileStore(db)
            profile = await store.get(project, name)
            if profile.used_by:
                logger.warning(
                    f"Refusing to delete profile {name!r} in use",
                    extra={"project": project, "profile": name},
                )
                raise ProfileInUseError(
                    name, profile.used_by,
                    ErrorContext(project=project, profile=name),
                )
            await store.delete(profile.id)

    # ─── Maintenance ────────────────────────────────────────────

    async def remove_unreferenced_profiles(self) -> int:
        """Remove config/device rows left behind by deleted profiles."""
        async with self.db_manager.transaction() as db:
            return await prune_orphans(db)

    async def ensure_default_project(self) -> None:
        """Create the default project and default profile when missing."""
        async with self.db_manager.transaction() as db:
            result = await db.execute(
                select(Project.id).where(Project.name == DEFAULT_PROJECT),
            )
            if result.scalar_one_or_none() is None:
                db.add(Project(
                    name=DEFAULT_PROJECT,
                    description="Default project",
                    profiles_enabled=True,
                ))
                await db.flush()
                logger.info("Created default project", extra={"project": DEFAULT_PROJECT})
            else:
                await db.execute(
                    update(Project)
                    .where(Project.name == DEFAULT_PROJECT)
                    .values(profiles_enabled=True)
                    .execution_options(synchronize_session=False),
                )

            store = ProfileStore(db)
            if not await store.exists(DEFAULT_PROJECT, DEFAULT_PROFILE):
                await store.create(
                    DEFAULT_PROJECT, DEFAULT_PROFILE, "Default profile",
                )
