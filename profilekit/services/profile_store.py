"""Profile Store — CRUD over profiles and their config/device rows.

Invariants:
    - Every method takes the *effective* project (see namespace_resolver.py)
    - Runs inside the caller's transaction; never commits or rolls back itself
    - list_names() returns names in lexical order
    - Empty-string values are never written (core/device_rows.py)
    - Dependent rows are deleted children first: device config, devices,
      profile config, then the profile row
    - Unique-constraint and foreign-key violations surface as ConflictError /
      ProfileInUseError; anything else propagates to the session manager

Design Decisions:
    - Explicit statements instead of ORM relationships: the delete order is
      visible here and identical on every dialect
    - replace_config() is clear-then-recreate; partial updates are built by
      the caller (services/profile_service.py patch_profile)
"""

import logging

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from profilekit.core.device_rows import config_rows, join_device, split_device
from profilekit.core.domain_types import ConfigMap, DeviceMap, Profile, ProfileId
from profilekit.core.errors import (
    ConflictError, ErrorContext, ProfileInUseError, ResourceNotFoundError,
)
from profilekit.models.profile import Profile as ProfileModel
from profilekit.models.profile import ProfileConfig, ProfileDevice, ProfileDeviceConfig
from profilekit.models.project import Project
from profilekit.services.usage_scanner import find_referencing_instances, used_by_uris

logger = logging.getLogger(__name__)


class ProfileStore:
    """Profile persistence bound to one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Reads ──────────────────────────────────────────────────

    async def list_names(self, project: str) -> list[str]:
        """All profile names in the project, sorted."""
        result = await self.db.execute(
            select(ProfileModel.name)
            .join(Project, Project.id == ProfileModel.project_id)
            .where(Project.name == project)
            .order_by(ProfileModel.name),
        )
        return list(result.scalars().all())

    async def get_id(self, project: str, name: str) -> ProfileId:
        profile_id = await self._find_id(project, name)
        if profile_id is None:
            raise ResourceNotFoundError(
                "Profile", name, ErrorContext(project=project, profile=name),
            )
        return profile_id

    async def exists(self, project: str, name: str) -> bool:
        return await self._find_id(project, name) is not None

    async def get(self, project: str, name: str) -> Profile:
        """Load one profile with config, devices and used_by."""
        result = await self.db.execute(
            select(
                ProfileModel.id,
                func.coalesce(ProfileModel.description, ""),
            )
            .join(Project, Project.id == ProfileModel.project_id)
            .where(Project.name == project)
            .where(ProfileModel.name == name),
        )
        row = result.one_or_none()
        if row is None:
            raise ResourceNotFoundError(
                "Profile", name, ErrorContext(project=project, profile=name),
            )
        profile_id, description = row

        references = await find_referencing_instances(self.db, project, name)
        return Profile(
            id=ProfileId(profile_id),
            project=project,
            name=name,
            description=description,
            config=await self._load_config(profile_id),
            devices=await self._load_devices(profile_id),
            used_by=used_by_uris(references),
        )

    async def get_many(self, project: str, names: list[str]) -> list[Profile]:
        """Load profiles in the order given; the first missing name aborts."""
        return [await self.get(project, name) for name in names]

    # ─── Writes ─────────────────────────────────────────────────

    async def create(
        self,
        project: str,
        name: str,
        description: str = "",
        config: ConfigMap | None = None,
        devices: DeviceMap | None = None,
    ) -> ProfileId:
        """Create a profile and its initial config/device rows."""
        ctx = ErrorContext(project=project, profile=name)
        project_id = await self._project_id(project)
        if await self.exists(project, name):
            raise _already_exists(project, name, ctx)

        row = ProfileModel(
            project_id=project_id, name=name, description=description or "",
        )
        self.db.add(row)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same name
            raise _already_exists(project, name, ctx) from e

        profile_id = ProfileId(row.id)
        self.db.expunge(row)
        await self._create_config(profile_id, config or {}, devices or {})
        logger.info(
            f"Created profile {name!r}",
            extra={"project": project, "profile": name, "profile_id": profile_id},
        )
        return profile_id

    async def rename(self, project: str, old_name: str, new_name: str) -> None:
        """Rename a profile, keeping its id and every dependent row."""
        ctx = ErrorContext(project=project, profile=old_name)
        profile_id = await self.get_id(project, old_name)
        if await self.exists(project, new_name):
            raise _already_exists(project, new_name, ctx)
        try:
            await self.db.execute(
                update(ProfileModel)
                .where(ProfileModel.id == profile_id)
                .values(name=new_name)
                .execution_options(synchronize_session=False),
            )
        except IntegrityError as e:
            raise _already_exists(project, new_name, ctx) from e
        logger.info(
            f"Renamed profile {old_name!r} to {new_name!r}",
            extra={"project": project, "profile": new_name, "profile_id": profile_id},
        )

    async def update_description(self, profile_id: ProfileId, description: str) -> None:
        await self.db.execute(
            update(ProfileModel)
            .where(ProfileModel.id == profile_id)
            .values(description=description or "")
            .execution_options(synchronize_session=False),
        )

    async def replace_config(
        self, profile_id: ProfileId, config: ConfigMap, devices: DeviceMap,
    ) -> None:
        """Replace the whole config and device set of a profile."""
        await self._clear_config(profile_id)
        await self._create_config(profile_id, config, devices)
        logger.info(
            f"Replaced config of profile {profile_id}",
            extra={"profile_id": profile_id},
        )

    async def delete(self, profile_id: ProfileId) -> None:
        """Delete a profile and every dependent row.

        Raises ProfileInUseError when an instance still references the profile.
        """
        result = await self.db.execute(
            select(ProfileModel.name).where(ProfileModel.id == profile_id),
        )
        name = result.scalar_one_or_none()
        if name is None:
            raise ResourceNotFoundError("Profile", str(profile_id))

        await self._clear_config(profile_id)
        try:
            await self.db.execute(
                delete(ProfileModel)
                .where(ProfileModel.id == profile_id)
                .execution_options(synchronize_session=False),
            )
        except IntegrityError as e:
            raise ProfileInUseError(name, context=ErrorContext(profile=name)) from e
        logger.info(
            f"Deleted profile {name!r}",
            extra={"profile": name, "profile_id": profile_id},
        )

    # ─── Helpers ────────────────────────────────────────────────

    async def _project_id(self, project: str) -> int:
        result = await self.db.execute(
            select(Project.id).where(Project.name == project),
        )
        project_id = result.scalar_one_or_none()
        if project_id is None:
            raise ResourceNotFoundError(
                "Project", project, ErrorContext(project=project),
            )
        return project_id

    async def _find_id(self, project: str, name: str) -> ProfileId | None:
        result = await self.db.execute(
            select(ProfileModel.id)
            .join(Project, Project.id == ProfileModel.project_id)
            .where(Project.name == project)
            .where(ProfileModel.name == name),
        )
        profile_id = result.scalar_one_or_none()
        return ProfileId(profile_id) if profile_id is not None else None

    async def _load_config(self, profile_id: int) -> ConfigMap:
        result = await self.db.execute(
            select(ProfileConfig.key, ProfileConfig.value)
            .where(ProfileConfig.profile_id == profile_id),
        )
        return {key: value for key, value in result.all()}

    async def _load_devices(self, profile_id: int) -> DeviceMap:
        result = await self.db.execute(
            select(ProfileDevice.id, ProfileDevice.name, ProfileDevice.type)
            .where(ProfileDevice.profile_id == profile_id)
            .order_by(ProfileDevice.name),
        )
        device_rows = result.all()

        result = await self.db.execute(
            select(
                ProfileDeviceConfig.profile_device_id,
                ProfileDeviceConfig.key,
                ProfileDeviceConfig.value,
            )
            .join(ProfileDevice, ProfileDevice.id == ProfileDeviceConfig.profile_device_id)
            .where(ProfileDevice.profile_id == profile_id),
        )
        rows_by_device: dict[int, list[tuple[str, str]]] = {}
        for device_id, key, value in result.all():
            rows_by_device.setdefault(device_id, []).append((key, value))

        return {
            name: join_device(device_type, rows_by_device.get(device_id, []))
            for device_id, name, device_type in device_rows
        }

    async def _create_config(
        self, profile_id: ProfileId, config: ConfigMap, devices: DeviceMap,
    ) -> None:
        rows = [
            {"profile_id": profile_id, "key": k, "value": v}
            for k, v in config_rows(config)
        ]
        if rows:
            await self.db.execute(insert(ProfileConfig), rows)

        for name in sorted(devices):
            device_type, device_config = split_device(devices[name])
            device = ProfileDevice(profile_id=profile_id, name=name, type=device_type)
            self.db.add(device)
            await self.db.flush()
            device_id = device.id
            self.db.expunge(device)
            rows = [
                {"profile_device_id": device_id, "key": k, "value": v}
                for k, v in device_config
            ]
            if rows:
                await self.db.execute(insert(ProfileDeviceConfig), rows)

    async def _clear_config(self, profile_id: ProfileId) -> None:
        devices = select(ProfileDevice.id).where(ProfileDevice.profile_id == profile_id)
        for stmt in (
            delete(ProfileDeviceConfig).where(
                ProfileDeviceConfig.profile_device_id.in_(devices),
            ),
            delete(ProfileDevice).where(ProfileDevice.profile_id == profile_id),
            delete(ProfileConfig).where(ProfileConfig.profile_id == profile_id),
        ):
            await self.db.execute(stmt.execution_options(synchronize_session=False))


def _already_exists(project: str, name: str, ctx: ErrorContext) -> ConflictError:
    return ConflictError(
        f"Profile '{name}' already exists in project '{project}'",
        "PROFILE_EXISTS", ctx,
    )
