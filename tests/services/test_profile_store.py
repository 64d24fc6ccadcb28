"""Profile Store — CRUD, canonicalization and dependency-ordered deletes.

Tests cover:
    - create → get round trip drops empty values and has empty used_by
    - list_names is sorted; get_many keeps input order and fails on first missing
    - duplicate create / rename raise ConflictError
    - rename keeps id and dependent rows
    - replace_config is clear-then-recreate and idempotent
    - delete removes every dependent row; references block it
    - racing create / rename on one name: one wins, the other gets ConflictError
"""

import asyncio

import pytest
from sqlalchemy.exc import IntegrityError

from profilekit.core.domain_types import DEFAULT_PROJECT, InstanceType
from profilekit.core.errors import (
    ConflictError, ProfileInUseError, ResourceNotFoundError,
)
from profilekit.models.profile import (
    Profile as ProfileModel, ProfileConfig, ProfileDevice, ProfileDeviceConfig,
)
from profilekit.services.profile_store import ProfileStore

CONFIG = {"limits.cpu": "2", "security.nesting": "", "boot.autostart": "true"}
DEVICES = {
    "root": {"type": "disk", "path": "/", "pool": "default", "size": ""},
    "eth0": {"type": "nic", "network": "lxdbr0"},
}


async def _create(db_manager, name="web", config=CONFIG, devices=DEVICES, description=""):
    async with db_manager.transaction() as db:
        return await ProfileStore(db).create(
            DEFAULT_PROJECT, name, description, config, devices,
        )


async def _get(db_manager, name="web"):
    async with db_manager.transaction() as db:
        return await ProfileStore(db).get(DEFAULT_PROJECT, name)


# ─── create / get ────────────────────────────────────────────────

async def test_create_then_get_round_trips_without_empty_values(db_manager):
    profile_id = await _create(db_manager, description="Web tier")
    profile = await _get(db_manager)

    assert profile.id == profile_id
    assert profile.project == DEFAULT_PROJECT
    assert profile.description == "Web tier"
    assert profile.config == {"limits.cpu": "2", "boot.autostart": "true"}
    assert profile.devices == {
        "root": {"type": "disk", "path": "/", "pool": "default"},
        "eth0": {"type": "nic", "network": "lxdbr0"},
    }
    assert profile.used_by == []


async def test_create_stores_no_empty_value_rows(db_manager, count_rows):
    await _create(db_manager)
    assert await count_rows(ProfileConfig) == 2
    assert await count_rows(ProfileDevice) == 2
    # type lives on the device row; path+pool for root, network for eth0
    assert await count_rows(ProfileDeviceConfig) == 3


async def test_create_duplicate_raises_conflict(db_manager):
    await _create(db_manager)
    with pytest.raises(ConflictError):
        await _create(db_manager)


async def test_create_in_missing_project_raises_not_found(db_manager):
    with pytest.raises(ResourceNotFoundError) as exc:
        async with db_manager.transaction() as db:
            await ProfileStore(db).create("nowhere", "web")
    assert exc.value.resource_type == "Project"


async def test_failed_create_leaves_no_rows(db_manager, count_rows):
    await _create(db_manager)
    with pytest.raises(ConflictError):
        await _create(db_manager, config={"x": "1"})
    assert await count_rows(ProfileConfig) == 2


async def test_get_missing_raises_not_found(db_manager):
    with pytest.raises(ResourceNotFoundError) as exc:
        await _get(db_manager, "missing")
    assert exc.value.resource_id == "missing"


async def test_same_name_in_two_projects_is_allowed(db_manager, make_project):
    await make_project("team")
    await _create(db_manager)
    async with db_manager.transaction() as db:
        await ProfileStore(db).create("team", "web", config={"limits.cpu": "8"})
    async with db_manager.transaction() as db:
        team = await ProfileStore(db).get("team", "web")
    assert team.config == {"limits.cpu": "8"}
    assert (await _get(db_manager)).config["limits.cpu"] == "2"


# ─── list_names / get_many ───────────────────────────────────────

async def test_list_names_is_sorted(db_manager):
    for name in ("zeta", "alpha", "mid"):
        await _create(db_manager, name, {}, {})
    async with db_manager.transaction() as db:
        names = await ProfileStore(db).list_names(DEFAULT_PROJECT)
    assert names == ["alpha", "default", "mid", "zeta"]


async def test_get_many_keeps_requested_order(db_manager):
    await _create(db_manager, "web", {"limits.cpu": "2"}, {})
    await _create(db_manager, "db", {"limits.cpu": "4"}, {})
    async with db_manager.transaction() as db:
        profiles = await ProfileStore(db).get_many(DEFAULT_PROJECT, ["web", "db", "web"])
    assert [p.name for p in profiles] == ["web", "db", "web"]


async def test_get_many_fails_on_first_missing(db_manager):
    await _create(db_manager, "web", {}, {})
    with pytest.raises(ResourceNotFoundError) as exc:
        async with db_manager.transaction() as db:
            await ProfileStore(db).get_many(DEFAULT_PROJECT, ["web", "gone", "lost"])
    assert exc.value.resource_id == "gone"


# ─── rename / description ────────────────────────────────────────

async def test_rename_keeps_id_and_rows(db_manager):
    profile_id = await _create(db_manager)
    async with db_manager.transaction() as db:
        await ProfileStore(db).rename(DEFAULT_PROJECT, "web", "frontend")

    renamed = await _get(db_manager, "frontend")
    assert renamed.id == profile_id
    assert renamed.config == {"limits.cpu": "2", "boot.autostart": "true"}
    with pytest.raises(ResourceNotFoundError):
        await _get(db_manager, "web")


async def test_rename_onto_existing_raises_conflict(db_manager):
    await _create(db_manager, "web", {}, {})
    await _create(db_manager, "db", {}, {})
    with pytest.raises(ConflictError):
        async with db_manager.transaction() as db:
            await ProfileStore(db).rename(DEFAULT_PROJECT, "web", "db")


async def test_rename_missing_raises_not_found(db_manager):
    with pytest.raises(ResourceNotFoundError):
        async with db_manager.transaction() as db:
            await ProfileStore(db).rename(DEFAULT_PROJECT, "gone", "new")


async def test_update_description_is_idempotent(db_manager):
    profile_id = await _create(db_manager)
    for _ in range(2):
        async with db_manager.transaction() as db:
            await ProfileStore(db).update_description(profile_id, "Frontends")
    assert (await _get(db_manager)).description == "Frontends"


# ─── replace_config ──────────────────────────────────────────────

async def test_replace_config_drops_old_keys_and_devices(db_manager):
    profile_id = await _create(db_manager)
    async with db_manager.transaction() as db:
        await ProfileStore(db).replace_config(
            profile_id, {"limits.memory": "1GB"}, {"gpu0": {"type": "gpu"}},
        )
    profile = await _get(db_manager)
    assert profile.config == {"limits.memory": "1GB"}
    assert profile.devices == {"gpu0": {"type": "gpu"}}


async def test_replace_config_twice_is_idempotent(db_manager, count_rows):
    profile_id = await _create(db_manager, config={}, devices={})
    snapshots = []
    for _ in range(2):
        async with db_manager.transaction() as db:
            await ProfileStore(db).replace_config(profile_id, CONFIG, DEVICES)
        profile = await _get(db_manager)
        snapshots.append((
            profile.config, profile.devices,
            await count_rows(ProfileConfig),
            await count_rows(ProfileDevice),
            await count_rows(ProfileDeviceConfig),
        ))
    assert snapshots[0] == snapshots[1]


async def test_replace_with_empty_maps_clears_everything(db_manager, count_rows):
    profile_id = await _create(db_manager)
    async with db_manager.transaction() as db:
        await ProfileStore(db).replace_config(profile_id, {}, {})
    assert await count_rows(ProfileConfig) == 0
    assert await count_rows(ProfileDevice) == 0
    assert await count_rows(ProfileDeviceConfig) == 0


# ─── delete ──────────────────────────────────────────────────────

async def test_delete_removes_profile_and_dependents(db_manager, count_rows):
    profile_id = await _create(db_manager)
    async with db_manager.transaction() as db:
        await ProfileStore(db).delete(profile_id)

    assert await count_rows(ProfileConfig) == 0
    assert await count_rows(ProfileDevice) == 0
    assert await count_rows(ProfileDeviceConfig) == 0
    # only the default profile remains
    assert await count_rows(ProfileModel) == 1


async def test_delete_missing_raises_not_found(db_manager):
    with pytest.raises(ResourceNotFoundError):
        async with db_manager.transaction() as db:
            await ProfileStore(db).delete(9999)


async def test_delete_referenced_profile_is_blocked_and_rolled_back(
    db_manager, make_instance, count_rows,
):
    profile_id = await _create(db_manager)
    # VMs are not reported by the usage scan, the foreign key still holds
    await make_instance(
        DEFAULT_PROJECT, "vm1", ["web"], InstanceType.VIRTUAL_MACHINE,
    )
    with pytest.raises(ProfileInUseError):
        async with db_manager.transaction() as db:
            await ProfileStore(db).delete(profile_id)

    profile = await _get(db_manager)
    assert profile.config == {"limits.cpu": "2", "boot.autostart": "true"}
    assert await count_rows(ProfileDeviceConfig) == 3


# ─── concurrent writes ───────────────────────────────────────────

async def _race(manager, taken_name, *actions):
    """Run actions in parallel transactions once each has seen taken_name free."""
    gate = asyncio.Event()
    checked = []

    async def attempt(action):
        async with manager.transaction() as db:
            store = ProfileStore(db)
            checked.append(await store.exists(DEFAULT_PROJECT, taken_name))
            if len(checked) == len(actions):
                gate.set()
            await gate.wait()
            return await action(store)

    results = await asyncio.gather(
        *(attempt(action) for action in actions), return_exceptions=True,
    )
    assert checked == [False] * len(actions)
    return results


async def test_concurrent_create_same_name_one_wins(file_db_manager, count_rows):
    async def create(store):
        return await store.create(DEFAULT_PROJECT, "web", config={"limits.cpu": "2"})

    results = await _race(file_db_manager, "web", create, create)

    created = [r for r in results if isinstance(r, int)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(created) == 1
    assert len(conflicts) == 1
    assert conflicts[0].code == "PROFILE_EXISTS"
    assert await count_rows(ProfileModel, file_db_manager) == 2
    assert await count_rows(ProfileConfig, file_db_manager) == 1


async def test_concurrent_rename_onto_same_name_one_wins(file_db_manager):
    await _create(file_db_manager, "web", {}, {})
    await _create(file_db_manager, "db", {}, {})

    async def rename_web(store):
        return await store.rename(DEFAULT_PROJECT, "web", "frontend")

    async def rename_db(store):
        return await store.rename(DEFAULT_PROJECT, "db", "frontend")

    results = await _race(file_db_manager, "frontend", rename_web, rename_db)

    assert results.count(None) == 1
    assert sum(isinstance(r, ConflictError) for r in results) == 1
    async with file_db_manager.transaction() as db:
        names = await ProfileStore(db).list_names(DEFAULT_PROJECT)
    assert "frontend" in names
    assert len(names) == 3


async def _name_always_free(self, project, name):
    return False


async def test_create_unique_violation_maps_to_conflict(db_manager, count_rows, monkeypatch):
    await _create(db_manager)
    monkeypatch.setattr(ProfileStore, "exists", _name_always_free)

    with pytest.raises(ConflictError) as exc:
        await _create(db_manager, config={"x": "1"})
    assert isinstance(exc.value.__cause__, IntegrityError)
    assert exc.value.code == "PROFILE_EXISTS"
    assert await count_rows(ProfileModel) == 2
    assert await count_rows(ProfileConfig) == 2


async def test_rename_unique_violation_maps_to_conflict(db_manager, monkeypatch):
    await _create(db_manager, "web", {}, {})
    await _create(db_manager, "db", {}, {})
    monkeypatch.setattr(ProfileStore, "exists", _name_always_free)

    with pytest.raises(ConflictError) as exc:
        async with db_manager.transaction() as db:
            await ProfileStore(db).rename(DEFAULT_PROJECT, "web", "db")
    assert isinstance(exc.value.__cause__, IntegrityError)
    monkeypatch.undo()

    assert (await _get(db_manager, "web")).name == "web"
