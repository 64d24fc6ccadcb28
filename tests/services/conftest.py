"""Service test fixtures — in-memory SQLite database, seed helpers and API client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys on
    - The default project and default profile exist before each test
    - get_db_manager dependency overridden to use the test manager

Design Decisions:
    - Seed helpers are fixtures returning async callables so tests stay flat
    - lax_db_manager disables foreign keys to fabricate orphaned rows
    - file_db_manager gives concurrent transactions their own connections
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from profilekit.core.domain_types import InstanceType
from profilekit.infrastructure.database import DatabaseSessionManager, get_db_manager
from profilekit.models.instance import Instance, InstanceProfile
from profilekit.models.project import Project
from profilekit.services.namespace_resolver import resolve_project
from profilekit.services.profile_service import ProfileService
from profilekit.services.profile_store import ProfileStore
import profilekit.infrastructure.database as db_module
from profilekit.main import app

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


async def _bootstrap(manager: DatabaseSessionManager) -> DatabaseSessionManager:
    await manager.create_all()
    await ProfileService(manager).ensure_default_project()
    return manager


@pytest.fixture
async def db_manager():
    manager = await _bootstrap(DatabaseSessionManager(MEMORY_URL))
    yield manager
    await manager.close()


@pytest.fixture
async def lax_db_manager():
    """Same schema, foreign keys not enforced."""
    manager = await _bootstrap(
        DatabaseSessionManager(MEMORY_URL, foreign_keys=False),
    )
    yield manager
    await manager.close()


@pytest.fixture
async def file_db_manager(tmp_path):
    """File-backed database: separate connections per session, real locking."""
    manager = await _bootstrap(
        DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'profiles.db'}"),
    )
    yield manager
    await manager.close()


@pytest.fixture
def service(db_manager):
    return ProfileService(db_manager)


@pytest.fixture
def make_project(db_manager):
    """Insert a project; returns its name."""
    async def _make(name: str, profiles_enabled: bool = True) -> str:
        async with db_manager.transaction() as db:
            db.add(Project(name=name, profiles_enabled=profiles_enabled))
        return name
    return _make


@pytest.fixture
def make_instance(db_manager):
    """Insert an instance using the given profiles in order."""
    async def _make(
        project: str,
        name: str,
        profiles: list[str],
        instance_type: InstanceType = InstanceType.CONTAINER,
    ) -> int:
        async with db_manager.transaction() as db:
            result = await db.execute(
                select(Project.id).where(Project.name == project),
            )
            instance = Instance(
                project_id=result.scalar_one(), name=name,
                type=instance_type.value,
            )
            db.add(instance)
            await db.flush()

            store = ProfileStore(db)
            profile_project = await resolve_project(db, project)
            for order, profile in enumerate(profiles):
                db.add(InstanceProfile(
                    instance_id=instance.id,
                    profile_id=await store.get_id(profile_project, profile),
                    apply_order=order,
                ))
            return instance.id
    return _make


@pytest.fixture
def count_rows(db_manager):
    """Count rows of a model in the test database."""
    async def _count(model, manager: DatabaseSessionManager | None = None) -> int:
        async with (manager or db_manager).session() as db:
            result = await db.execute(select(func.count()).select_from(model))
            return result.scalar_one()
    return _count


@pytest.fixture
async def client(db_manager):
    """FastAPI test client with the DB manager dependency overridden."""
    app.dependency_overrides[get_db_manager] = lambda: db_manager

    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
