"""Namespace Resolver — maps a requested project to the project whose profiles apply.

Invariants:
    - Runs inside the caller's transaction, before any profile query
    - A missing project raises ResourceNotFoundError (never silently "default")
    - A project with profiles disabled resolves to DEFAULT_PROJECT
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from profilekit.core.errors import ErrorContext, ResourceNotFoundError
from profilekit.core.namespace import effective_project
from profilekit.models.project import Project

logger = logging.getLogger(__name__)


async def project_has_profiles(db: AsyncSession, project: str) -> bool:
    """Return the "profiles enabled" flag of a project."""
    result = await db.execute(
        select(Project.profiles_enabled).where(Project.name == project),
    )
    enabled = result.scalar_one_or_none()
    if enabled is None:
        raise ResourceNotFoundError(
            "Project", project, ErrorContext(project=project),
        )
    return bool(enabled)


async def resolve_project(db: AsyncSession, requested: str) -> str:
    """Return the effective project for profile operations on `requested`."""
    enabled = await project_has_profiles(db, requested)
    project = effective_project(requested, enabled)
    if project != requested:
        logger.debug(
            f"Project {requested!r} has no profiles, using {project!r}",
            extra={"project": requested},
        )
    return project
