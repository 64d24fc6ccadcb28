"""Usage Scanner — lists the instances that reference a profile.

Invariants:
    - Read only; never mutates
    - Only instances of PRIMARY_INSTANCE_TYPES are reported
    - Returns {} (never raises) when nothing references the profile,
      including when the profile itself does not exist
    - Instance names within a project are sorted by name
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from profilekit.core.domain_types import DEFAULT_PROJECT, PRIMARY_INSTANCE_TYPES
from profilekit.models.instance import Instance, InstanceProfile
from profilekit.models.profile import Profile
from profilekit.models.project import Project


async def find_referencing_instances(
    db: AsyncSession, project: str, profile: str,
) -> dict[str, list[str]]:
    """Map instance project → instance names for instances using `profile`.

    `project` is the effective project the profile lives in; the instances
    themselves may belong to other projects sharing it.
    """
    profile_project = aliased(Project)
    instance_project = aliased(Project)

    profile_id = (
        select(Profile.id)
        .join(profile_project, profile_project.id == Profile.project_id)
        .where(Profile.name == profile)
        .where(profile_project.name == project)
        .scalar_subquery()
    )
    query = (
        select(Instance.name, instance_project.name)
        .join(InstanceProfile, InstanceProfile.instance_id == Instance.id)
        .join(instance_project, instance_project.id == Instance.project_id)
        .where(InstanceProfile.profile_id == profile_id)
        .where(Instance.type.in_([t.value for t in PRIMARY_INSTANCE_TYPES]))
        .order_by(instance_project.name, Instance.name)
    )
    result = await db.execute(query)

    references: dict[str, list[str]] = {}
    for instance_name, project_name in result.all():
        references.setdefault(project_name, []).append(instance_name)
    return references


def used_by_uris(references: dict[str, list[str]]) -> list[str]:
    """Render scan results as instance URIs, sorted."""
    uris = []
    for project, names in references.items():
        for name in names:
            uri = f"/1.0/instances/{name}"
            if project != DEFAULT_PROJECT:
                uri += f"?project={project}"
            uris.append(uri)
    return sorted(uris)
