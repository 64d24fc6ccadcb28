"""Profile Routes — CRUD, rename and usage over /api/v1/profiles.

Invariants:
    - Every route takes ?project= (default "default"); resolution happens in the service
    - POST /profiles/{name} renames (the body carries the new name)
    - Errors propagate as ProfileKitError and are rendered by api/error_handlers.py
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from profilekit.core.domain_types import DEFAULT_PROJECT
from profilekit.infrastructure.database import DatabaseSessionManager, get_db_manager
from profilekit.schemas.profile import (
    ProfileCreate, ProfilePatch, ProfilePut, ProfileRename, ProfileResponse,
)
from profilekit.services.profile_service import ProfileService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


def get_profile_service(
    db_manager: DatabaseSessionManager = Depends(get_db_manager),
) -> ProfileService:
    return ProfileService(db_manager)


@router.get("")
async def list_profiles(
    project: str = Query(DEFAULT_PROJECT),
    recursion: int = Query(0, ge=0, le=1),
    service: ProfileService = Depends(get_profile_service),
):
    """List profile names, or full profiles with recursion=1."""
    if recursion:
        profiles = await service.get_all_profiles(project)
        return {
            "profiles": [
                ProfileResponse.from_profile(p).model_dump() for p in profiles
            ],
        }
    return {"profiles": await service.get_profile_names(project)}


@router.post(
    "", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED,
)
async def create_profile(
    body: ProfileCreate,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    await service.create_profile(
        project, body.name, body.description, body.config, body.devices,
    )
    return ProfileResponse.from_profile(
        await service.get_profile(project, body.name),
    )


@router.get("/{name}", response_model=ProfileResponse)
async def get_profile(
    name: str,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    return ProfileResponse.from_profile(await service.get_profile(project, name))


@router.put("/{name}", response_model=ProfileResponse)
async def replace_profile(
    name: str,
    body: ProfilePut,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    """Replace description, config and devices."""
    await service.update_profile(
        project, name, body.description, body.config, body.devices,
    )
    return ProfileResponse.from_profile(await service.get_profile(project, name))


@router.patch("/{name}", response_model=ProfileResponse)
async def patch_profile(
    name: str,
    body: ProfilePatch,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    """Merge config keys and devices into the profile."""
    await service.patch_profile(
        project, name, body.description, body.config, body.devices,
    )
    return ProfileResponse.from_profile(await service.get_profile(project, name))


@router.post("/{name}", response_model=ProfileResponse)
async def rename_profile(
    name: str,
    body: ProfileRename,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    await service.rename_profile(project, name, body.name)
    return ProfileResponse.from_profile(await service.get_profile(project, body.name))


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    name: str,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    await service.delete_profile(project, name)


@router.get("/{name}/instances")
async def list_profile_instances(
    name: str,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    """Instances using the profile, grouped by project."""
    return {"instances": await service.get_instances_with_profile(project, name)}
