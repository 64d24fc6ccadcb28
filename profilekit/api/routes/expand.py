"""Expansion Route — effective config/devices for an instance's ordered profiles.

Invariants:
    - Profiles are applied in request order; the instance layer wins last
    - A profile listed twice is rejected (its position would be ambiguous)

Design Decisions:
    - Duplicate names are rejected here, not in core/expand.py: the expander
      folds any list it is given, an instance just never lists a profile twice
"""

from fastapi import APIRouter, Depends, Query

from profilekit.api.routes.profiles import get_profile_service
from profilekit.core.domain_types import DEFAULT_PROJECT
from profilekit.core.errors import ErrorContext, ValidationError
from profilekit.schemas.profile import ExpandRequest, ExpandResponse
from profilekit.services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/expand", tags=["expand"])


@router.post("", response_model=ExpandResponse)
async def expand_instance(
    body: ExpandRequest,
    project: str = Query(DEFAULT_PROJECT),
    service: ProfileService = Depends(get_profile_service),
):
    seen: set[str] = set()
    for name in body.profiles:
        if name in seen:
            raise ValidationError(
                f"Duplicate profile '{name}'", "profiles",
                ErrorContext(project=project, profile=name),
            )
        seen.add(name)

    config, devices = await service.expand_instance(
        project, body.profiles, body.config, body.devices,
    )
    return ExpandResponse(config=config, devices=devices)
