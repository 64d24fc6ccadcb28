"""Profile Schemas — Pydantic models for the profile and expansion endpoints.

Invariants:
    - Profile names: 1-63 chars, no "/" and not "." or ".." (they appear in URLs)
    - Config and device maps are str → str; values are not interpreted here
    - PATCH fields are optional; omitted fields leave the profile unchanged
"""

from pydantic import BaseModel, Field, field_validator

from profilekit.core.domain_types import Profile


def _check_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("profile name cannot be empty")
    if "/" in v:
        raise ValueError("profile name cannot contain '/'")
    if v in (".", ".."):
        raise ValueError(f"invalid profile name {v!r}")
    return v


class ProfilePut(BaseModel):
    """Full replacement of a profile's writable fields."""
    description: str = Field("", max_length=1000)
    config: dict[str, str] = Field(default_factory=dict)
    devices: dict[str, dict[str, str]] = Field(default_factory=dict)


class ProfileCreate(ProfilePut):
    """Profile creation — a name plus the writable fields."""
    name: str = Field(min_length=1, max_length=63)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_name(v)


class ProfilePatch(BaseModel):
    """Partial update merged into the current profile."""
    description: str | None = Field(None, max_length=1000)
    config: dict[str, str] | None = None
    devices: dict[str, dict[str, str]] | None = None


class ProfileRename(BaseModel):
    name: str = Field(min_length=1, max_length=63)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_name(v)


class ProfileResponse(BaseModel):
    """Public profile representation."""
    name: str
    description: str
    config: dict[str, str]
    devices: dict[str, dict[str, str]]
    used_by: list[str]

    @classmethod
    def from_profile(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            name=profile.name,
            description=profile.description,
            config=profile.config,
            devices=profile.devices,
            used_by=profile.used_by,
        )


class ExpandRequest(BaseModel):
    """Instance layer input: ordered profile names plus instance overrides."""
    profiles: list[str] = Field(default_factory=list)
    config: dict[str, str] = Field(default_factory=dict)
    devices: dict[str, dict[str, str]] = Field(default_factory=dict)


class ExpandResponse(BaseModel):
    config: dict[str, str]
    devices: dict[str, dict[str, str]]
