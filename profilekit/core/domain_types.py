"""Domain Types — identity types, enums and the Profile value object.

Invariants:
    - ProfileId wraps the surrogate integer key — never use a bare int in domain logic
    - DEFAULT_PROJECT always has profiles enabled and is never redirected
    - Profile.used_by is derived on read, never stored

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - InstanceType values match the integer stored in instances.type
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ProfileId = NewType("ProfileId", int)
ProjectId = NewType("ProjectId", int)

DEFAULT_PROJECT = "default"
DEFAULT_PROFILE = "default"


# ─── Value Types ─────────────────────────────────────────────────

ConfigMap = dict[str, str]
DeviceMap = dict[str, dict[str, str]]

# Stored in profiles_devices.type rather than as a config row
DEVICE_TYPE_KEY = "type"


# ─── Enums ───────────────────────────────────────────────────────

class InstanceType(int, Enum):
    """Instance kinds as stored in instances.type."""
    CONTAINER = 0
    VIRTUAL_MACHINE = 1


# Kinds reported by the usage scan
PRIMARY_INSTANCE_TYPES: tuple[InstanceType, ...] = (InstanceType.CONTAINER,)


@dataclass
class Profile:
    """A named bundle of config and devices, scoped to a project."""
    id: ProfileId
    project: str
    name: str
    description: str = ""
    config: ConfigMap = field(default_factory=dict)
    devices: DeviceMap = field(default_factory=dict)
    used_by: list[str] = field(default_factory=list)
