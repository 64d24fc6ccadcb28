"""Config Expansion — layers ordered profiles and instance overrides into one effective map.

Invariants:
    - Pure and total: no IO, no validation, never raises on well-typed input
    - Profiles are applied in the order given; a later profile overwrites an earlier one
    - The instance layer is applied last and wins over every profile
    - Devices are replaced whole by name (no per-key merge inside a device)
    - Empty values are passed through as given (the store never persists them)
    - Inputs are never mutated; results never alias an input device map

Design Decisions:
    - Profile ordering is the caller's contract (instances_profiles.apply_order)
"""

from typing import Iterable

from profilekit.core.domain_types import ConfigMap, DeviceMap, Profile


def expand_instance_config(
    config: ConfigMap, profiles: Iterable[Profile],
) -> ConfigMap:
    """Expand the instance config with the config of the given profiles."""
    expanded: ConfigMap = {}
    for profile in profiles:
        expanded.update(profile.config)
    expanded.update(config)
    return expanded


def expand_instance_devices(
    devices: DeviceMap, profiles: Iterable[Profile],
) -> DeviceMap:
    """Expand the instance devices with the devices defined in the given profiles."""
    expanded: DeviceMap = {}
    for profile in profiles:
        for name, device in profile.devices.items():
            expanded[name] = dict(device)
    for name, device in devices.items():
        expanded[name] = dict(device)
    return expanded
