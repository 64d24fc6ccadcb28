"""Profile Patch — in-memory merge used to express partial updates as a full replace.

Invariants:
    - Pure: returns new dicts, never mutates the current profile
    - Config merges key by key; a patched empty value unsets the key once stored
    - Devices merge whole by name; devices absent from the patch are kept
"""

from profilekit.core.domain_types import ConfigMap, DeviceMap


def merge_config(current: ConfigMap, patch: ConfigMap) -> ConfigMap:
    merged = dict(current)
    merged.update(patch)
    return merged


def merge_devices(current: DeviceMap, patch: DeviceMap) -> DeviceMap:
    merged = {name: dict(device) for name, device in current.items()}
    for name, device in patch.items():
        merged[name] = dict(device)
    return merged
