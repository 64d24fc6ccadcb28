"""Row Canonicalization — maps config/device dicts to and from their stored row shape.

Invariants:
    - Empty-string values mean "unset" and never produce a row
    - A device's `type` key lives in profiles_devices.type, every other key in
      profiles_devices_config
    - to_rows → from_rows returns the input minus empty values
"""

from profilekit.core.domain_types import ConfigMap, DEVICE_TYPE_KEY


def config_rows(config: ConfigMap) -> list[tuple[str, str]]:
    """Key/value pairs worth storing, in key order."""
    return [(k, v) for k, v in sorted(config.items()) if v != ""]


def split_device(device: ConfigMap) -> tuple[str | None, list[tuple[str, str]]]:
    """Split a device map into its type column and its config rows."""
    device_type = device.get(DEVICE_TYPE_KEY) or None
    rows = [
        (k, v) for k, v in config_rows(device) if k != DEVICE_TYPE_KEY
    ]
    return device_type, rows


def join_device(device_type: str | None, rows: list[tuple[str, str]]) -> ConfigMap:
    """Rebuild a device map from its stored type and config rows."""
    device = dict(rows)
    if device_type:
        device[DEVICE_TYPE_KEY] = device_type
    return device
