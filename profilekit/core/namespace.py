"""Namespace Rule — decides which project a profile query actually runs against.

Invariants:
    - Pure function: the capability flag is read by the caller (services/namespace_resolver.py)
    - The default project is never redirected, so resolution always terminates
"""

from profilekit.core.domain_types import DEFAULT_PROJECT


def effective_project(requested: str, profiles_enabled: bool) -> str:
    """Return the project whose profiles apply to `requested`.

    A project without its own profiles shares the ones of the default project.
    """
    if requested == DEFAULT_PROJECT or profiles_enabled:
        return requested
    return DEFAULT_PROJECT
