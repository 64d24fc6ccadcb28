"""profilekit — project-scoped instance profiles and config expansion.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
