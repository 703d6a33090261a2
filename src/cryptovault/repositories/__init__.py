"""Repository layer - data access abstractions and implementations."""

from cryptovault.repositories.protocols import (
    EntryRepository,
    GrantRepository,
    ProfileRepository,
    KeyValueRepository,
)

__all__ = [
    "EntryRepository",
    "GrantRepository",
    "ProfileRepository",
    "KeyValueRepository",
]
