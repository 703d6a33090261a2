"""Repository protocol definitions (interfaces)."""

from cryptovault.repositories.protocols.entry_repo import EntryRepository
from cryptovault.repositories.protocols.grant_repo import GrantRepository
from cryptovault.repositories.protocols.profile_repo import ProfileRepository
from cryptovault.repositories.protocols.kv_repo import KeyValueRepository

__all__ = [
    "EntryRepository",
    "GrantRepository",
    "ProfileRepository",
    "KeyValueRepository",
]
