"""Repository modules for database access."""

from repositories.settings_repository import SettingsRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "SettingsRepository",
    "VoteRepository",
]
