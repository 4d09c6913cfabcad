"""Database models module."""

from models.setting import Setting
from models.vote import Vote

__all__ = [
    "Setting",
    "Vote",
]
