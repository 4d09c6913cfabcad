"""Database module."""

from db.session import check_connection, close_db, get_db, init_db

__all__ = ["get_db", "init_db", "close_db", "check_connection"]
