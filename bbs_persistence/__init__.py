"""
BBS Persistence module.

This module contains the database implementation for credential and
settings storage. Currently supports SQLite.

The persistence layer depends on bbs_common for domain models and
interfaces, and is used by both CLIs.
"""

from .sqlite_repository import SQLiteCredentialRepository

__all__ = ["SQLiteCredentialRepository"]
