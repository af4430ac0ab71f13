"""
SQLite implementation of the credential repository.

Uses aiosqlite for async operations. Can be replaced with any other
CredentialRepository implementation (e.g. a secrets manager).
"""

from datetime import datetime
from pathlib import Path

import aiosqlite

from bbs_common.models import Credentials
from bbs_common.repository import CredentialRepository


class SQLiteCredentialRepository(CredentialRepository):
    """
    SQLite-based credential storage implementation.

    Uses a single database file with two tables:
    - credentials: Username/secret pairs addressed by identifier
    - settings: Global notifier settings (host, default credentials)
    """

    def __init__(self, db_path: str = "bbs_notifier.db"):
        """
        Initialize the SQLite repository.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self.db_path)
        return self._connection

    async def initialize(self) -> None:
        """
        Create database tables if they don't exist.

        Schema:
        - credentials table: (id, username, secret, description, created_at)
        - settings table: (name, value)
        """
        conn = await self._get_connection()

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS credentials (
                id TEXT PRIMARY KEY,
                username TEXT NOT NULL,
                secret TEXT NOT NULL,
                description TEXT,
                created_at TEXT NOT NULL
            )
        """)

        await conn.execute("""
            CREATE TABLE IF NOT EXISTS settings (
                name TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

        await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def create_credentials(self, credentials: Credentials) -> None:
        """
        Store a new set of credentials.

        Args:
            credentials: Credentials object to persist

        Raises:
            aiosqlite.IntegrityError: If credentials with the same ID exist
        """
        conn = await self._get_connection()

        await conn.execute(
            """
            INSERT INTO credentials (id, username, secret, description, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                credentials.id,
                credentials.username,
                credentials.secret,
                credentials.description,
                credentials.created_at.isoformat(),
            ),
        )
        await conn.commit()

    async def get_credentials(self, credentials_id: str) -> Credentials | None:
        conn = await self._get_connection()

        cursor = await conn.execute(
            """
            SELECT id, username, secret, description, created_at
            FROM credentials
            WHERE id = ?
            """,
            (credentials_id,),
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        return self._row_to_credentials(row)

    async def list_credentials(self) -> list[Credentials]:
        conn = await self._get_connection()

        cursor = await conn.execute(
            """
            SELECT id, username, secret, description, created_at
            FROM credentials
            ORDER BY id
            """
        )
        rows = await cursor.fetchall()

        return [self._row_to_credentials(row) for row in rows]

    async def delete_credentials(self, credentials_id: str) -> bool:
        conn = await self._get_connection()

        cursor = await conn.execute(
            "DELETE FROM credentials WHERE id = ?", (credentials_id,)
        )
        await conn.commit()
        return cursor.rowcount > 0

    # Global settings methods

    async def get_setting(self, name: str) -> str | None:
        conn = await self._get_connection()

        cursor = await conn.execute(
            "SELECT value FROM settings WHERE name = ?", (name,)
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def set_setting(self, name: str, value: str | None) -> None:
        """
        Write a global setting, replacing any previous value.

        Args:
            name: Setting name
            value: New value, or None to remove the setting
        """
        conn = await self._get_connection()

        if value is None:
            await conn.execute("DELETE FROM settings WHERE name = ?", (name,))
        else:
            await conn.execute(
                """
                INSERT INTO settings (name, value) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET value = excluded.value
                """,
                (name, value),
            )
        await conn.commit()

    async def list_settings(self) -> dict[str, str]:
        conn = await self._get_connection()

        cursor = await conn.execute("SELECT name, value FROM settings ORDER BY name")
        rows = await cursor.fetchall()
        return {name: value for name, value in rows}

    @staticmethod
    def _row_to_credentials(row) -> Credentials:
        credentials_id, username, secret, description, created_at_str = row
        return Credentials(
            id=credentials_id,
            username=username,
            secret=secret,
            description=description,
            created_at=datetime.fromisoformat(created_at_str),
        )
