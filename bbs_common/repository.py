"""
Abstract repository interface for credential and settings persistence.

This module defines the contract that any credential store must follow,
allowing easy swapping between SQLite, a secrets manager, etc.
"""

from abc import ABC, abstractmethod

from .models import Credentials


class CredentialRepository(ABC):
    """
    Abstract base class for credential and global settings storage.

    Implementations handle their own connection management.
    """

    @abstractmethod
    async def create_credentials(self, credentials: Credentials) -> None:
        """
        Store a new set of credentials.

        Args:
            credentials: Credentials object to persist

        Raises:
            Exception: If credentials with the same ID already exist
        """
        pass

    @abstractmethod
    async def get_credentials(self, credentials_id: str) -> Credentials | None:
        """
        Retrieve credentials by their identifier.

        Args:
            credentials_id: Identifier the credentials were stored under

        Returns:
            Credentials object if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_credentials(self) -> list[Credentials]:
        """
        List all stored credentials.

        Returns:
            List of Credentials objects
        """
        pass

    @abstractmethod
    async def delete_credentials(self, credentials_id: str) -> bool:
        """
        Delete credentials by identifier.

        Args:
            credentials_id: Identifier of the credentials to delete

        Returns:
            True if credentials were deleted, False if they did not exist
        """
        pass

    # Global settings methods

    @abstractmethod
    async def get_setting(self, name: str) -> str | None:
        """
        Read a global setting.

        Args:
            name: Setting name (e.g. "bitbucket_host")

        Returns:
            Stored value, or None if the setting was never written
        """
        pass

    @abstractmethod
    async def set_setting(self, name: str, value: str | None) -> None:
        """
        Write a global setting. A value of None removes it.

        Args:
            name: Setting name
            value: New value
        """
        pass

    @abstractmethod
    async def list_settings(self) -> dict[str, str]:
        """
        Return all global settings.

        Returns:
            Mapping of setting name to value
        """
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the store (create tables, etc.).

        Called once before first use.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close connections and cleanup resources.
        """
        pass
