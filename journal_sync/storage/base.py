"""
Abstract key-value storage interface.

Defines the contract that every local backend must implement,
plus the configuration shared by the backends and the remote client.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DATA_DIR = Path.home() / ".journal-sync"


@dataclass
class StorageConfig:
    """Configuration for local storage and the remote entry API.

    Configuration can be provided directly, via environment variables,
    or via a YAML settings file.

    Environment Variables:
        JOURNAL_SYNC_DATA_DIR: Directory holding local data (default: ~/.journal-sync)
        JOURNAL_SYNC_DATABASE: SQLite file name for the native store (default: preferences.db)
        JOURNAL_SYNC_PLATFORM: Force "native" or "browser" backend selection
        JOURNAL_SYNC_API_URL: Base URL of the remote entry API
        JOURNAL_SYNC_API_TOKEN: Bearer token for the remote entry API
        JOURNAL_SYNC_TIMEOUT: Request timeout in seconds (default: 30)
        JOURNAL_SYNC_PAGE_SIZE: Entries per page in paginated views (default: 30)

    Attributes:
        data_dir: Directory holding the local stores
        database_name: File name of the native preference database
        platform: Optional platform override ("native" or "browser")
        api_base_url: Remote entry API base URL
        api_token: Remote entry API bearer token
        request_timeout: Remote request timeout in seconds
        page_size: Page size for paginated views
    """

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    database_name: str = "preferences.db"
    platform: str | None = None
    api_base_url: str | None = None
    api_token: str | None = None
    request_timeout: float = 30.0
    page_size: int = 30

    # Additional options
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def database_path(self) -> Path:
        """Path of the native preference database."""
        return Path(self.data_dir) / self.database_name

    @property
    def browser_storage_dir(self) -> Path:
        """Directory of the browser-scoped store."""
        return Path(self.data_dir) / "local-storage"

    @classmethod
    def from_environment(cls) -> StorageConfig:
        """Create configuration from environment variables."""
        data_dir = os.environ.get("JOURNAL_SYNC_DATA_DIR")
        return cls(
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            database_name=os.environ.get("JOURNAL_SYNC_DATABASE", "preferences.db"),
            platform=os.environ.get("JOURNAL_SYNC_PLATFORM") or None,
            api_base_url=os.environ.get("JOURNAL_SYNC_API_URL"),
            api_token=os.environ.get("JOURNAL_SYNC_API_TOKEN"),
            request_timeout=float(os.environ.get("JOURNAL_SYNC_TIMEOUT", "30")),
            page_size=int(os.environ.get("JOURNAL_SYNC_PAGE_SIZE", "30")),
        )

    @classmethod
    def from_file(cls, path: Path) -> StorageConfig:
        """Create configuration from a YAML settings file.

        ```yaml
        storage:
          data_dir: ~/.journal-sync
          platform: browser
        api:
          base_url: https://journal.example.com
          token: "..."
          timeout: 15
        view:
          page_size: 30
        ```

        Missing sections fall back to defaults.
        """
        content = Path(path).read_text()
        settings = yaml.safe_load(content) or {}

        storage = settings.get("storage", {})
        api = settings.get("api", {})
        view = settings.get("view", {})

        data_dir = storage.get("data_dir")
        return cls(
            data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
            database_name=storage.get("database", "preferences.db"),
            platform=storage.get("platform"),
            api_base_url=api.get("base_url"),
            api_token=api.get("token"),
            request_timeout=float(api.get("timeout", 30)),
            page_size=int(view.get("page_size", 30)),
        )


class KeyValueBackend(ABC):
    """Abstract interface for asynchronous string key-value stores.

    Implementations raise StorageIOError when the underlying medium fails
    and never retry or swallow errors.
    """

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous value for the key."""
        ...

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        ...

    @abstractmethod
    async def list_keys(self) -> set[str]:
        """Return every key currently stored."""
        ...

    async def close(self) -> None:
        """Release resources held by the backend."""
        pass
