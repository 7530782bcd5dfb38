"""
Local key-value storage backends.

Provides a native preference store (SQLite) and a browser-scoped
file store behind one asynchronous contract, with a selector that
picks between them once per process.

Example:
    >>> from journal_sync.storage import BackendSelector, StorageConfig, StaticPlatformProbe
    >>> config = StorageConfig(data_dir=Path("/tmp/journal"))
    >>> storage = BackendSelector.from_config(config, StaticPlatformProbe(native=True))
    >>> await storage.set("key", "value")
"""

from .base import KeyValueBackend, StorageConfig
from .browser import BrowserStorageBackend
from .platform import EnvironmentPlatformProbe, PlatformProbe, StaticPlatformProbe
from .preferences import PreferencesBackend
from .selector import BackendSelector

__all__ = [
    # Configuration
    "StorageConfig",
    # Contract and implementations
    "KeyValueBackend",
    "PreferencesBackend",
    "BrowserStorageBackend",
    "BackendSelector",
    # Platform probes
    "PlatformProbe",
    "StaticPlatformProbe",
    "EnvironmentPlatformProbe",
]
