"""
Storage backend selection.

Chooses, once and lazily, between the native preference store and the
browser-scoped store, and exposes the chosen backend through the uniform
KeyValueBackend contract.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .base import KeyValueBackend, StorageConfig
from .browser import BrowserStorageBackend
from .platform import EnvironmentPlatformProbe, PlatformProbe
from .preferences import PreferencesBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], KeyValueBackend]


class BackendSelector(KeyValueBackend):
    """Lazily selected, memoized key-value backend.

    The platform probe is consulted on the first storage call only; every
    later call reuses the same backend for the lifetime of this object.
    Errors raised by the selected backend propagate unchanged.

    Example:
        >>> selector = BackendSelector.from_config(StorageConfig.from_environment())
        >>> await selector.set("greeting", "hello")
        >>> await selector.get("greeting")
        'hello'
    """

    def __init__(
        self,
        probe: PlatformProbe,
        native_factory: BackendFactory,
        browser_factory: BackendFactory,
    ) -> None:
        """Initialize the selector.

        Args:
            probe: Platform capability probe, consulted once
            native_factory: Builds the native preference backend
            browser_factory: Builds the browser-scoped backend
        """
        self.probe = probe
        self._native_factory = native_factory
        self._browser_factory = browser_factory
        self._backend: KeyValueBackend | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: StorageConfig,
        probe: PlatformProbe | None = None,
    ) -> BackendSelector:
        """Create a selector wired to the default backends.

        Args:
            config: Storage configuration
            probe: Platform probe (defaults to the environment probe,
                honoring config.platform as an override)
        """
        return cls(
            probe=probe or EnvironmentPlatformProbe(config.platform),
            native_factory=lambda: PreferencesBackend(config.database_path),
            browser_factory=lambda: BrowserStorageBackend(config.browser_storage_dir),
        )

    @property
    def selected(self) -> KeyValueBackend | None:
        """The chosen backend, or None before first access."""
        return self._backend

    async def backend(self) -> KeyValueBackend:
        """Return the backend, selecting it on first call."""
        if self._backend is not None:
            return self._backend

        async with self._lock:
            if self._backend is None:
                if self.probe.is_native():
                    logger.info("Using native preference store for local storage")
                    self._backend = self._native_factory()
                else:
                    logger.info("Using browser-scoped store for local storage")
                    self._backend = self._browser_factory()
        return self._backend

    async def set(self, key: str, value: str) -> None:
        await (await self.backend()).set(key, value)

    async def get(self, key: str) -> str | None:
        return await (await self.backend()).get(key)

    async def remove(self, key: str) -> None:
        await (await self.backend()).remove(key)

    async def list_keys(self) -> set[str]:
        return await (await self.backend()).list_keys()

    async def close(self) -> None:
        """Close the selected backend, if any. Selection is kept."""
        if self._backend is not None:
            await self._backend.close()
