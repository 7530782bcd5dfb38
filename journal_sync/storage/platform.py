"""
Platform capability probes.

A probe answers one question: is a native preference store available on
this device, or must storage fall back to a browser-scoped store? The
answer is consumed once per process by the backend selector and the
paginated view.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod

NATIVE = "native"
BROWSER = "browser"


class PlatformProbe(ABC):
    """Abstract platform capability probe."""

    @abstractmethod
    def is_native(self) -> bool:
        """Return True when running inside a native app shell."""
        ...


class StaticPlatformProbe(PlatformProbe):
    """Probe with a fixed answer, for embedding apps and tests."""

    def __init__(self, native: bool):
        self._native = native

    def is_native(self) -> bool:
        return self._native


class EnvironmentPlatformProbe(PlatformProbe):
    """Probe reading JOURNAL_SYNC_PLATFORM from the environment.

    "native" selects the preference store; anything else (or unset)
    selects the browser-scoped store. An explicit override wins over
    the environment.
    """

    ENV_VAR = "JOURNAL_SYNC_PLATFORM"

    def __init__(self, override: str | None = None):
        self.override = override

    def is_native(self) -> bool:
        value = self.override or os.environ.get(self.ENV_VAR, BROWSER)
        return value.strip().lower() == NATIVE
