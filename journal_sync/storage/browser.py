"""
Browser-scoped key-value store.

Fallback backend used when no native preference store is available.
Mirrors a browser's origin-scoped storage: every key is a small file
holding the raw string value, inside a single directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote, unquote

from .base import KeyValueBackend
from .file_ops import ensure_directory, list_files, read_text, remove_file, write_text_atomic

logger = logging.getLogger(__name__)

VALUE_SUFFIX = ".value"


class BrowserStorageBackend(KeyValueBackend):
    """File-per-key store.

    Directory structure:
    {base_path}/
      {quoted_key}.value
    """

    def __init__(self, base_path: Path) -> None:
        """Initialize the store.

        Args:
            base_path: Directory holding one file per key
        """
        self.base_path = Path(base_path)
        self._directory_ready = False

    def _key_file(self, key: str) -> Path:
        """Get the file path for a key."""
        return self.base_path / f"{quote(key, safe='')}{VALUE_SUFFIX}"

    async def set(self, key: str, value: str) -> None:
        if not self._directory_ready:
            await ensure_directory(self.base_path)
            self._directory_ready = True
        await write_text_atomic(self._key_file(key), value)
        logger.debug(f"Saved to browser storage: {key}")

    async def get(self, key: str) -> str | None:
        return await read_text(self._key_file(key))

    async def remove(self, key: str) -> None:
        if await remove_file(self._key_file(key)):
            logger.debug(f"Removed from browser storage: {key}")

    async def list_keys(self) -> set[str]:
        names = await list_files(self.base_path, VALUE_SUFFIX)
        return {unquote(name[: -len(VALUE_SUFFIX)]) for name in names}
