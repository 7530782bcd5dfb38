"""
File operations for the browser-scoped store.

Provides:
- Atomic writes using temp file + rename
- Reads that treat a missing file as an absent value
- Directory listing and removal helpers
"""

import os
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


async def read_text(path: Path) -> str | None:
    """Read a text file.

    Args:
        path: Path to the file

    Returns:
        File content, or None if the file doesn't exist
    """
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageIOError("read", str(path), e) from e


async def write_text_atomic(path: Path, content: str) -> None:
    """Write a text file atomically using temp file + rename.

    Args:
        path: Target path
        content: Text to write
    """
    await ensure_directory(path.parent)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=".tmp_",
        suffix=".value",
    )
    try:
        os.close(fd)
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(content)
            await f.flush()
            os.fsync(f.fileno())

        # Atomic rename
        await aiofiles.os.rename(temp_path, path)
    except Exception as e:
        # Clean up temp file on error
        try:
            await aiofiles.os.remove(temp_path)
        except OSError:
            pass
        raise StorageIOError("write", str(path), e) from e


async def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Args:
        path: Path to remove

    Returns:
        True if file was removed, False if it didn't exist
    """
    try:
        await aiofiles.os.remove(path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        raise StorageIOError("remove", str(path), e) from e


async def list_files(path: Path, suffix: str) -> list[str]:
    """List file names in a directory ending with a suffix.

    Temp files left behind by interrupted writes are skipped.

    Args:
        path: Directory to list
        suffix: Required file name suffix

    Returns:
        List of matching file names
    """
    try:
        if not await aiofiles.os.path.exists(path):
            return []

        entries = await aiofiles.os.listdir(path)
        return [
            entry for entry in entries if entry.endswith(suffix) and not entry.startswith(".tmp_")
        ]
    except OSError as e:
        raise StorageIOError("list", str(path), e) from e
