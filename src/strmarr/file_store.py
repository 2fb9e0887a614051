"""Filesystem access for .strm artifacts.

This module provides the FileStore class, the only component that touches the
media library's filesystem. All operations are async via aiofiles and wrap
OS-level failures in FileOperationError.
"""

import fnmatch
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from .exceptions import FileOperationError

logger = logging.getLogger(__name__)


class FileStore:
    """Create, inspect and remove artifact files.

    Writes go through a temporary sibling file followed by an atomic rename,
    so a crash never leaves a half-written artifact behind.
    """

    async def exists(self, path: Path) -> bool:
        """Check whether a regular file exists at ``path``.

        Args:
            path: File path to check.

        Returns:
            True if the path is an existing regular file.

        Raises:
            FileOperationError: If the check itself fails.
        """
        try:
            return await aiofiles.os.path.isfile(path)
        except OSError as e:
            raise FileOperationError(
                "Failed to check if file exists.", file_name=str(path)
            ) from e

    async def create_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents.

        Args:
            path: Directory to create.

        Raises:
            FileOperationError: If the directory cannot be created.
        """
        try:
            await aiofiles.os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise FileOperationError(
                "Failed to create directory.", file_name=str(path)
            ) from e

    async def write_text(self, path: Path, content: str) -> None:
        """Write ``content`` to ``path``, replacing any existing file.

        Args:
            path: Destination file path.
            content: Text to write.

        Raises:
            FileOperationError: If the file cannot be written.
        """
        tmp_path = path.with_name(f".{path.name}.tmp")
        log_params = {"file_path": str(path)}
        logger.debug("Writing file.", extra=log_params)
        try:
            async with aiofiles.open(tmp_path, mode="w", encoding="utf-8") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            try:
                if await aiofiles.os.path.exists(tmp_path):
                    await aiofiles.os.remove(tmp_path)
            except OSError:
                logger.warning("Failed to clean up temporary file.", extra=log_params)
            raise FileOperationError(
                "Failed to write file.", file_name=str(path)
            ) from e

    async def delete(self, path: Path) -> bool:
        """Delete the file at ``path`` if it exists.

        Args:
            path: File to delete.

        Returns:
            True if a file was deleted, False if there was nothing to delete.

        Raises:
            FileOperationError: If the file exists but cannot be deleted.
        """
        if not await self.exists(path):
            return False
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FileOperationError(
                "Failed to delete file.", file_name=str(path)
            ) from e
        logger.debug("File deleted.", extra={"file_path": str(path)})
        return True

    async def list_files(self, directory: Path, pattern: str = "*") -> list[Path]:
        """List regular files in ``directory`` whose names match ``pattern``.

        Args:
            directory: Directory to list (non-recursive).
            pattern: fnmatch-style name pattern.

        Returns:
            Sorted matching file paths; empty if the directory does not exist.

        Raises:
            FileOperationError: If the directory cannot be listed.
        """
        try:
            if not await aiofiles.os.path.isdir(directory):
                return []
            names = await aiofiles.os.listdir(directory)
        except OSError as e:
            raise FileOperationError(
                "Failed to list directory.", file_name=str(directory)
            ) from e

        matches: list[Path] = []
        for name in sorted(names):
            if not fnmatch.fnmatchcase(name, pattern):
                continue
            candidate = directory / name
            if await self.exists(candidate):
                matches.append(candidate)
        return matches
