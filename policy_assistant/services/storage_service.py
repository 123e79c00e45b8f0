"""Local filesystem storage for uploaded documents."""

import asyncio
import os
import secrets
import time
from pathlib import Path

from policy_assistant.core.exceptions import AppError
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Stores uploaded bytes under a single upload directory."""

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)

    @staticmethod
    def unique_name(original_name: str) -> str:
        """Build ``document-<epoch ms>-<random><ext>`` for an upload."""
        extension = os.path.splitext(original_name or "")[1]
        return f"document-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"

    async def save(self, original_name: str, content: bytes) -> str:
        """Write ``content`` under a fresh unique name.

        Returns:
            Path of the stored file

        Raises:
            AppError: If the file cannot be written
        """
        path = self.upload_dir / self.unique_name(original_name)
        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            LOGGER.error(f"Error storing upload {original_name}: {str(e)}", exc_info=True)
            raise AppError(f"Storage upload error: {str(e)}", original_error=e)

        LOGGER.info(
            f"File stored: filename={original_name}, path={path}",
            extra={"size": len(content)},
        )
        return str(path)

    async def delete(self, file_path: str) -> bool:
        """Remove a stored file.

        A file that is already gone is logged and reported as False.
        """
        try:
            await asyncio.to_thread(os.remove, file_path)
            return True
        except FileNotFoundError:
            LOGGER.warning(f"Stored file already missing: {file_path}")
            return False
        except OSError as e:
            LOGGER.error(f"Error deleting stored file {file_path}: {str(e)}", exc_info=True)
            return False

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
