"""
Local persistence of downloaded content.
"""

import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from ..core.materializer import PathMaterializer
from ..infrastructure.error_handler import FilesystemError
from ..infrastructure.logger import logger


class DownloadService:
    """Writes fetched bytes to disk so that readers only ever see complete files."""

    def __init__(self, materializer: Optional[PathMaterializer] = None):
        self.materializer = materializer or PathMaterializer()

    async def ensure_directory(self, path: Path) -> Path:
        return self.materializer.ensure_dir(path)

    async def save_content(self, content: bytes, target_path: Path) -> int:
        """
        Atomically write ``content`` to ``target_path``.

        The bytes go to a temporary sibling first and are renamed into place,
        so an interrupted write never leaves a partial file under the final
        name.

        Args:
            content: File bytes
            target_path: Final location

        Returns:
            Number of bytes written

        Raises:
            FilesystemError: Writing or renaming failed
        """

        target_path = Path(target_path)
        await self.ensure_directory(target_path.parent)

        temp_path = target_path.parent / f".{uuid.uuid4().hex}.part"
        try:
            async with aiofiles.open(temp_path, 'wb') as f:
                await f.write(content)
            os.replace(temp_path, target_path)

        except OSError as e:
            self._discard(temp_path)
            raise FilesystemError(f"Cannot write {target_path}", e) from e

        except BaseException:
            # Cancellation mid-write: drop the partial file, keep propagating
            self._discard(temp_path)
            raise

        logger.debug(f"Wrote {len(content)} bytes to {target_path}")
        return len(content)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            logger.debug(f"Could not remove temporary file {path}: {e}")


__all__ = [
    "DownloadService",
]
