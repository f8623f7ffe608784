"""
Idempotent creation of local directory structure.
"""

import os
from pathlib import Path
from typing import Union

from ..infrastructure.error_handler import FilesystemError


class PathMaterializer:
    """Creates directories so that concurrent workers never trip over each other."""

    @staticmethod
    def ensure_dir(path: Union[str, Path]) -> Path:
        """
        Create ``path`` and any missing ancestors.

        "Already exists" is success, including when another worker created the
        directory between our check and our mkdir.

        Raises:
            FilesystemError: Creation failed for any other reason, or a
                non-directory occupies the path
        """

        path = Path(path)
        try:
            os.makedirs(path, exist_ok=True)
        except FileExistsError as e:
            # exist_ok still raises when a component exists but is not a directory
            if not path.is_dir():
                raise FilesystemError(f"Cannot create directory {path}: a file is in the way", e) from e
        except OSError as e:
            raise FilesystemError(f"Cannot create directory {path}", e) from e
        return path


__all__ = [
    "PathMaterializer",
]
