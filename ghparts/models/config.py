"""
Configuration models for ghparts downloads.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DownloadConfig:
    """
    Unified configuration for a download run.

    Passed explicitly into the service, executor and orchestrator; defaults
    are resolved once where the facade builds its collaborators.
    """

    # Concurrency and retry settings
    max_concurrent_downloads: int = 4
    max_retries: int = 2  # 3 attempts in total
    retry_base_delay: float = 0.5
    retry_max_delay: float = 8.0
    timeout: float = 30.0

    # File handling settings
    overwrite_existing: bool = True
    nest_requested_dir: bool = False

    # Endpoints
    api_base_url: str = "https://api.github.com"
    raw_base_url: str = "https://raw.githubusercontent.com"
    archive_base_url: str = "https://codeload.github.com"
    clone_base_url: str = "https://github.com"
    user_agent: str = "ghparts/0.1"

    def __post_init__(self) -> None:
        if self.max_concurrent_downloads <= 0:
            raise ValueError("max_concurrent_downloads must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


__all__ = [
    "DownloadConfig",
]
