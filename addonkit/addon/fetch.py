"""
Git Fetch Operations.

This module provides the git-based fetcher used to stage addons.

Key features:
- Clone addon repositories into a staging directory
- Optional branch/tag pinning with ``<url>#<ref>``
- Shallow clones for pinned refs
"""

import logging
from pathlib import Path

from addonkit.core.process import CommandError, run_command
from addonkit.errors import FetchError

logger = logging.getLogger(__name__)


def parse_source_ref(source_ref: str) -> tuple[str, str | None]:
    """
    Split a source reference into repository URL and ref.

    Args:
        source_ref: Repository URL, optionally suffixed with ``#<ref>``

    Returns:
        Tuple of (url, ref)
    """
    if "#" in source_ref:
        url, ref = source_ref.rsplit("#", 1)
        return url, ref or None
    return source_ref, None


class GitFetcher:
    """Fetcher cloning addon sources with the git command line."""

    def __init__(self, git_command: str = "git", timeout: float | None = None):
        """
        Initialize GitFetcher.

        Args:
            git_command: git executable
            timeout: Seconds before a clone is killed (None waits forever)
        """
        self.git_command = git_command
        self.timeout = timeout

    def clone_command(self, source_ref: str, dest_dir: Path) -> list[str]:
        url, ref = parse_source_ref(source_ref)

        cmd = [self.git_command, "clone"]
        if ref:
            # Shallow clone of a specific branch or tag
            cmd.extend(["--branch", ref, "--depth", "1"])
        cmd.extend(["--", url, str(dest_dir)])
        return cmd

    async def clone(self, source_ref: str, dest_dir: Path) -> None:
        """
        Clone an addon repository.

        dest_dir may already exist as long as it is empty.

        Args:
            source_ref: Repository URL, optionally suffixed with ``#<ref>``
            dest_dir: Target directory

        Raises:
            FetchError: If the clone fails
        """
        logger.info("Cloning %s", source_ref)

        try:
            await run_command(self.clone_command(source_ref, dest_dir), timeout=self.timeout)
        except CommandError as e:
            raise FetchError(f"Failed to clone {source_ref}: {e}") from e
