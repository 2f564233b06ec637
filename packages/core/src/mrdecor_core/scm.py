"""Map a source line to the commit that last touched it."""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_UNCOMMITTED_SHA = "0" * 40
_BLAME_TIMEOUT = 30


class BaseScm(ABC):
    @abstractmethod
    def changeset_for_line(self, path: str, line: int) -> str | None:
        """Return the revision that introduced ``line`` of ``path``, or None if unknown."""


class GitBlameScm(BaseScm):
    def __init__(self, repo_root: str = "."):
        self.repo_root = repo_root

    def changeset_for_line(self, path: str, line: int) -> str | None:
        try:
            result = subprocess.run(
                ["git", "blame", "--porcelain", "-L", f"{line},{line}", "--", path],
                cwd=self.repo_root,
                capture_output=True,
                text=True,
                timeout=_BLAME_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("git blame failed for %s:%d: %s", path, line, e)
            return None

        if result.returncode != 0:
            logger.debug("git blame exited %d for %s:%d: %s", result.returncode, path, line, result.stderr.strip())
            return None

        header = result.stdout.split("\n", 1)[0].split()
        if not header:
            return None
        sha = header[0]
        if sha == _UNCOMMITTED_SHA:
            return None
        return sha
