"""Reconcile report paths with the files actually checked out on disk.

Some analysers (multi-module Maven/Gradle builds in particular) write paths
relative to the module rather than to the repository root. When the path from
the report does not exist under the source directory, we look for a file
whose path ends with it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

_SKIP_DIRS = {".git"}


class PathResolver(Protocol):
    def resolve(self, normalized_path: str) -> str | None:
        """Return the repository-relative path on disk, or None if not found."""
        ...


class SourceTreeResolver:
    def __init__(self, source_dir: str | os.PathLike = "."):
        self.source_dir = Path(source_dir)

    def resolve(self, normalized_path: str) -> str | None:
        relative = normalized_path.lstrip("/")
        if not relative:
            return None
        if (self.source_dir / relative).is_file():
            return normalized_path

        suffix = "/" + relative
        candidates = []
        for dirpath, dirnames, filenames in os.walk(self.source_dir):
            dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
            rel_dir = Path(dirpath).relative_to(self.source_dir).as_posix()
            for name in filenames:
                candidate = f"/{name}" if rel_dir == "." else f"/{rel_dir}/{name}"
                if candidate.endswith(suffix):
                    candidates.append(candidate)

        if not candidates:
            logger.debug("No file under %s matches %s", self.source_dir, normalized_path)
            return None

        candidates.sort()
        if len(candidates) > 1:
            logger.warning(
                "%d files under %s match %s; using %s",
                len(candidates),
                self.source_dir,
                normalized_path,
                candidates[0],
            )
        return candidates[0]
