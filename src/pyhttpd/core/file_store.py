"""
=============================================================================
FILE STORE
=============================================================================

Byte-level file access under the serving directory, used by the
/files/{name} endpoint.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        FileStore                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   is_available()  →  does the serving directory exist right now?   │
    │   read(name)      →  bytes            (FileNotFoundError, OSError)  │
    │   write(name, b)  →  None             (OSError)                     │
    │                                                                     │
    │   Every name is resolved against the root and must stay inside it. │
    │   "../etc/passwd", "/etc/passwd" and names with NUL bytes raise     │
    │   PathTraversalError before the filesystem is touched.              │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

CONCURRENCY
-----------
Connection threads may write the same name at the same moment. Writes to
one resolved path are serialized with a per-path lock, so the file ends
up holding exactly one writer's bytes (whoever went last). A path's lock
is dropped once no writer holds or waits on it. Reads are not locked: a
read racing a write may see the old or the new content.

=============================================================================
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)


class PathTraversalError(ValueError):
    """Raised when a file name resolves outside the serving directory."""


class FileStore:
    """
    Reads and writes files inside a single root directory.

    The root is not required to exist at construction time. The files
    endpoint asks is_available() on every request, so a directory that
    appears (or disappears) while the server runs is picked up.

    Args:
        root: The serving directory. None means "not configured".
    """

    def __init__(self, root: Optional[str]):
        self.root = Path(root).resolve() if root else None
        # path -> [lock, number of writers holding or waiting]
        self._locks: Dict[Path, List] = {}
        self._locks_guard = threading.Lock()

    def is_available(self) -> bool:
        """True when a root is configured and is an existing directory."""
        return self.root is not None and self.root.is_dir()

    def read(self, name: str) -> bytes:
        """
        Read a file's bytes.

        Raises:
            PathTraversalError: The name escapes the root.
            FileNotFoundError: No such file.
            OSError: Anything else the filesystem reports.
        """
        path = self._resolve(name)
        logger.debug(f"Reading {path}")
        return path.read_bytes()

    def write(self, name: str, data: bytes) -> None:
        """
        Create or replace a file with ``data``.

        Parent directories are not created; writing into a missing
        subdirectory fails with OSError.

        Raises:
            PathTraversalError: The name escapes the root.
            OSError: The write failed.
        """
        path = self._resolve(name)
        with self._locked(path):
            logger.debug(f"Writing {len(data)} bytes to {path}")
            path.write_bytes(data)

    @contextmanager
    def _locked(self, path: Path):
        with self._locks_guard:
            entry = self._locks.setdefault(path, [threading.Lock(), 0])
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[path]

    def _resolve(self, name: str) -> Path:
        if self.root is None:
            raise FileNotFoundError("No serving directory configured")

        if "\x00" in name:
            raise PathTraversalError("NUL byte in file name")

        path = (self.root / name).resolve()
        try:
            path.relative_to(self.root)
        except ValueError:
            raise PathTraversalError(f"Path escapes serving directory: {name}")

        if path == self.root:
            raise PathTraversalError(f"Name resolves to the serving directory: {name}")

        return path
