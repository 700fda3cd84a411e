"""Manifest writer - all-or-nothing writes of the generated compose file."""

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class ManifestWriter:
    """Writes text through a temp file in the target directory and ``os.replace``.

    A failure or interrupt at any point leaves the previous file untouched.
    """

    def __init__(self, fsync: bool = True):
        self.fsync = fsync

    def write(self, path: Path, text: str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(text)
                handle.flush()
                if self.fsync:
                    os.fsync(handle.fileno())
            if path.exists():
                os.chmod(tmp_path, path.stat().st_mode & 0o777)
            else:
                os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.info(f"Wrote {path} ({len(text)} bytes)")
        return path
