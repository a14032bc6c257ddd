"""Atomic file sink for Prometheus file-based service discovery."""

from __future__ import annotations

import logging
import os
import tempfile

from ..exceptions import PublishError

logger = logging.getLogger(__name__)

FILE_MODE = 0o644


class FileTarget:
    """Writes target groups to a file via temp file + fsync + rename in the same directory."""

    def __init__(self, path: str):
        self.path = path

    def write(self, payload: bytes) -> None:
        directory, name = os.path.split(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{name}.")
        except OSError as exc:
            raise PublishError(f"Error creating temp file: {exc}") from exc

        step = "writing temp file"
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                step = "syncing temp file"
                os.fsync(handle.fileno())
                step = "closing temp file"
            step = "setting temp file permissions"
            os.chmod(tmp_path, FILE_MODE)
            step = "renaming temp file"
            os.replace(tmp_path, self.path)
        except OSError as exc:
            _remove_quietly(tmp_path)
            raise PublishError(f"Error {step} for {self.path}: {exc}") from exc

        logger.debug("Wrote %d bytes to %s", len(payload), self.path, extra={"sink": f"file:{self.path}"})


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.debug("Could not remove temp file %s", path, exc_info=True)
