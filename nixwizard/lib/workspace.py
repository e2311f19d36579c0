"""Temporary working directory for a wizard run."""

from __future__ import annotations

import logging
import shutil
import signal
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

logger = logging.getLogger(__name__)

__all__ = ["working_directory"]


def _raise_exit(signum: int, frame: Any) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def working_directory(prefix: str = "nixwizard-") -> Iterator[Path]:
    """Create a scratch directory that is removed on every exit path.

    SIGTERM is turned into ``SystemExit`` while the block runs so a killed
    wizard still cleans up; Ctrl-C already raises ``KeyboardInterrupt``.

    Yields:
        Path of the created directory
    """
    path = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug("Created working directory %s", path)

    previous = None
    try:
        previous = signal.signal(signal.SIGTERM, _raise_exit)
    except ValueError:
        # signal handlers can only be installed from the main thread
        logger.debug("Not in main thread; SIGTERM handler not installed")

    try:
        yield path
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
        shutil.rmtree(path, ignore_errors=True)
        logger.debug("Removed working directory %s", path)
