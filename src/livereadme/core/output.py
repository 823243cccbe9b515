"""
Document output.

The generated document is written to a temporary file in the target
directory and moved into place, so an interrupted run never leaves a
truncated file behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def write_atomic(path: Path | str, content: str) -> Path:
    """Replace ``path`` with ``content`` atomically.

    Args:
        path: Destination file
        content: Full document text

    Returns:
        The destination path

    Raises:
        OSError: If the file cannot be written or moved into place
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    logger.info("Wrote %s (%d characters)", path, len(content))
    return path
