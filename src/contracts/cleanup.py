from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_advisory(path: Path) -> bool:
    """
    Advisory cleanup: remove a transient file or directory tree.

    Cleanup never fails the operation it follows. A failure is logged and
    reported through the return value (True when nothing is left behind).
    """

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning("advisory cleanup failed for %s: %s", path, e)
        return False
