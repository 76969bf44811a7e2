"""Removal of intermediate files."""

import logging
from pathlib import Path

log = logging.getLogger(__name__)


def remove_files(*paths: Path | None) -> None:
    """Delete the given files, ignoring ones that are already gone.

    Failures are logged and never raised, so this is safe to call from
    ``finally`` blocks and safe to call twice.
    """
    for path in paths:
        if path is None:
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("Failed to delete %s: %s", path, exc)
        else:
            log.debug("Deleted file: %s", path)
