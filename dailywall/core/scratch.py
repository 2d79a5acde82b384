# dailywall/core/scratch.py
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_scratch_dir(scratch_dir: Path) -> bool:
    """Creates the scratch directory if it doesn't exist."""
    try:
        scratch_dir.mkdir(parents=True, exist_ok=True)
        return True
    except OSError as e:
        logger.error(f"Error creating scratch directory {scratch_dir}: {e}")
        return False


def is_safe_scratch_dir(scratch_dir: Path) -> bool:
    """
    Checks that the scratch directory is a real directory owned by us.

    A symlink (or a directory another user created) could point the cleanup
    at files that have nothing to do with wallpapers.
    """
    if scratch_dir.is_symlink():
        logger.error(f"Scratch directory {scratch_dir} is a symlink. Refusing to use it.")
        return False
    try:
        st = scratch_dir.lstat()
    except OSError as e:
        logger.error(f"Cannot stat scratch directory {scratch_dir}: {e}")
        return False
    if not scratch_dir.is_dir():
        logger.error(f"Scratch directory {scratch_dir} is not a directory.")
        return False
    if hasattr(os, "getuid") and st.st_uid != os.getuid():
        logger.error(f"Scratch directory {scratch_dir} is owned by uid {st.st_uid}, not us. Refusing to use it.")
        return False
    return True


def list_artifacts(scratch_dir: Path) -> list[Path]:
    """Returns the entries currently in the scratch directory, sorted by name."""
    if not scratch_dir.is_dir():
        return []
    try:
        return sorted(scratch_dir.iterdir())
    except OSError as e:
        logger.error(f"Error scanning scratch directory {scratch_dir}: {e}")
        return []


def clear_scratch_dir(scratch_dir: Path) -> int:
    """
    Deletes every entry in the scratch directory.

    Best effort: an entry that can't be removed is logged and skipped, the
    rest are still attempted. A directory that fails is_safe_scratch_dir is
    left alone entirely.

    Args:
        scratch_dir (Path): Directory to empty.

    Returns:
        int: The number of entries deleted.
    """
    if not scratch_dir.exists() and not scratch_dir.is_symlink():
        return 0
    if not is_safe_scratch_dir(scratch_dir):
        return 0

    entries = list_artifacts(scratch_dir)
    deleted_count = 0
    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            deleted_count += 1
            logger.debug(f"Cleanup: Deleted {entry.name}")
        except OSError as e:
            logger.error(f"Cleanup: Error deleting {entry}: {e}")

    logger.info(f"Cleanup: Removed {deleted_count} of {len(entries)} entries from {scratch_dir}")
    return deleted_count
