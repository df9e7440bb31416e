"""Timestamped file backups next to the original file."""

from __future__ import annotations

import logging
import os
import re
import shutil
from collections import defaultdict
from datetime import datetime
from fnmatch import fnmatchcase

logger = logging.getLogger(__name__)

_BACKUP_NAME = re.compile(r"^([^/]*).bak\.(.*)$")


def backup_path(file_path: str, timestamp: str) -> str:
    """Return the backup file name for a file and timestamp."""
    return f"{file_path}.bak.{timestamp}"


def create_backup(file_path: str) -> str | None:
    """Copy the file to a timestamped backup; return its path or None on failure."""
    if not os.path.exists(file_path):
        return None
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    target = backup_path(file_path, timestamp)
    if os.path.exists(target):
        logger.warning("Failed to create backup: %s", target)
        return None
    try:
        shutil.copy(file_path, target)
    except OSError:
        logger.warning("Failed to create backup: %s", target)
        return None
    cleanup_old_backups(file_path)
    return target


def restore_backup(backup_path: str, original_path: str) -> bool:
    """Overwrite the original file with the backup's content."""
    if not os.path.exists(backup_path):
        logger.warning("Backup file does not exist: %s", backup_path)
        return False
    try:
        with open(backup_path, "rb") as source:
            content = source.read()
    except OSError:
        logger.warning("Cannot open backup for reading: %s", backup_path)
        return False
    try:
        with open(original_path, "wb") as target:
            target.write(content)
    except OSError:
        logger.warning("Cannot open original for writing: %s", original_path)
        return False
    return True


def _sorted_backup_files(directory: str, pattern: str) -> list[str]:
    try:
        names = os.listdir(directory)
    except OSError:
        return []
    return sorted(
        name
        for name in names
        if fnmatchcase(name, pattern) and os.path.isfile(os.path.join(directory, name))
    )


def list_backups(file_path: str) -> list[str]:
    """Return absolute paths of the file's backups, newest first."""
    absolute = os.path.abspath(file_path)
    directory = os.path.dirname(absolute)
    base_name = os.path.basename(absolute)
    names = _sorted_backup_files(directory, base_name + ".bak.*")
    return [os.path.join(directory, name) for name in reversed(names)]


def _remove_beyond(backups: list[str], max_backups: int) -> int:
    removed = 0
    for oldest in reversed(backups[max(max_backups, 0):]):
        try:
            os.remove(oldest)
            removed += 1
        except OSError:
            logger.warning("Failed to remove old backup: %s", oldest)
    return removed


def cleanup_old_backups(file_path: str, max_backups: int = 5) -> int:
    """Keep only the newest backups of a file; return how many were removed."""
    return _remove_beyond(list_backups(file_path), max_backups)


def total_backup_size(file_path: str) -> int:
    """Total size in bytes of all backups of a file."""
    return sum(os.path.getsize(path) for path in list_backups(file_path))


def cleanup_all_backups(directory: str | None = None, max_backups: int = 5) -> None:
    """Keep only the newest backups of every file in a directory."""
    dir_path = os.path.abspath(directory or os.getcwd())
    groups: dict[str, list[str]] = defaultdict(list)
    for name in _sorted_backup_files(dir_path, "*.bak.*"):
        match = _BACKUP_NAME.match(name)
        if match:
            groups[match.group(1)].append(os.path.join(dir_path, name))
    for backups in groups.values():
        _remove_beyond(list(reversed(backups)), max_backups)