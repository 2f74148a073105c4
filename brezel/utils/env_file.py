"""
Environment file utilities.

Line-oriented editing of ``KEY=value`` files (.env, .env.staging,
.env.development), plus backup rotation for rollbacks.
"""

import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

BACKUP_PREFIX = ".env.backup."
LATEST_BACKUP = ".env.backup.latest"
DOCKER_HOST_ALIAS = "host.docker.internal"


class EnvFileError(Exception):
    """Raised when an environment file is missing or cannot be prepared."""


def _read_lines(path: Path) -> List[str]:
    return path.read_text().splitlines()


def _write_lines(path: Path, lines: List[str]) -> None:
    path.write_text("\n".join(lines) + "\n" if lines else "")


def _key_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(key)}=")


def _commented_key_pattern(key: str) -> re.Pattern:
    return re.compile(rf"^# {re.escape(key)}=")


def ensure_env_file(path: Path, example: Path) -> bool:
    """
    Make sure an environment file exists, creating it from its example.

    Args:
        path: Environment file to check
        example: Template copied into place when ``path`` is missing

    Returns:
        True if the file was created from the example, False if it existed

    Raises:
        EnvFileError: If neither the file nor the example exists
    """
    if path.exists():
        return False
    if not example.exists():
        raise EnvFileError(f"{example.name} not found. Cannot proceed.")
    logger.warning(f"{path.name} not found. Creating from {example.name}...")
    shutil.copyfile(example, path)
    return True


def get_value(path: Path, key: str) -> Optional[str]:
    """Return the value of the first ``KEY=`` line, or None if absent."""
    pattern = _key_pattern(key)
    for line in _read_lines(path):
        if pattern.match(line):
            return line.split("=", 1)[1]
    return None


def missing_required(path: Path, keys: Iterable[str]) -> List[str]:
    """
    List required keys that are absent or empty.

    Args:
        path: Environment file to inspect
        keys: Required variable names

    Returns:
        Names of keys with no ``KEY=`` line or an empty value, in input order
    """
    lines = _read_lines(path)
    missing = []
    for key in keys:
        pattern = _key_pattern(key)
        values = [line.split("=", 1)[1] for line in lines if pattern.match(line)]
        if not values or any(not value.strip() for value in values):
            missing.append(key)
    return missing


def set_value(path: Path, key: str, value: str, uncomment: bool = False) -> None:
    """
    Set ``KEY=value`` in an environment file.

    Every existing ``KEY=`` line is replaced. Otherwise, with ``uncomment``,
    commented ``# KEY=`` lines are replaced. Otherwise the line is appended.
    """
    lines = _read_lines(path) if path.exists() else []
    new_line = f"{key}={value}"

    pattern = _key_pattern(key)
    if any(pattern.match(line) for line in lines):
        lines = [new_line if pattern.match(line) else line for line in lines]
    elif uncomment and any(_commented_key_pattern(key).match(line) for line in lines):
        commented = _commented_key_pattern(key)
        lines = [new_line if commented.match(line) else line for line in lines]
    else:
        lines.append(new_line)

    _write_lines(path, lines)


def delete_key(path: Path, key: str) -> bool:
    """Remove every ``KEY=`` line. Returns True if anything was removed."""
    lines = _read_lines(path)
    pattern = _key_pattern(key)
    kept = [line for line in lines if not pattern.match(line)]
    if len(kept) == len(lines):
        return False
    _write_lines(path, kept)
    return True


def configure_concurrency(
    path: Path,
    cpu_cores: int,
    auto_detect_on_multicore: bool = False,
) -> Optional[str]:
    """
    Adjust CONCURRENCY for the host's CPU count.

    Single-core hosts get an explicit ``CONCURRENCY=1``. On multi-core hosts
    the key is removed when ``auto_detect_on_multicore`` is set so the backend
    sizes its worker pool itself; otherwise the file is left alone.

    Returns:
        The explicit concurrency value now in the file, or None
    """
    if cpu_cores <= 1:
        set_value(path, "CONCURRENCY", "1", uncomment=True)
    elif auto_detect_on_multicore:
        delete_key(path, "CONCURRENCY")
    return get_value(path, "CONCURRENCY")


def backup_env_file(path: Path, now: Optional[datetime] = None) -> Path:
    """
    Back up an environment file next to itself.

    Writes ``.env.backup.<YYYYmmdd_HHMMSS>`` and refreshes
    ``.env.backup.latest``.

    Returns:
        Path of the timestamped backup
    """
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    backup = path.parent / f"{BACKUP_PREFIX}{stamp}"
    shutil.copyfile(path, backup)
    shutil.copyfile(path, path.parent / LATEST_BACKUP)
    return backup


def restore_latest_backup(path: Path) -> bool:
    """Copy ``.env.backup.latest`` back over ``path``. False if no backup."""
    latest = path.parent / LATEST_BACKUP
    if not latest.exists():
        return False
    shutil.copyfile(latest, path)
    return True


def prune_backups(directory: Path, keep: int = 10) -> List[Path]:
    """
    Delete timestamped backups beyond the ``keep`` newest.

    ``.env.backup.latest`` is never removed.

    Returns:
        Paths that were deleted
    """
    backups = [
        p for p in directory.glob(f"{BACKUP_PREFIX}*")
        if p.name != LATEST_BACKUP and p.is_file()
    ]
    backups.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
    removed = []
    for old in backups[keep:]:
        try:
            old.unlink()
            removed.append(old)
        except OSError as e:
            logger.warning(f"Could not remove {old}: {e}")
    return removed


def extract_db_host(dsn: Optional[str]) -> str:
    """
    Extract the host from a DSN.

    ``postgres://user:pw@db.example.com:5432/app`` -> ``db.example.com``
    """
    if not dsn or "@" not in dsn:
        return "unknown"
    host = re.split(r"[:/?]", dsn.split("@", 1)[1], maxsplit=1)[0]
    return host or "unknown"


def rewrite_dsn_for_docker(dsn: str) -> str:
    """Point a host-local DSN at the Docker host alias."""
    return dsn.replace("127.0.0.1", DOCKER_HOST_ALIAS).replace("localhost", DOCKER_HOST_ALIAS)
