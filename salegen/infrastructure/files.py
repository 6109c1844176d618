"""
Filesystem helpers for salegen.

Owns the lifecycle of every file a run touches: per-worker temp files,
sibling staging files used for atomic publication, and best-effort deletion
during rollback. Deletion retries transient `PermissionError`s (a reader or
virus scanner briefly holding the file on Windows) using tenacity.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from salegen.utils.logging import get_logger

log = get_logger(__name__)

WORKER_TEMP_PREFIX = "salegen_part_"
WORKER_TEMP_SUFFIX = ".tmp"
STAGING_SUFFIX = ".partial"


def _worker_temp_prefix(worker_index: int, run_token: Optional[str]) -> str:
    if run_token:
        return f"{WORKER_TEMP_PREFIX}{run_token}_{worker_index}_"
    return f"{WORKER_TEMP_PREFIX}{worker_index}_"


def create_worker_temp(
    worker_index: int, temp_dir: Optional[Path], run_token: Optional[str] = None
) -> Tuple[int, Path]:
    """
    Create an empty, uniquely-named temp file for one worker.

    With a `run_token` the name is predictable enough for the coordinator to
    find it again (see `find_worker_temps`) even if the worker never reports
    back. Returns the open OS-level descriptor and the path; the caller owns
    both.
    """
    fd, raw_path = tempfile.mkstemp(
        prefix=_worker_temp_prefix(worker_index, run_token),
        suffix=WORKER_TEMP_SUFFIX,
        dir=temp_dir,
    )
    return fd, Path(raw_path)


def find_worker_temps(temp_dir: Optional[Path], run_token: str, worker_index: int) -> List[Path]:
    """Temp files created for `worker_index` under `run_token`."""
    directory = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
    pattern = f"{_worker_temp_prefix(worker_index, run_token)}*{WORKER_TEMP_SUFFIX}"
    return sorted(directory.glob(pattern))


def create_staging_file(final_path: Path) -> Tuple[int, Path]:
    """
    Create a hidden sibling of `final_path` to write into before publishing.

    Living in the same directory keeps the final rename on one filesystem.
    """
    fd, raw_path = tempfile.mkstemp(
        prefix=f".{final_path.name}.",
        suffix=STAGING_SUFFIX,
        dir=final_path.parent,
    )
    return fd, Path(raw_path)


def publish(staging_path: Path, final_path: Path) -> None:
    """Atomically move a fully written staging file onto its final path."""
    os.replace(staging_path, final_path)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
    retry=retry_if_exception_type(PermissionError),
    reraise=True,
)
def remove_file(path: Path) -> None:
    """
    Delete `path` if it exists, retrying briefly on PermissionError.

    Raises
    ------
    OSError
        If the file still cannot be removed after all attempts.
    """
    path.unlink(missing_ok=True)


def discard(path: Optional[Path]) -> bool:
    """
    Best-effort delete used on rollback paths. Never raises for I/O errors.

    Returns True when the file is gone afterwards.
    """
    if path is None:
        return True
    try:
        remove_file(path)
    except OSError as exc:
        log.error(
            f"[CLEANUP FAILED] Unable to delete {path}: {exc}",
            extra={"path": str(path), "error": str(exc)},
        )
        return False
    return True


def discard_all(paths: Iterable[Optional[Path]]) -> int:
    """Discard every path; returns how many could not be removed."""
    return sum(0 if discard(path) else 1 for path in paths)


def write_text_atomic(final_path: Path, text: str) -> None:
    """
    Write `text` to `final_path` through a staging file and a single rename.

    The staging file is removed if anything goes wrong before the rename.
    """
    fd, staging = create_staging_file(final_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        publish(staging, final_path)
    except BaseException:
        discard(staging)
        raise


__all__ = [
    "WORKER_TEMP_PREFIX",
    "WORKER_TEMP_SUFFIX",
    "STAGING_SUFFIX",
    "create_worker_temp",
    "find_worker_temps",
    "create_staging_file",
    "publish",
    "remove_file",
    "discard",
    "discard_all",
    "write_text_atomic",
]
