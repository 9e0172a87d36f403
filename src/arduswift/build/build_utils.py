"""Filesystem helpers for the build steps."""

import os
import shutil
import stat
import sys
import time
from pathlib import Path
from typing import Any, Callable, List


def _remove_readonly(func: Callable[[str], None], path: str, _exc: Any) -> None:
    """Clear the read-only bit and retry (Windows)."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def safe_rmtree(path: Path, max_retries: int = 3) -> None:
    """
    Remove a directory tree, retrying briefly on locked files.

    Args:
        path: Directory to remove (missing is fine)
        max_retries: Maximum number of attempts

    Raises:
        OSError: If the directory cannot be removed after all retries
    """
    if not path.exists():
        return

    for attempt in range(max_retries):
        try:
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=_remove_readonly)
            else:
                shutil.rmtree(path, onerror=_remove_readonly)
            return
        except OSError as e:
            if attempt < max_retries - 1:
                time.sleep(0.5)
            else:
                raise OSError(
                    f"Failed to remove directory {path} after {max_retries} attempts: {e}"
                ) from e


def copy_file(src: Path, dst: Path) -> Path:
    """Copy a file, creating the destination directory."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    return dst


def files_with_suffix(root: Path, suffixes: Any, recursive: bool = True) -> List[Path]:
    """Sorted files under ``root`` whose suffix (lowercased) is in ``suffixes``."""
    if not root.is_dir():
        return []
    iterator = root.rglob("*") if recursive else root.iterdir()
    return sorted(p for p in iterator if p.is_file() and p.suffix.lower() in suffixes)


def list_tree(root: Path) -> List[str]:
    """Sorted relative paths of every file and directory below ``root``."""
    if not root.is_dir():
        return []
    entries = []
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root).as_posix()
        entries.append(rel + "/" if p.is_dir() else rel)
    return entries
