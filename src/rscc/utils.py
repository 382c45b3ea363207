"""Shared utilities for rscc."""

import contextlib
import os
from pathlib import Path


def atomic_write_text(filepath: Path, text: str, encoding: str = "utf-8") -> None:
    """Write text to a file atomically to prevent corruption on crash."""
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_text(text, encoding=encoding)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def ensure_parent_dir(filepath: Path) -> None:
    """Create the parent directory of *filepath* if it does not exist yet."""
    parent = filepath.parent
    if str(parent) and not parent.exists():
        parent.mkdir(parents=True, exist_ok=True)
