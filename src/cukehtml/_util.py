"""Shared utilities for cukehtml: debug logging, safe file reads, durations."""

import os
import sys
from pathlib import Path
from typing import List

_DEBUG = bool(os.environ.get("CUKEHTML_DEBUG", ""))


def debug(label: str, msg: str) -> None:
    """Print a debug message to stderr when CUKEHTML_DEBUG is set."""
    if _DEBUG:
        print(f"[cukehtml] {label}: {msg}", file=sys.stderr)


def is_debug() -> bool:
    return _DEBUG


def safe_read_lines(p: Path, label: str = "") -> List[str]:
    """Read a text file into lines, returning [] on permission/OS/decode errors."""
    try:
        return p.read_text().splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        if label:
            debug(label, f"cannot read {p}: {exc}")
        return []


def format_duration(seconds: float) -> str:
    """Format a run duration as e.g. 1m2.500s."""
    minutes = int(seconds // 60)
    return f"{minutes}m{seconds % 60:.3f}s"
