"""Debug utilities for dumping catalog HTML near call sites."""

from __future__ import annotations

import inspect
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

__all__ = ["capture_debug_snapshot", "DEBUG_SNAPSHOTS", "DEBUG_SNAPSHOT_DIR"]

logger = logging.getLogger(__name__)


def _read_positive_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(0, value)


DEBUG_SNAPSHOTS: int = _read_positive_int_env("MSUC_DEBUG_SNAPSHOTS", 0)
DEBUG_SNAPSHOT_DIR: str | None = os.getenv("MSUC_DEBUG_DIR") or None


def _resolve_caller_info() -> Tuple[Path, Optional[str]]:
    """Return the absolute path and function name of the caller."""
    current_file = Path(__file__).resolve()
    stack = inspect.stack()
    try:
        for frame_info in stack[1:]:
            caller_path = Path(frame_info.filename).resolve()
            if caller_path == current_file:
                continue
            function_name = frame_info.function or None
            return caller_path, function_name
    finally:
        # Avoid reference cycles
        del stack
    raise RuntimeError("Unable to determine caller file for debug snapshot")


def _sanitize(fragment: str | None) -> str:
    if not fragment:
        return ""
    cleaned = []
    for char in fragment.lower():
        if char.isalnum() or char in {"-", "_"}:
            cleaned.append(char)
        else:
            cleaned.append("-")
    return "".join(cleaned).strip("-")


def _build_target_path(base_dir: Path, label: str | None) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%f")
    label_part = _sanitize(label)
    stem = f"{timestamp}_{label_part}" if label_part else timestamp
    candidate = base_dir / f"{stem}.html"
    counter = 1
    while candidate.exists():
        candidate = base_dir / f"{stem}_{counter:02d}.html"
        counter += 1
    return candidate


def capture_debug_snapshot(
    html: str,
    *,
    enabled: Optional[int] = None,
    label: Optional[str] = None,
    base_dir: Optional[str | Path] = None,
) -> Optional[Path]:
    """Write the given document to disk when debug is enabled.

    Args:
        html: Document body as received from the catalog.
        enabled: Toggle flag (0 disables capturing, non-zero enables). If ``None``,
            uses :data:`DEBUG_SNAPSHOTS`.
        label: Optional text appended to the filename for context.
        base_dir: Target directory. Defaults to :data:`DEBUG_SNAPSHOT_DIR` or, when
            that is unset, a folder next to the caller module named after it and
            the calling function.

    Returns:
        Path to the saved file or ``None`` when disabled or when writing fails.
    """

    toggle = DEBUG_SNAPSHOTS if enabled is None else enabled
    if not toggle:
        return None

    target_base = base_dir if base_dir is not None else DEBUG_SNAPSHOT_DIR
    if target_base is not None:
        target_dir = Path(target_base)
    else:
        caller_file, function_name = _resolve_caller_info()
        target_dir = caller_file.parent / caller_file.stem
        if function_name not in {None, "<module>"}:
            function_fragment = _sanitize(function_name)
            if function_fragment:
                target_dir = target_dir / function_fragment

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        snapshot_path = _build_target_path(target_dir, label)
        snapshot_path.write_text(html, encoding="utf-8")
    except OSError as exc:
        logger.debug("Debug snapshot failed: %s", exc)
        return None

    logger.debug("Debug snapshot saved to %s", snapshot_path)
    return snapshot_path
