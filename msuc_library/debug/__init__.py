"""Debug helpers toggled through ``MSUC_DEBUG_*`` environment variables."""

from .snapshot import DEBUG_SNAPSHOT_DIR, DEBUG_SNAPSHOTS, capture_debug_snapshot

__all__ = ["capture_debug_snapshot", "DEBUG_SNAPSHOTS", "DEBUG_SNAPSHOT_DIR"]
