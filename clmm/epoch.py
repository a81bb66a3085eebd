"""Epoch clock used to stamp account updates."""

import time

SECONDS_PER_EPOCH = 2 * 24 * 3600


def get_recent_epoch() -> int:
    """Return the current epoch number, derived from the wall clock."""
    return int(time.time()) // SECONDS_PER_EPOCH