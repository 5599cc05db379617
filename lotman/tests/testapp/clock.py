"""Frozen clock for the test suite (LOTMAN['CLOCK'])."""

from datetime import datetime, timezone

FROZEN_NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


def frozen_now() -> datetime:
    return FROZEN_NOW
