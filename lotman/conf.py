"""
Lotman configuration.

Usage in settings.py:
    LOTMAN = {
        "DEFAULT_ALERT_WINDOW_DAYS": 30,
        "ALLOW_EXPIRED_CONSUMPTION": False,
        "CONSUME_RETRIES": 2,
        "CLOCK": "django.utils.timezone.now",
        "EXPIRATION_POLICY": "lotman.adapters.category.CategoryExpirationPolicy",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class LotmanSettings:
    """Lotman configuration settings."""

    # Near-expiration window used when the article category has none
    DEFAULT_ALERT_WINDOW_DAYS: int = 30

    # Let FIFO/FEFO draw from lots past their expiration date
    ALLOW_EXPIRED_CONSUMPTION: bool = False

    # Withdrawal method used when the caller does not name one
    DEFAULT_METHOD: str = "fifo"

    # Automatic replans on CONCURRENT_MODIFICATION (0 = fail immediately)
    CONSUME_RETRIES: int = 0

    # Callable returning an aware datetime (dotted path)
    CLOCK: str = "django.utils.timezone.now"

    # Alert window provider (dotted path to an ExpirationPolicy class)
    EXPIRATION_POLICY: str = "lotman.adapters.category.CategoryExpirationPolicy"

    # Human-readable code prefixes
    LOT_CODE_PREFIX: str = "LOT"
    STOCK_CODE_PREFIX: str = "STK"
    MOVEMENT_CODE_PREFIX: str = "MOV"

    # Record a StockAlert when a consumption crosses the critical threshold
    LOW_STOCK_ALERTS: bool = True


def get_lotman_settings() -> LotmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "LOTMAN", {})
    return LotmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in LotmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_lotman_settings(), name)


lotman_settings = _LazySettings()
