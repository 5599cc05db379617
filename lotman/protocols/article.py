"""
Expiration Policy Protocol — Interface for category alert windows.

Lotman defines this protocol, the host catalog (article categories)
implements it or relies on the default category adapter.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ExpirationPolicy(Protocol):
    """
    Protocol for near-expiration alert windows.

    Implementations return how many days before expiration a lot of
    the given article starts being flagged.
    """

    def alert_window_days(self, article) -> int | None:
        """
        Alert window for an article.

        Args:
            article: Host catalog object referenced by a Stock

        Returns:
            Days before expiration, or None to use the configured default
        """
        ...

