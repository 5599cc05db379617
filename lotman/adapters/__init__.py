"""
Lotman Adapters.

Implementations of protocols for external systems.
"""

from lotman.adapters.category import (
    CategoryExpirationPolicy,
    FixedExpirationPolicy,
    alert_window_for,
    get_expiration_policy,
    reset_expiration_policy,
)

__all__ = [
    "CategoryExpirationPolicy",
    "FixedExpirationPolicy",
    "alert_window_for",
    "get_expiration_policy",
    "reset_expiration_policy",
]
