"""
Lotman Category Adapter — alert windows from article categories.

This adapter loads the configured ExpirationPolicy from settings.

Usage:
    from lotman.adapters import get_expiration_policy

    policy = get_expiration_policy()
    days = policy.alert_window_days(article)

Settings:
    LOTMAN = {
        "EXPIRATION_POLICY": "lotman.adapters.category.CategoryExpirationPolicy",
    }

If the configured path cannot be imported, get_expiration_policy() raises
ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from lotman.conf import lotman_settings
from lotman.protocols.article import ExpirationPolicy

logger = logging.getLogger(__name__)


class CategoryExpirationPolicy:
    """
    Default policy: the category owns the alert window.

    Looks up ``article.category.expiration_alert_days``, then
    ``article.expiration_alert_days``. Returns None when neither is set.
    """

    def alert_window_days(self, article) -> int | None:
        category = getattr(article, 'category', None)
        days = getattr(category, 'expiration_alert_days', None)
        if days is None:
            days = getattr(article, 'expiration_alert_days', None)
        return days


class FixedExpirationPolicy:
    """Same window for every article (LOTMAN['DEFAULT_ALERT_WINDOW_DAYS'])."""

    def alert_window_days(self, article) -> int | None:
        return None


# Cached policy instance, keyed by its dotted path
_lock = threading.Lock()
_policy: ExpirationPolicy | None = None
_policy_path: str | None = None


def get_expiration_policy() -> ExpirationPolicy:
    """
    Return the configured expiration policy.

    Raises:
        ImproperlyConfigured: If EXPIRATION_POLICY cannot be imported
    """
    global _policy, _policy_path

    path = lotman_settings.EXPIRATION_POLICY
    if _policy is None or _policy_path != path:
        with _lock:
            if _policy is None or _policy_path != path:  # double-checked
                try:
                    policy_class = import_string(path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import expiration policy '{path}': {e}"
                    ) from e
                _policy = policy_class()
                _policy_path = path
                logger.debug("Loaded expiration policy: %s", path)

    return _policy


def reset_expiration_policy() -> None:
    """Reset the cached policy. Useful for testing."""
    global _policy, _policy_path
    _policy = None
    _policy_path = None


def alert_window_for(article) -> int:
    """Alert window for ``article``, falling back to the configured default."""
    days = get_expiration_policy().alert_window_days(article) if article is not None else None
    if days is None:
        return lotman_settings.DEFAULT_ALERT_WINDOW_DAYS
    return int(days)
