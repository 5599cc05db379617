"""
Pytest fixtures for Lotman tests.

The suite runs on a frozen clock (see lotman.tests.testapp.clock):
"now" is 2026-03-01 10:00 UTC, so "today" is 2026-03-01.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from lotman import lots
from lotman.adapters import reset_expiration_policy
from lotman.models import StockLot
from lotman.tests.testapp.clock import FROZEN_NOW
from lotman.tests.testapp.models import Article, Category


User = get_user_model()


@pytest.fixture(autouse=True)
def _fresh_expiration_policy():
    """Drop the cached policy so per-test LOTMAN overrides apply."""
    reset_expiration_policy()
    yield
    reset_expiration_policy()


@pytest.fixture
def now():
    """The frozen 'now' every service sees."""
    return FROZEN_NOW


@pytest.fixture
def today():
    """Return the frozen clock's date."""
    return date(2026, 3, 1)


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='labtech',
        password='testpass123'
    )


@pytest.fixture
def category(db):
    """Reagent category without its own alert window (default 30 days)."""
    return Category.objects.create(name='Reagents')


@pytest.fixture
def short_window_category(db):
    """Category flagging lots 10 days before expiration."""
    return Category.objects.create(name='Controls', expiration_alert_days=10)


@pytest.fixture
def article(db, category):
    """Create a test article."""
    return Article.objects.create(name='Glucose reagent', category=category)


@pytest.fixture
def other_article(db, category):
    """A second article with its own stock."""
    return Article.objects.create(name='Pipette tips', category=category)


@pytest.fixture
def stock(db, article):
    """Stock of the test article, alerts off."""
    return lots.open_stock(article)


@pytest.fixture
def other_stock(db, other_article):
    """Stock of another article."""
    return lots.open_stock(other_article)


@pytest.fixture
def make_lot(db, now, today):
    """
    Factory receiving a lot into a stock.

    ``entered_days_ago`` orders lots for FIFO; ``expires`` may be in the
    past, which receive() refuses, so such dates are written afterwards.
    """

    def _make(stock, quantity, entered_days_ago=0, expires=None, unit_price=None, **kwargs):
        past = expires is not None and expires <= today
        lot = lots.receive(
            stock,
            quantity,
            date_entered=now - timedelta(days=entered_days_ago),
            date_expiration=None if past else expires,
            unit_price=Decimal(unit_price) if unit_price is not None else None,
            now=now,
            **kwargs,
        )
        if past:
            StockLot.objects.filter(pk=lot.pk).update(date_expiration=expires)
            lot.refresh_from_db()
        return lot

    return _make


def remaining(*lots_):
    """Fresh quantity_remaining of each lot."""
    return [StockLot.objects.get(pk=lot.pk).quantity_remaining for lot in lots_]
