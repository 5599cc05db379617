"""
Tests for admin registration, admin lot actions and the Unfold helpers.
"""

import importlib
import sys
from datetime import date

import pytest
from django.contrib import admin
from django.contrib.admin import AdminSite

from lotman import lots
from lotman.admin import restore_lots, soft_delete_lots
from lotman.contrib.admin_unfold.base import format_date, format_quantity, unfold_badge
from lotman.models import LotState, Movement, Stock, StockAlert, StockLot


class TestRegistration:
    """The plain admin registers every model."""

    @pytest.mark.parametrize('model', [Stock, StockLot, Movement, StockAlert])
    def test_model_registered(self, model):
        """Each model has an admin."""
        assert admin.site.is_registered(model)

    def test_movements_read_only(self, rf):
        """Movements cannot be added, changed or deleted from the admin."""
        model_admin = admin.site._registry[Movement]
        request = rf.get('/')

        assert not model_admin.has_add_permission(request)
        assert not model_admin.has_change_permission(request)
        assert not model_admin.has_delete_permission(request)


@pytest.mark.django_db
class TestLotActions:
    """Bulk soft delete and restore."""

    def test_soft_delete_skips_lots_with_stock(self, stock, make_lot):
        """Only empty lots are tombstoned."""
        empty = make_lot(stock, 2, entered_days_ago=5)
        full = make_lot(stock, 4, entered_days_ago=1)
        lots.consume(stock, 2)

        done, skipped = soft_delete_lots(StockLot.objects.filter(stock=stock))

        assert (done, skipped) == (1, 1)
        assert StockLot.objects.get(pk=empty.pk).state == LotState.DELETED
        assert StockLot.objects.get(pk=full.pk).state == LotState.ACTIVE

    def test_restore_only_touches_deleted(self, stock, make_lot):
        """Active lots in the selection are ignored."""
        lot = make_lot(stock, 1, entered_days_ago=5)
        make_lot(stock, 3, entered_days_ago=1)
        lots.consume(stock, 1)
        lots.soft_delete(lot)

        assert restore_lots(StockLot.objects.all()) == 1
        assert StockLot.objects.deleted().count() == 0


class TestUnfoldHelpers:
    """Formatting helpers of the Unfold admin."""

    def test_format_quantity(self):
        """Thousands are space-separated."""
        assert format_quantity(1250) == '1 250'
        assert format_quantity(None) == '-'

    def test_format_date(self):
        """Dates render as DD/MM/YY."""
        assert format_date(date(2026, 3, 9)) == '09/03/26'
        assert format_date(None) == '-'

    def test_badge_escapes_label(self):
        """Badge labels are HTML-escaped."""
        html = unfold_badge('<b>', 'red')
        assert '&lt;b&gt;' in html
        assert 'bg-red-100' in html

    def test_unfold_admin_registers_every_model(self, monkeypatch):
        """The Unfold contrib registers its own admin for each model."""
        site = AdminSite(name='unfold')
        monkeypatch.setattr(admin.sites, 'site', site)
        monkeypatch.setattr(admin, 'site', site)
        monkeypatch.delitem(sys.modules, 'lotman.contrib.admin_unfold.admin', raising=False)

        module = importlib.import_module('lotman.contrib.admin_unfold.admin')

        for model in (Stock, StockLot, Movement, StockAlert):
            assert site.is_registered(model)
        assert isinstance(site._registry[StockLot], module.StockLotAdmin)
