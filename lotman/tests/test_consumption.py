"""
Tests for consumption: atomic execution, optimistic concurrency, movements, alerts.
"""

import logging
from datetime import date

import pytest
from django.db.models import F

from lotman import LotError, lots
from lotman.models import Movement, StockAlert, StockLot
from lotman.services import AllocationPlanner
from lotman.tests.conftest import remaining


pytestmark = pytest.mark.django_db


class TestConsume:
    """Tests for lots.consume()."""

    def test_consume_fifo_scenario(self, stock, make_lot):
        """A=5 (older), B=10, consume 7 FIFO → A=0, B=8."""
        a = make_lot(stock, 5, entered_days_ago=10)
        b = make_lot(stock, 10, entered_days_ago=2)

        movement = lots.consume(stock, 7, 'fifo', motif='Exam run')

        assert remaining(a, b) == [0, 8]
        assert movement.summary() == {
            'movement': movement.code,
            'method': 'fifo',
            'total_consumed': 7,
            'lots_used': [{'lot_id': a.pk, 'quantity': 5}, {'lot_id': b.pk, 'quantity': 2}],
        }

    def test_consume_fefo_scenario(self, stock, make_lot):
        """C=5 exp Dec, D=3 exp Apr, consume 5 FEFO → D=0, C=3."""
        c = make_lot(stock, 5, expires=date(2026, 12, 1))
        d = make_lot(stock, 3, expires=date(2026, 4, 1))

        lots.consume(stock, 5, 'fefo')

        assert remaining(c, d) == [3, 0]

    def test_conservation(self, stock, make_lot):
        """Total remaining drops by exactly the consumed quantity."""
        for days, qty in [(9, 4), (5, 7), (1, 6)]:
            make_lot(stock, qty, entered_days_ago=days)
        before = lots.total_remaining(stock)

        movement = lots.consume(stock, 12, 'fefo')

        assert lots.total_remaining(stock) == before - 12
        assert sum(line['quantity'] for line in movement.lots) == movement.quantity == 12
        for lot in StockLot.objects.for_stock(stock):
            assert 0 <= lot.quantity_remaining <= lot.quantity_initial

    def test_consume_manual(self, stock, make_lot, user):
        """Manual consumption applies the caller's pairs and records the user."""
        a = make_lot(stock, 5)
        b = make_lot(stock, 5)

        movement = lots.consume(stock, 4, 'manual', manual_lots=[(b.pk, 3), (a.pk, 1)], user=user)

        assert remaining(a, b) == [4, 2]
        assert movement.method == 'manual'
        assert movement.user == user
        assert movement.lot_ids == [b.pk, a.pk]

    def test_failed_consume_changes_nothing(self, stock, make_lot):
        """Errors are raised before any lot is touched."""
        a = make_lot(stock, 5)

        with pytest.raises(LotError) as exc:
            lots.consume(stock, 6)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert remaining(a) == [5]
        assert Movement.objects.count() == 0

    def test_movement_reference(self, stock, make_lot, article):
        """The movement links generically to the external reference."""
        make_lot(stock, 5)

        movement = lots.consume(stock, 1, reference=article)

        assert Movement.objects.get(pk=movement.pk).reference == article

    def test_consume_logs_event(self, stock, make_lot, caplog):
        """Consumption emits a lot.consume log record."""
        make_lot(stock, 5)

        with caplog.at_level(logging.INFO, logger='lotman'):
            movement = lots.consume(stock, 2)

        record = next(r for r in caplog.records if r.getMessage() == 'lot.consume')
        assert record.movement == movement.code
        assert record.qty == '2'


class TestOptimisticConcurrency:
    """Tests for the compare-and-swap in execute()."""

    def test_stale_plan_is_rejected(self, stock, make_lot):
        """A lot changed after planning aborts the whole consumption."""
        a = make_lot(stock, 5, entered_days_ago=10)
        b = make_lot(stock, 10, entered_days_ago=2)
        plan = lots.plan(stock, 7, 'fifo')

        # Someone else takes one unit from B in between
        StockLot.objects.filter(pk=b.pk).update(quantity_remaining=F('quantity_remaining') - 1)

        with pytest.raises(LotError) as exc:
            lots.execute(plan)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert exc.value.retryable
        assert exc.value.data['lot_id'] == b.pk
        # A was decremented first, then rolled back
        assert remaining(a, b) == [5, 9]
        assert Movement.objects.count() == 0

    def test_deleted_lot_after_planning(self, stock, make_lot):
        """A lot tombstoned after planning also fails the swap."""
        lot = make_lot(stock, 5)
        plan = lots.plan(stock, 5, 'fifo')
        StockLot.objects.filter(pk=lot.pk).update(state='deleted', deleted_at=F('created_at'))

        with pytest.raises(LotError) as exc:
            lots.execute(plan)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'

    def test_plan_is_single_use(self, stock, make_lot):
        """Executing the same plan twice fails the second time."""
        make_lot(stock, 10)
        plan = lots.plan(stock, 3, 'fifo')
        lots.execute(plan)

        with pytest.raises(LotError) as exc:
            lots.execute(plan)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert lots.total_remaining(stock) == 7

    def test_updates_in_lot_id_order(self, stock, make_lot):
        """Rows are swapped in id order while the movement keeps draw order."""
        c = make_lot(stock, 5, expires=date(2026, 12, 1))
        d = make_lot(stock, 3, expires=date(2026, 4, 1))
        plan = lots.plan(stock, 5, 'fefo')
        assert plan.lot_ids == [d.pk, c.pk]

        # Both lots go stale: the first swap attempted is the lower id
        StockLot.objects.filter(pk__in=[c.pk, d.pk]).update(
            quantity_remaining=F('quantity_remaining') - 1
        )
        with pytest.raises(LotError) as exc:
            lots.execute(plan)
        assert exc.value.data['lot_id'] == c.pk

        movement = lots.consume(stock, 5, 'fefo')
        assert movement.lot_ids == [d.pk, c.pk]
        assert remaining(c, d) == [1, 0]

    def _racing_planner(self, monkeypatch, lot):
        """Make the first plan() go stale by touching ``lot`` right after it."""
        real_plan = AllocationPlanner.plan.__func__
        plans = []

        def racing_plan(cls, *args, **kwargs):
            plan = real_plan(cls, *args, **kwargs)
            if not plans:
                StockLot.objects.filter(pk=lot.pk).update(
                    quantity_remaining=F('quantity_remaining') - 1
                )
            plans.append(plan)
            return plan

        monkeypatch.setattr(AllocationPlanner, 'plan', classmethod(racing_plan))
        return plans

    def test_no_retry_by_default(self, stock, make_lot, monkeypatch):
        """With CONSUME_RETRIES=0 the conflict reaches the caller."""
        lot = make_lot(stock, 10)
        self._racing_planner(monkeypatch, lot)

        with pytest.raises(LotError) as exc:
            lots.consume(stock, 4)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert remaining(lot) == [9]

    def test_retry_replans_from_fresh_state(self, stock, make_lot, monkeypatch):
        """A retry plans again against the current quantities."""
        lot = make_lot(stock, 10)
        plans = self._racing_planner(monkeypatch, lot)

        movement = lots.consume(stock, 4, retries=1)

        assert len(plans) == 2
        assert plans[1].lines[0].expected_remaining == 9
        assert remaining(lot) == [5]
        assert movement.quantity == 4

    def test_retries_from_settings(self, stock, make_lot, monkeypatch, settings):
        """CONSUME_RETRIES sets the default retry count."""
        settings.LOTMAN = {**settings.LOTMAN, 'CONSUME_RETRIES': 2}
        lot = make_lot(stock, 10)
        self._racing_planner(monkeypatch, lot)

        lots.consume(stock, 4)

        assert remaining(lot) == [5]

    def test_negative_retries_still_consume_once(self, stock, make_lot):
        """A negative retry count means a single attempt, not none."""
        lot = make_lot(stock, 10)

        movement = lots.consume(stock, 4, retries=-1)

        assert movement.quantity == 4
        assert remaining(lot) == [6]

    def test_negative_retries_setting(self, stock, make_lot, monkeypatch, settings):
        """A negative CONSUME_RETRIES behaves like 0."""
        settings.LOTMAN = {**settings.LOTMAN, 'CONSUME_RETRIES': -3}
        lot = make_lot(stock, 10)
        lots.consume(stock, 1)
        self._racing_planner(monkeypatch, lot)

        with pytest.raises(LotError) as exc:
            lots.consume(stock, 4)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        assert Movement.objects.count() == 1

    def test_non_retryable_errors_not_retried(self, stock, make_lot, monkeypatch):
        """Validation errors surface immediately even with retries."""
        make_lot(stock, 2)

        with pytest.raises(LotError) as exc:
            lots.consume(stock, 3, retries=5)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert not exc.value.retryable


class TestMovementImmutability:
    """Movements are written once."""

    def test_movement_cannot_be_saved_again(self, stock, make_lot):
        """save() on an existing movement raises."""
        make_lot(stock, 5)
        movement = lots.consume(stock, 1)
        movement.motif = 'rewritten'

        with pytest.raises(ValueError):
            movement.save()

    def test_movement_cannot_be_deleted(self, stock, make_lot):
        """delete() raises."""
        make_lot(stock, 5)
        movement = lots.consume(stock, 1)

        with pytest.raises(ValueError):
            movement.delete()

        assert Movement.objects.filter(pk=movement.pk).exists()


class TestLowStockAlerts:
    """Alerts after consumption."""

    def test_alert_when_crossing_threshold(self, stock, make_lot):
        """Remaining at or below the threshold records an alert."""
        stock.critical_threshold = 5
        stock.save()
        make_lot(stock, 10)

        lots.consume(stock, 4)
        assert StockAlert.objects.count() == 0

        lots.consume(stock, 1)
        alert = StockAlert.objects.get()
        assert (alert.quantity, alert.threshold) == (5, 5)
        assert alert.message == 'Critical stock: 5 <= 5'

    def test_threshold_zero_disables_alerts(self, stock, make_lot):
        """A stock without threshold never alerts."""
        make_lot(stock, 3)
        lots.consume(stock, 3)

        assert StockAlert.objects.count() == 0

    def test_alerts_setting_off(self, stock, make_lot, settings):
        """LOW_STOCK_ALERTS=False skips the check after consumption."""
        settings.LOTMAN = {**settings.LOTMAN, 'LOW_STOCK_ALERTS': False}
        stock.critical_threshold = 5
        stock.save()
        make_lot(stock, 6)

        lots.consume(stock, 6)

        assert StockAlert.objects.count() == 0

    def test_check_alerts_scans_all_stocks(self, stock, other_stock, make_lot):
        """check_alerts() returns one alert per stock under its threshold."""
        from lotman.services.alerts import check_alerts

        stock.critical_threshold = 10
        stock.save()
        other_stock.critical_threshold = 2
        other_stock.save()
        make_lot(stock, 4)
        make_lot(other_stock, 50)

        triggered = check_alerts()

        assert [alert.stock for alert in triggered] == [stock]
        assert triggered[0].quantity == 4

    def test_no_repeat_alert_below_threshold(self, stock, make_lot):
        """Further consumptions under the threshold add no alerts."""
        stock.critical_threshold = 5
        stock.save()
        make_lot(stock, 10)

        lots.consume(stock, 6)
        lots.consume(stock, 1)
        lots.consume(stock, 1)

        alert = StockAlert.objects.get()
        assert alert.quantity == 4

    def test_alert_again_after_replenishment(self, stock, make_lot):
        """Going back above the threshold arms the next alert."""
        stock.critical_threshold = 5
        stock.save()
        make_lot(stock, 6)
        lots.consume(stock, 3)

        make_lot(stock, 10)
        lots.consume(stock, 8)

        assert [alert.quantity for alert in StockAlert.objects.order_by('pk')] == [3, 5]

    def test_alert_failure_rolls_back_consumption(self, stock, make_lot, monkeypatch):
        """The alert is part of the consumption transaction."""
        stock.critical_threshold = 5
        stock.save()
        lot = make_lot(stock, 6)

        def broken_alert(*args, **kwargs):
            raise RuntimeError('alert storage down')

        monkeypatch.setattr('lotman.services.consumption.check_alert', broken_alert)

        with pytest.raises(RuntimeError):
            lots.consume(stock, 3)

        assert remaining(lot) == [6]
        assert Movement.objects.count() == 0

    def test_check_alerts_does_not_repeat(self, stock, make_lot):
        """A second scan skips stocks already alerted at their quantity."""
        from lotman.services.alerts import check_alerts

        stock.critical_threshold = 10
        stock.save()
        make_lot(stock, 4)

        assert len(check_alerts()) == 1
        assert check_alerts() == []
        assert StockAlert.objects.count() == 1
