"""
Consumption — applies an allocation plan to the lots.

Concurrency:
    Each lot is decremented with a conditional UPDATE that only matches
    while quantity_remaining still equals the value seen during planning
    (compare-and-swap). Updates go in lot id order. All updates, the
    Movement and the low-stock alert run in a single
    transaction.atomic(): one miss rolls everything back and raises
    CONCURRENT_MODIFICATION, the only retryable error.
"""

import logging
from datetime import datetime

from django.contrib.contenttypes.models import ContentType
from django.db import transaction
from django.db.models import F

from lotman import clock
from lotman.codes import generate_code
from lotman.conf import lotman_settings
from lotman.exceptions import LotError
from lotman.models.enums import LotState
from lotman.models.lot import StockLot
from lotman.models.movement import Movement
from lotman.models.stock import Stock
from lotman.services.alerts import check_alert
from lotman.services.planning import AllocationPlan, AllocationPlanner

logger = logging.getLogger('lotman')


class ConsumptionExecutor:
    """State-changing consumption methods."""

    @classmethod
    def execute(cls, plan: AllocationPlan, motif: str = '', reference=None,
                user=None, now: datetime | None = None) -> Movement:
        """
        Apply a plan all-or-nothing and record its Movement.

        Returns:
            The created Movement

        Raises:
            LotError('ALLOCATION_MISMATCH'): Plan lines do not add up to its quantity
            LotError('INSUFFICIENT_STOCK'): A line asks more than its lot had
            LotError('CONCURRENT_MODIFICATION'): A lot changed since planning
        """
        if not plan.lines or plan.total != plan.quantity:
            raise LotError('ALLOCATION_MISMATCH', requested=plan.quantity, allocated=plan.total)

        for line in plan.lines:
            if line.quantity <= 0:
                raise LotError('INVALID_QUANTITY', lot_id=line.lot_id, requested=line.quantity)
            if line.quantity > line.expected_remaining:
                raise LotError(
                    'INSUFFICIENT_STOCK',
                    lot_id=line.lot_id,
                    available=line.expected_remaining,
                    requested=line.quantity,
                )

        moment = now or clock.now()

        reference_type = None
        reference_id = None
        if reference is not None:
            reference_type = ContentType.objects.get_for_model(reference)
            reference_id = reference.pk

        with transaction.atomic():
            # Lock rows in id order so concurrent withdrawals cannot deadlock
            for line in sorted(plan.lines, key=lambda line: line.lot_id):
                updated = StockLot.objects.filter(
                    pk=line.lot_id,
                    stock_id=plan.stock_id,
                    state=LotState.ACTIVE,
                    quantity_remaining=line.expected_remaining,
                ).update(
                    quantity_remaining=F('quantity_remaining') - line.quantity,
                    updated_at=moment,
                )

                if updated != 1:
                    logger.warning(
                        "lot.concurrent_modification",
                        extra={
                            "stock_id": plan.stock_id,
                            "lot_id": line.lot_id,
                            "expected_remaining": str(line.expected_remaining),
                        },
                    )
                    raise LotError(
                        'CONCURRENT_MODIFICATION',
                        lot_id=line.lot_id,
                        expected_remaining=line.expected_remaining,
                    )

            movement = Movement.objects.create(
                code=generate_code(Movement, lotman_settings.MOVEMENT_CODE_PREFIX),
                stock_id=plan.stock_id,
                quantity=plan.quantity,
                method=plan.method,
                lots=plan.as_pairs(),
                reference_type=reference_type,
                reference_id=reference_id,
                motif=motif or '',
                timestamp=moment,
                user=user,
            )

            if lotman_settings.LOW_STOCK_ALERTS:
                check_alert(movement.stock, consumed=plan.quantity, now=moment)

        logger.info(
            "lot.consume",
            extra={
                "stock_id": plan.stock_id,
                "movement": movement.code,
                "method": plan.method,
                "qty": str(plan.quantity),
                "lots": plan.as_pairs(),
            },
        )

        return movement

    @classmethod
    def consume(cls, stock: Stock, quantity, method: str | None = None, motif: str = '',
                manual_lots=None, reference=None, user=None, now: datetime | None = None,
                retries: int | None = None) -> Movement:
        """
        Plan and execute a withdrawal.

        On CONCURRENT_MODIFICATION the plan is recomputed from fresh lot
        state, up to ``retries`` times (LOTMAN['CONSUME_RETRIES'] by default).

        Usage:
            movement = lots.consume(stock, 7, 'fefo', motif='Exam DEX-2608-0001')
            movement.summary()
            # {'method': 'fefo', 'total_consumed': 7, 'lots_used': [...], ...}
        """
        retries = lotman_settings.CONSUME_RETRIES if retries is None else retries
        attempts = 1 + max(0, retries)

        for attempt in range(1, attempts + 1):
            plan = AllocationPlanner.plan(stock, quantity, method, manual_lots, now=now)
            try:
                return cls.execute(plan, motif=motif, reference=reference, user=user, now=now)
            except LotError as e:
                if not e.retryable or attempt >= attempts:
                    raise
                logger.info(
                    "lot.consume.retry",
                    extra={"stock_id": stock.pk, "attempt": attempt, "lot_id": e.data.get('lot_id')},
                )
