"""
Lot store — receive, edit and the delete/restore lifecycle of lots.

All state-changing methods use transaction.atomic() with row locks.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.contrib.contenttypes.models import ContentType
from django.db import transaction

from lotman import clock
from lotman.codes import generate_code
from lotman.conf import lotman_settings
from lotman.exceptions import LotError
from lotman.models.enums import LotState
from lotman.models.lot import StockLot
from lotman.models.stock import Stock

logger = logging.getLogger('lotman')

# Largest value a PositiveIntegerField holds on every supported backend
MAX_QUANTITY = 2147483647

# Fields a lot edit may touch (quantity_initial has its own rule)
EDITABLE_FIELDS = frozenset({
    'date_expiration',
    'unit_price',
    'lot_number',
    'supplier',
    'comment',
    'quantity_initial',
})


def positive_quantity(value, field: str = 'quantity') -> int:
    """
    Coerce a requested quantity to int.

    Raises:
        LotError('INVALID_QUANTITY'): If not a positive integer, or above MAX_QUANTITY
    """
    if isinstance(value, bool):
        raise LotError('INVALID_QUANTITY', field=field, requested=value)
    if isinstance(value, (Decimal, float)):
        try:
            if value == int(value):
                value = int(value)
        except (ValueError, OverflowError):
            pass
    if not isinstance(value, int) or not 0 < value <= MAX_QUANTITY:
        raise LotError('INVALID_QUANTITY', field=field, requested=value)
    return value


def _unit_price(value) -> Decimal | None:
    if value is None or value == '':
        return None
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise LotError('INVALID_PRICE', unit_price=value)
    if price < 0:
        raise LotError('INVALID_PRICE', unit_price=value)
    return price


def _as_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


class LotStore:
    """Lot creation and lifecycle methods."""

    @classmethod
    def open_stock(cls, article, critical_threshold: int = 0, code: str = '') -> Stock:
        """Create the stock that will own an article's lots."""
        if not 0 <= critical_threshold <= MAX_QUANTITY:
            raise LotError('INVALID_QUANTITY', field='critical_threshold',
                           requested=critical_threshold)
        ct = ContentType.objects.get_for_model(article)
        return Stock.objects.create(
            code=code or generate_code(Stock, lotman_settings.STOCK_CODE_PREFIX),
            content_type=ct,
            object_id=article.pk,
            critical_threshold=critical_threshold,
        )

    @classmethod
    def get_lot(cls, lot_id, include_deleted: bool = False) -> StockLot:
        """
        Fetch a lot by id.

        Raises:
            LotError('LOT_NOT_FOUND'): If missing (or tombstoned, unless include_deleted)
        """
        qs = StockLot.objects.all() if include_deleted else StockLot.objects.active()
        try:
            return qs.select_related('stock').get(pk=lot_id)
        except (StockLot.DoesNotExist, ValueError, TypeError):
            raise LotError('LOT_NOT_FOUND', lot_id=lot_id)

    @classmethod
    def receive(cls, stock: Stock, quantity_initial, date_entered: datetime | None = None,
                date_expiration: date | None = None, unit_price=None, supplier: str = '',
                comment: str = '', lot_number: str = '', now: datetime | None = None) -> StockLot:
        """
        Receive a new lot into a stock.

        The lot starts full: quantity_remaining = quantity_initial.

        Raises:
            LotError('INVALID_QUANTITY'): If quantity_initial is not a positive integer
            LotError('INVALID_EXPIRATION_DATE'): If date_expiration is not after today
            LotError('INVALID_PRICE'): If unit_price is negative
        """
        quantity = positive_quantity(quantity_initial, field='quantity_initial')
        moment = now or clock.now()
        expiration = _as_date(date_expiration)

        if expiration is not None and expiration <= clock.today(moment):
            raise LotError(
                'INVALID_EXPIRATION_DATE',
                date_expiration=expiration,
                today=clock.today(moment),
            )

        price = _unit_price(unit_price)

        with transaction.atomic():
            lot = StockLot.objects.create(
                stock=stock,
                code=generate_code(StockLot, lotman_settings.LOT_CODE_PREFIX),
                lot_number=lot_number or '',
                quantity_initial=quantity,
                quantity_remaining=quantity,
                date_entered=date_entered or moment,
                date_expiration=expiration,
                unit_price=price,
                supplier=supplier or '',
                comment=comment or '',
            )

        logger.info(
            "lot.receive",
            extra={
                "stock_id": stock.pk,
                "lot_id": lot.pk,
                "lot_code": lot.code,
                "qty": str(quantity),
                "date_expiration": str(expiration) if expiration else None,
            },
        )
        return lot

    @classmethod
    def update(cls, lot: StockLot, **fields) -> StockLot:
        """
        Edit a lot's descriptive fields.

        quantity_initial may only change while nothing was consumed;
        quantity_remaining follows it.

        Raises:
            TypeError: If a field is not editable
            LotError('LOT_NOT_FOUND'): If the lot is tombstoned
            LotError('LOT_ALREADY_CONSUMED'): If changing quantity after a consumption
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"Lot fields not editable: {', '.join(sorted(unknown))}")

        with transaction.atomic():
            locked = cls._lock(lot)
            if locked.is_deleted:
                raise LotError('LOT_NOT_FOUND', lot_id=lot.pk)

            changed = []
            if 'quantity_initial' in fields:
                quantity = positive_quantity(fields.pop('quantity_initial'), field='quantity_initial')
                if locked.quantity_remaining != locked.quantity_initial:
                    raise LotError(
                        'LOT_ALREADY_CONSUMED',
                        lot_id=locked.pk,
                        consumed=locked.quantity_consumed,
                    )
                locked.quantity_initial = quantity
                locked.quantity_remaining = quantity
                changed += ['quantity_initial', 'quantity_remaining']

            if 'unit_price' in fields:
                fields['unit_price'] = _unit_price(fields['unit_price'])
            if 'date_expiration' in fields:
                fields['date_expiration'] = _as_date(fields['date_expiration'])
            for name in ('lot_number', 'supplier', 'comment'):
                if name in fields and fields[name] is None:
                    fields[name] = ''

            for name, value in fields.items():
                setattr(locked, name, value)
                changed.append(name)

            if changed:
                locked.save(update_fields=changed + ['updated_at'])

        logger.info("lot.update", extra={"lot_id": locked.pk, "fields": sorted(changed)})
        return locked

    @classmethod
    def soft_delete(cls, lot: StockLot, now: datetime | None = None) -> StockLot:
        """
        Tombstone an empty lot.

        Transition: ACTIVE → DELETED (no-op when already deleted)

        Raises:
            LotError('LOT_NOT_EMPTY'): If quantity_remaining > 0
        """
        with transaction.atomic():
            locked = cls._lock(lot)

            if locked.quantity_remaining > 0:
                raise LotError(
                    'LOT_NOT_EMPTY',
                    lot_id=locked.pk,
                    quantity_remaining=locked.quantity_remaining,
                )

            if locked.is_deleted:
                return locked

            locked.state = LotState.DELETED
            locked.deleted_at = now or clock.now()
            locked.save(update_fields=['state', 'deleted_at', 'updated_at'])

        logger.info("lot.soft_delete", extra={"lot_id": locked.pk, "lot_code": locked.code})
        return locked

    @classmethod
    def restore(cls, lot: StockLot) -> StockLot:
        """
        Clear a lot's tombstone.

        Transition: DELETED → ACTIVE

        Raises:
            LotError('NOT_DELETED'): If the lot is not tombstoned
        """
        with transaction.atomic():
            locked = cls._lock(lot)

            if not locked.is_deleted:
                raise LotError('NOT_DELETED', lot_id=locked.pk)

            locked.state = LotState.ACTIVE
            locked.deleted_at = None
            locked.save(update_fields=['state', 'deleted_at', 'updated_at'])

        logger.info("lot.restore", extra={"lot_id": locked.pk, "lot_code": locked.code})
        return locked

    @classmethod
    def hard_delete(cls, lot: StockLot) -> None:
        """
        Permanently erase a tombstoned lot.

        Movements keep the lot id in their history.

        Raises:
            LotError('NOT_DELETED'): If the lot was not soft-deleted first
        """
        with transaction.atomic():
            locked = cls._lock(lot)

            if not locked.is_deleted:
                raise LotError('NOT_DELETED', lot_id=locked.pk)

            lot_id, code = locked.pk, locked.code
            locked.delete()

        logger.info("lot.hard_delete", extra={"lot_id": lot_id, "lot_code": code})

    @classmethod
    def _lock(cls, lot: StockLot) -> StockLot:
        try:
            return StockLot.objects.select_for_update().get(pk=lot.pk)
        except StockLot.DoesNotExist:
            raise LotError('LOT_NOT_FOUND', lot_id=lot.pk)
