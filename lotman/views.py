"""
JSON endpoints for lot operations.

Authentication and tenant scoping belong to the host project: wrap these
views (or include lotman.urls behind its own middleware/decorators).

Error body:
    {"success": false, "code": "INSUFFICIENT_STOCK", "message": "...", "data": {...}}
"""

import json
import logging
from datetime import date, datetime, time

from django.core.serializers.json import DjangoJSONEncoder
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from lotman.exceptions import LotError
from lotman.service import Lots

logger = logging.getLogger('lotman')

# HTTP status per error code (everything else is 422)
ERROR_STATUS = {
    'LOT_NOT_FOUND': 404,
    'STOCK_NOT_FOUND': 404,
    'CONCURRENT_MODIFICATION': 409,
}


def _ok(data, status=200):
    return JsonResponse({'success': True, 'data': data}, status=status, encoder=DjangoJSONEncoder)


def _error(e: LotError):
    body = {'success': False, **e.as_dict()}
    return JsonResponse(body, status=ERROR_STATUS.get(e.code, 422), encoder=DjangoJSONEncoder)


def _bad_request(message: str):
    logger.info("lot.api.bad_request", extra={"reason": message})
    return JsonResponse({'success': False, 'code': 'BAD_REQUEST', 'message': message}, status=400)


def _body(request) -> dict:
    if not request.body:
        return {}
    payload = json.loads(request.body)
    if not isinstance(payload, dict):
        raise ValueError("JSON body must be an object")
    return payload


def _date(value, field: str) -> date | None:
    if value in (None, ''):
        return None
    parsed = parse_date(value) if isinstance(value, str) else None
    if parsed is None:
        raise ValueError(f"{field}: invalid date {value!r}")
    return parsed


def _datetime(value, field: str):
    if value in (None, ''):
        return None
    parsed = parse_datetime(value) if isinstance(value, str) else None
    if parsed is None:
        day = _date(value, field)
        parsed = datetime.combine(day, time.min)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def serialize_lot(lot) -> dict:
    data = {
        'id': lot.pk,
        'code': lot.code,
        'stock_id': lot.stock_id,
        'lot_number': lot.lot_number,
        'quantity_initial': lot.quantity_initial,
        'quantity_remaining': lot.quantity_remaining,
        'consumption_percentage': lot.consumption_percentage,
        'date_entered': lot.date_entered,
        'date_expiration': lot.date_expiration,
        'unit_price': lot.unit_price,
        'supplier': lot.supplier,
        'comment': lot.comment,
        'state': lot.state,
        'deleted_at': lot.deleted_at,
    }
    for flag in ('is_expired', 'is_near_expiration', 'days_until_expiration', 'urgency'):
        if hasattr(lot, flag):
            data[flag] = getattr(lot, flag)
    return data


@require_http_methods(["GET"])
def available_lots(request, stock_id: int):
    try:
        stock = Lots.get_stock(stock_id)
        lots = Lots.list_available(stock)
    except LotError as e:
        return _error(e)
    return _ok({'results': [serialize_lot(lot) for lot in lots]})


@csrf_exempt
@require_http_methods(["POST"])
def receive_lot(request, stock_id: int):
    try:
        payload = _body(request)
        kwargs = {
            'date_entered': _datetime(payload.get('date_entered'), 'date_entered'),
            'date_expiration': _date(payload.get('date_expiration'), 'date_expiration'),
        }
    except ValueError as e:
        return _bad_request(str(e))

    try:
        stock = Lots.get_stock(stock_id)
        lot = Lots.receive(
            stock,
            payload.get('quantity_initial'),
            unit_price=payload.get('unit_price'),
            supplier=payload.get('supplier') or '',
            comment=payload.get('comment') or '',
            lot_number=payload.get('lot_number') or '',
            **kwargs,
        )
    except LotError as e:
        return _error(e)
    return _ok(serialize_lot(lot), status=201)


@csrf_exempt
@require_http_methods(["POST"])
def consume(request, stock_id: int):
    try:
        payload = _body(request)
    except ValueError as e:
        return _bad_request(str(e))

    try:
        stock = Lots.get_stock(stock_id)
        movement = Lots.consume(
            stock,
            payload.get('quantity'),
            method=payload.get('method'),
            motif=payload.get('motif') or '',
            manual_lots=payload.get('manual_lots'),
            user=request.user if getattr(request, 'user', None) and request.user.is_authenticated else None,
        )
    except LotError as e:
        return _error(e)
    except (TypeError, ValueError):
        return _bad_request("manual_lots must be a list of {lot_id, quantity}")
    return _ok(movement.summary())


@csrf_exempt
@require_http_methods(["PATCH", "DELETE"])
def lot_detail(request, lot_id: int):
    """PATCH edits a lot, DELETE tombstones it."""
    try:
        lot = Lots.get_lot(lot_id)
        if request.method == 'DELETE':
            Lots.soft_delete(lot)
            return _ok(None)
    except LotError as e:
        return _error(e)

    try:
        payload = _body(request)
        if 'date_expiration' in payload:
            payload['date_expiration'] = _date(payload['date_expiration'], 'date_expiration')
        lot = Lots.update(lot, **payload)
    except LotError as e:
        return _error(e)
    except (TypeError, ValueError) as e:
        return _bad_request(str(e))
    return _ok(serialize_lot(lot))


@csrf_exempt
@require_http_methods(["POST"])
def restore_lot(request, lot_id: int):
    try:
        lot = Lots.restore(Lots.get_lot(lot_id, include_deleted=True))
    except LotError as e:
        return _error(e)
    return _ok(serialize_lot(lot))


@csrf_exempt
@require_http_methods(["DELETE"])
def force_delete_lot(request, lot_id: int):
    try:
        Lots.hard_delete(Lots.get_lot(lot_id, include_deleted=True))
    except LotError as e:
        return _error(e)
    return _ok(None)


@require_http_methods(["GET"])
def stock_overview(request, stock_id: int):
    try:
        overview = Lots.overview(Lots.get_stock(stock_id))
    except LotError as e:
        return _error(e)
    for key in ('oldest_lot', 'next_expiring_lot'):
        if overview[key] is not None:
            overview[key] = serialize_lot(overview[key])
    return _ok(overview)


@require_http_methods(["GET"])
def trashed_lots(request):
    return _ok({'results': [serialize_lot(lot) for lot in Lots.trashed()]})


@require_http_methods(["GET"])
def expired_lots(request):
    return _ok({'results': [serialize_lot(lot) for lot in Lots.expired_lots()]})


@require_http_methods(["GET"])
def near_expiration_lots(request):
    days = request.GET.get('days')
    try:
        days = int(days) if days not in (None, '') else None
    except ValueError:
        return _bad_request("days must be an integer")
    return _ok({'results': [serialize_lot(lot) for lot in Lots.near_expiration_lots(days=days)]})
