"""
Exceptions for Lotman.

All errors are LotError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class LotError(Exception):
    """
    Structured exception for lot operations.

    Usage:
        try:
            lots.consume(stock, 10, method='fefo')
        except LotError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} available")
            elif e.retryable:
                ...  # replan and try again

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INVALID_QUANTITY': 'Quantity must be a positive integer',
        'INVALID_EXPIRATION_DATE': 'Expiration date must be after today',
        'INVALID_PRICE': 'Unit price must not be negative',
        'INVALID_METHOD': 'Unknown withdrawal method',
        'INSUFFICIENT_STOCK': 'Requested quantity exceeds available stock',
        'ALLOCATION_MISMATCH': 'Manual allocation does not match requested quantity',
        'DUPLICATE_LOT_REFERENCE': 'Lot referenced more than once',
        'LOT_NOT_FOUND': 'Lot not found',
        'LOT_NOT_IN_STOCK': 'Lot does not belong to this stock',
        'LOT_NOT_EMPTY': 'Lot still holds stock',
        'LOT_ALREADY_CONSUMED': 'Lot was already partially consumed',
        'NOT_DELETED': 'Lot is not deleted',
        'STOCK_NOT_FOUND': 'Stock not found',
        'CONCURRENT_MODIFICATION': 'Lot changed since the allocation was planned',
    }

    # Only these may succeed on a fresh attempt without caller changes
    _retryable_codes = frozenset({'CONCURRENT_MODIFICATION'})

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"

    def __str__(self) -> str:
        if self.data:
            details = ', '.join(f"{k}={v}" for k, v in self.data.items())
            return f"[{self.code}] {self.message} ({details})"
        return f"[{self.code}] {self.message}"

    @property
    def retryable(self) -> bool:
        """True when replanning may succeed with the same input."""
        return self.code in self._retryable_codes

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
