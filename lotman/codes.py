"""
Human-readable codes for lots, stocks and movements.

Format: PREFIX-YYMM-XXXX (4 random uppercase alphanumerics), e.g. LOT-2608-K3QZ.
"""

from django.utils.crypto import get_random_string

from lotman import clock

ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'


def generate_code(model, prefix: str, length: int = 4) -> str:
    """Return a code unused by ``model.code``."""
    period = clock.now().strftime('%y%m')
    while True:
        code = f"{prefix}-{period}-{get_random_string(length, ALPHABET)}"
        if not model.objects.filter(code=code).exists():
            return code
