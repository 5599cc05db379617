"""
Lotman Protocols.

Defines interfaces for external system integration.
"""

from lotman.protocols.article import (
    ExpirationPolicy,
)

__all__ = [
    "ExpirationPolicy",
]
