"""Lotman Admin with Unfold theme."""

# Lazy imports: unfold is only needed once the admin loads

__all__ = [
    "BaseModelAdmin",
    "format_quantity",
    "unfold_badge",
]


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name in __all__:
        from lotman.contrib.admin_unfold import base

        return getattr(base, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
