"""Common middleware for Bilheteria."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
