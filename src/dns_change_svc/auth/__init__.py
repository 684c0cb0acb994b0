"""Authorization of change decisions."""

from .authorizer import Authorizer

__all__ = [
    "Authorizer",
]
