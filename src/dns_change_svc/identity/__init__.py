"""Caller identity for the change API."""

from .extractor import SubjectExtractor, SubjectMiddleware

__all__ = [
    "SubjectExtractor",
    "SubjectMiddleware",
]
