"""Versioned table layouts."""
from .v1 import schema as v1

LATEST = v1

__all__ = ['LATEST', 'v1']
