"""
Utilities for notegraph
"""

from .events import log_event
from .serializers import serialize_connected, serialize_note

__all__ = [
    "log_event",
    "serialize_connected",
    "serialize_note",
]
