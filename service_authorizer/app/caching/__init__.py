"""
In-process caches shared by concurrent authorization requests.

Both the key-set cache and the identity-exchange cache are built on
``SingleFlightCache``: values live for the process lifetime and at most one
outbound call per key is in flight at any time.
"""

from .single_flight import CellState, SingleFlightCache

__all__ = [
    "CellState",
    "SingleFlightCache",
]
