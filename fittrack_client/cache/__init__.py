"""In-memory read-through caches."""

from .single_flight import SingleFlightCache

__all__ = ["SingleFlightCache"]
