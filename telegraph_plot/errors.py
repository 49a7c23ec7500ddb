from __future__ import annotations


class GraphConfigError(ValueError):
    """Raised when a graph configuration source cannot be turned into options."""
