"""Route modules."""

from . import catalog, simulator, stream, telemetry

__all__ = [
    "catalog",
    "simulator",
    "stream",
    "telemetry",
]
