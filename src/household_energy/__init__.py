"""Budget-constrained household energy planning."""

__version__ = "0.1.0"
