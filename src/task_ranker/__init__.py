"""Task aggregation and priority ranking."""

__version__ = "0.1.0"
