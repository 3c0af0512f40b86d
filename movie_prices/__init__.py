"""Movie price comparison across third-party movie providers."""

__version__ = "1.0.0"
