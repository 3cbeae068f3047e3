"""Dev Connection Diagnostics."""

__version__ = "1.0.0"
