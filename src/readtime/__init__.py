"""Reading progress tracking for web articles."""

__version__ = "0.1.0"
