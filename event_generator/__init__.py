"""Event generator: free-text event descriptions to canonical event records."""

__version__ = "0.1.0"
