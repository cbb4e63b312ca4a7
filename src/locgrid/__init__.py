"""Multi-language string table with fallback-to-default lookups."""

__version__ = "0.1.0"
