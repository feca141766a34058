"""Fuzzy product deduplication and grouping for grocery receipts."""

__version__ = "0.1.0"
