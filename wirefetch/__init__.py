"""Resilient single-resource HTTP fetcher with byte-exact wire capture."""

__version__ = "0.1.0"
