"""Whale: a terminal market dashboard."""

__version__ = "0.1.0"
