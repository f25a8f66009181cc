"""Lingroute - multilingual routing and hreflang reconciliation."""

__version__ = "0.1.0"
