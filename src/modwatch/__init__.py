"""Modwatch - live reload of loaded Python modules."""

__version__ = "0.1.0"
