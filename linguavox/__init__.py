"""Caller-facing surfaces for linguavox: the JSON API and the command line."""

__version__ = "0.1.0"
