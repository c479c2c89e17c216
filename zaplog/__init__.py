"""Leveled logging building blocks: levels, URL-addressed sinks, combined and buffered write syncers, and helpers."""

__version__ = "0.1.0"
__all__ = ["__version__"]