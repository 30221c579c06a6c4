"""Availability and booking engine for single-instructor lessons."""

__version__ = "0.1.0"
