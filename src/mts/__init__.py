"""MTS - line-oriented UI automation test scripts."""

__version__ = "0.1.0"
