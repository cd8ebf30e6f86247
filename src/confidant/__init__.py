"""Confidant: a memory-backed chat companion."""

__version__ = "0.1.0"
