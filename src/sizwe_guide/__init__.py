"""Sizwe Guide: AI educational guidance and narrated study videos."""

__version__ = "0.1.0"
