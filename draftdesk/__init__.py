"""Annotation tracking and find/replace core for a long-form text editor."""

__version__ = "0.1.0"
