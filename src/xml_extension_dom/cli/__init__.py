"""Command-line interface for capturing extension regions from XML files."""

from .main import main

__all__ = ["main"]
