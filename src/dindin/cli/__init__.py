"""
Command-line interface for dindin.
"""

from .main import main

__all__ = ["main"]
