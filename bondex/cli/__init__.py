"""
Bondex command-line tools.
"""

from .quote import cli, main

__all__ = ["cli", "main"]
