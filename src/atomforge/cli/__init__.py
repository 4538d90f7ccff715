"""
Command-line interface for atomforge.
"""

from atomforge.cli.main import cli

__all__ = ["cli"]
