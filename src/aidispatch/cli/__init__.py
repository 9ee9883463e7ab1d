"""
aidispatch CLI.
"""

from aidispatch.cli.app import app

__all__ = ["app"]
