"""
aidispatch - Multi-provider AI request dispatch

Sends a single "generate text" request to one of several interchangeable
AI completion APIs, falling back through eligible providers in priority order.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("aidispatch")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
