"""Re-export the version of the package."""

from trimodel import __version__

__all__ = ("VERSION",)

VERSION: str = __version__
"""The current version of this module."""
