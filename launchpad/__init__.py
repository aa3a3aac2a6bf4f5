"""Bonding-curve token launchpad - Python implementation."""

__version__ = "0.1.0"

from launchpad.launchpad import Launchpad, get_default_launchpad  # noqa: E402

__all__ = ["Launchpad", "get_default_launchpad", "__version__"]
