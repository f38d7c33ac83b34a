"""Launchpad: issue a fungible token with metadata, supply and authority policy."""

__version__ = "0.1.0"
