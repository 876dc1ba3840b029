"""Passbook ticket redemption backend."""

__version__ = "0.1.0"
