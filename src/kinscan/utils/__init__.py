"""Utility modules for kinscan."""

from kinscan.utils.logging import setup_logging

__all__ = ["setup_logging"]
