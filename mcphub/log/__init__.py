"""
Logging module for the hub.
This module provides the root logger setup shared by the CLI and the launcher.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
