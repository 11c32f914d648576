"""
Tools module for the content store.

This module provides operator tooling:
- store_cli: init, export, import, lifecycle refresh and event listing
"""

from .store_cli import StoreCLI

__all__ = ["StoreCLI"]
