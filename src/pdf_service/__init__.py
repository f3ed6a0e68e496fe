"""
HTML to PDF Service package.

This module provides a FastAPI application exposing REST endpoints. HTML
posted to `/convert` is printed to PDF by a headless Chromium process.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
