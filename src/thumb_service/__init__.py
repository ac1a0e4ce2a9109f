"""
PDF Thumbnail Service package.

This module provides a FastAPI application that accepts PDF urls, renders a
thumbnail of the first page in the background and serves the stored
thumbnails newest first under `/1/pdf/thumbnails`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
