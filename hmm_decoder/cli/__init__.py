"""
Command-line interface module.

CLI tools for evaluating and decoding observation files.
"""

from .main import app

__all__ = [
    "app"
]
