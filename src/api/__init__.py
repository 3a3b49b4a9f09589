"""
HTTP API for the news pipeline.
"""

from .app import create_app

__all__ = ['create_app']
