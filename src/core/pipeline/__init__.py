"""
News refresh pipeline.
"""

from .refresh import RefreshOrchestrator, uniform_rows

__all__ = ['RefreshOrchestrator', 'uniform_rows']
