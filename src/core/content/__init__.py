"""
Long-form content expansion module.
"""

from .expander import ContentExpander

__all__ = ['ContentExpander']
