"""
PDF rendering for finished StoryTime books.
"""

from .builder import PAGE_SIZES, PageLayoutConfig, StorybookPDFBuilder

__all__ = ["PAGE_SIZES", "PageLayoutConfig", "StorybookPDFBuilder"]
