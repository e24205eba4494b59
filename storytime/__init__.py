"""
StoryTime Studio: turns a photo and a few preferences into an illustrated children's book.
"""

from .actions import (
    IllustrationResult,
    StoryCreationResult,
    create_story,
    regenerate_page_illustration,
)
from .checkout import BookCheckoutService, CheckoutReceipt
from .config import StudioSettings
from .pdf_generation import StorybookPDFBuilder
from .pipeline import StoryData, StoryPageData, StoryPipeline
from .story_generation import StoryPreferences

__all__ = [
    "BookCheckoutService",
    "CheckoutReceipt",
    "IllustrationResult",
    "StoryCreationResult",
    "StoryData",
    "StoryPageData",
    "StoryPipeline",
    "StoryPreferences",
    "StorybookPDFBuilder",
    "StudioSettings",
    "create_story",
    "regenerate_page_illustration",
]
