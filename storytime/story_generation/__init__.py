"""
Story generation utilities for composing personalized StoryTime narratives.
"""

from .preferences import StoryPreferences
from .prompting import StoryPrompt, build_story_prompt
from .story_service import ComposedStory, StoryComposer, StoryPage, parse_composed_story

__all__ = [
    "StoryPreferences",
    "StoryPrompt",
    "build_story_prompt",
    "ComposedStory",
    "StoryComposer",
    "StoryPage",
    "parse_composed_story",
]
