"""
AI generation package for StoryTime.
"""

from .capability import GenerationCapability, GenerationMode, StudioGenerationCapability
from .prompting import (
    StorybookPrompt,
    build_character_prompt,
    build_cover_prompt,
    build_page_illustration_prompt,
    merge_scene_details,
)
from .replicate_service import ReplicateImageGenerator, normalize_image_outputs

__all__ = [
    "GenerationCapability",
    "GenerationMode",
    "StudioGenerationCapability",
    "StorybookPrompt",
    "build_character_prompt",
    "build_cover_prompt",
    "build_page_illustration_prompt",
    "merge_scene_details",
    "ReplicateImageGenerator",
    "normalize_image_outputs",
]
