"""
End-to-end orchestration for StoryTime story and image generation.
"""

from .pipeline import (
    STAGE_POLICIES,
    PipelineRun,
    ProgressCallback,
    StagePolicy,
    StoryData,
    StoryPageData,
    StoryPipeline,
    build_story_data,
)
from .stages import CharacterStyler, CoverComposer, PageIllustrator, validate_photo

__all__ = [
    "STAGE_POLICIES",
    "PipelineRun",
    "ProgressCallback",
    "StagePolicy",
    "StoryData",
    "StoryPageData",
    "StoryPipeline",
    "build_story_data",
    "CharacterStyler",
    "CoverComposer",
    "PageIllustrator",
    "validate_photo",
]
