"""
Caller-facing entry points that turn pipeline exceptions into result objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from storytime.common import (
    AssetRef,
    StoryStudioError,
    friendly_error_message,
)
from storytime.pipeline import ProgressCallback, StoryData, StoryPipeline
from storytime.story_generation import StoryPreferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoryCreationResult:
    """Either a complete story or a human-readable error, never both."""

    success: bool
    data: StoryData | None = None
    error: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class IllustrationResult:
    """Outcome of a single-page regeneration request."""

    success: bool
    image_uri: AssetRef | None = None
    error: str | None = None


def create_story(
    photo: str | AssetRef,
    character_name: str,
    story_theme: str,
    moral_lesson: str,
    additional_details: str | None = None,
    *,
    pipeline: StoryPipeline | None = None,
    progress_callback: ProgressCallback | None = None,
) -> StoryCreationResult:
    """
    Create an illustrated story from a photo and the user's preferences.

    Cover and page illustration failures are absorbed (reported in ``warnings``);
    any fatal failure yields ``success=False`` with a categorized message.
    """
    try:
        preferences = StoryPreferences.from_mapping(
            {
                "character_name": character_name,
                "story_theme": story_theme,
                "moral_lesson": moral_lesson,
                "additional_details": additional_details,
            }
        )
        pipeline = pipeline or StoryPipeline()
        run = pipeline.run(photo, preferences, progress_callback=progress_callback)
    except StoryStudioError as exc:
        logger.exception("Error while creating the story.")
        return StoryCreationResult(success=False, error=friendly_error_message(exc))
    except Exception as exc:
        logger.exception("Unexpected error while creating the story.")
        return StoryCreationResult(success=False, error=friendly_error_message(exc))

    warnings = tuple(
        f"{failure.stage}: {friendly_error_message(failure)}"
        for failure in run.recovered_failures
    )
    return StoryCreationResult(success=True, data=run.story, warnings=warnings)


def regenerate_page_illustration(
    base_character: str | AssetRef,
    page_text: str,
    scene_description: str,
    story_theme: str,
    moral_lesson: str,
    additional_details: str | None = None,
    page_specific_details: str | None = None,
    *,
    pipeline: StoryPipeline | None = None,
) -> IllustrationResult:
    """
    Regenerate one page illustration; failures are returned, never replaced by a fallback.
    """
    try:
        preferences = StoryPreferences.from_mapping(
            {
                "story_theme": story_theme,
                "moral_lesson": moral_lesson,
                "additional_details": additional_details,
            }
        )
        pipeline = pipeline or StoryPipeline()
        image = pipeline.regenerate_page_illustration(
            base_character,
            page_text,
            scene_description,
            preferences,
            page_specific_details,
        )
    except StoryStudioError as exc:
        logger.warning("Page illustration regeneration failed: %s", exc)
        return IllustrationResult(success=False, error=friendly_error_message(exc))
    except Exception as exc:
        logger.exception("Unexpected error while regenerating a page illustration.")
        return IllustrationResult(success=False, error=friendly_error_message(exc))

    return IllustrationResult(success=True, image_uri=image)
