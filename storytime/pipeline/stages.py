"""
Image stages of the StoryTime pipeline: character styling, cover, and page illustrations.
"""

from __future__ import annotations

import logging
from typing import Any

from storytime.ai_generation import (
    GenerationCapability,
    GenerationMode,
    StorybookPrompt,
    build_character_prompt,
    build_cover_prompt,
    build_page_illustration_prompt,
    merge_scene_details,
)
from storytime.common import (
    AssetRef,
    InvalidAssetError,
    InvalidInputError,
    RegenerationFailure,
    StageFailure,
    is_image_data_uri,
)
from storytime.story_generation import StoryPage, StoryPreferences

logger = logging.getLogger(__name__)


def _expect_image(result: Any, *, stage: str, failure_message: str) -> AssetRef:
    """Accept a capability result only if it is valid image data."""
    if isinstance(result, AssetRef):
        return result
    if is_image_data_uri(result):
        return AssetRef.parse(result)
    raise StageFailure(f"{failure_message} The result is not a valid image data URI.", stage=stage)


class _ImageStage:
    stage_name = "image"

    def __init__(self, capability: GenerationCapability) -> None:
        self._capability = capability

    def _generate(
        self,
        prompt: StorybookPrompt,
        reference: AssetRef,
        *,
        failure_message: str,
    ) -> AssetRef:
        try:
            result = self._capability.generate(
                prompt,
                reference_image=reference,
                mode=GenerationMode.IMAGE,
            )
        except StageFailure:
            raise
        except Exception as exc:
            raise StageFailure(f"{failure_message} {exc}", stage=self.stage_name) from exc

        if result is None:
            raise StageFailure(
                f"{failure_message} The AI flow did not return an image.",
                stage=self.stage_name,
            )
        return _expect_image(result, stage=self.stage_name, failure_message=failure_message)


class CharacterStyler(_ImageStage):
    """
    Turns the uploaded photo into the canonical styled character.

    Every later stage uses this asset as its reference, so failures here are fatal.
    """

    stage_name = "style_character"

    def style(self, photo: str | AssetRef, preferences: StoryPreferences) -> AssetRef:
        photo_asset = validate_photo(photo)
        prompt = build_character_prompt(
            story_theme=preferences.story_theme,
            moral_lesson=preferences.moral_lesson,
            character_name=preferences.character_name,
            additional_details=preferences.additional_details,
        )
        styled = self._generate(
            prompt,
            photo_asset,
            failure_message="Failed to animate character.",
        )
        logger.info("Styled character ready (%s).", styled.mime_type)
        return styled


class CoverComposer(_ImageStage):
    """Generates the book cover from the styled character and the story title."""

    stage_name = "compose_cover"

    def compose_cover(
        self,
        styled_character: AssetRef,
        title: str,
        preferences: StoryPreferences,
    ) -> AssetRef:
        prompt = build_cover_prompt(
            title=title,
            story_theme=preferences.story_theme,
            character_name=preferences.require_character_name(),
            additional_details=preferences.additional_details,
        )
        return self._generate(
            prompt,
            styled_character,
            failure_message=f'Cover generation failed for title: "{title}".',
        )


class PageIllustrator(_ImageStage):
    """
    Illustrates one story page with the styled character as the reference.

    ``page_specific_details`` are appended after the story's general details,
    never in place of them.
    """

    stage_name = "illustrate_page"

    def illustrate(
        self,
        styled_character: AssetRef,
        page: StoryPage,
        preferences: StoryPreferences,
        page_specific_details: str | None = None,
    ) -> AssetRef:
        prompt = build_page_illustration_prompt(
            scene_description=page.scene_description,
            page_text=page.text,
            story_theme=preferences.story_theme,
            moral_lesson=preferences.moral_lesson,
            additional_details=merge_scene_details(
                preferences.additional_details,
                page_specific_details,
            ),
        )
        scene_preview = page.scene_description[:50]
        return self._generate(
            prompt,
            styled_character,
            failure_message=f'Page illustration generation failed for scene: "{scene_preview}...".',
        )

    def regenerate(
        self,
        base_character: str | AssetRef,
        page: StoryPage,
        preferences: StoryPreferences,
        page_specific_details: str | None = None,
    ) -> AssetRef:
        """
        Re-illustrate a single existing page on request.

        Unlike the pipeline path there is no fallback: a generation failure raises
        :class:`RegenerationFailure` and a malformed base image or blank scene
        raises :class:`InvalidInputError`, so the caller can keep the previous image.
        """
        try:
            reference = AssetRef.parse(base_character)
        except InvalidAssetError as exc:
            raise InvalidInputError("Invalid base character image data URI format.") from exc

        scene = (page.scene_description or "").strip()
        if not scene:
            raise InvalidInputError("A scene description is required to regenerate an illustration.")
        page = StoryPage(text=(page.text or "").strip(), scene_description=scene)

        try:
            return self.illustrate(reference, page, preferences, page_specific_details)
        except StageFailure as exc:
            raise RegenerationFailure(str(exc)) from exc


def validate_photo(photo: str | AssetRef) -> AssetRef:
    """Check the uploaded photo before any generation call is made."""
    try:
        return AssetRef.parse(photo)
    except InvalidAssetError as exc:
        raise InvalidInputError("Invalid character image data URI format.") from exc
