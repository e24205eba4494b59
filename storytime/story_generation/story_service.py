"""
Story composition: turns the styled character and preferences into a paged story.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from storytime.ai_generation.capability import GenerationCapability, GenerationMode
from storytime.common import AssetRef, CompositionIncompleteError
from storytime.config import DEFAULT_TARGET_PAGES

from .preferences import StoryPreferences
from .prompting import StoryPrompt, build_story_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoryPage:
    """
    A single page of the composed story, before illustration.
    """

    text: str
    scene_description: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "scene_description": self.scene_description,
        }


@dataclass(frozen=True)
class ComposedStory:
    """Validated output of the story composer."""

    title: str
    character_description: str
    pages: tuple[StoryPage, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)


class StoryComposer:
    """
    Asks the structured generation capability for a story and validates it once.

    Everything downstream can rely on a non-empty title, a non-empty character
    description, and at least one page with text and a scene description.
    """

    stage_name = "compose_story"

    def __init__(
        self,
        capability: GenerationCapability,
        *,
        target_pages: int = DEFAULT_TARGET_PAGES,
    ) -> None:
        if target_pages < 1:
            raise ValueError("target_pages must be at least 1.")
        self._capability = capability
        self._target_pages = target_pages

    @property
    def target_pages(self) -> int:
        return self._target_pages

    def compose(
        self,
        styled_character: AssetRef,
        preferences: StoryPreferences,
    ) -> ComposedStory:
        prompt: StoryPrompt = build_story_prompt(
            preferences,
            target_pages=self._target_pages,
        )

        payload = self._capability.generate(
            prompt.user,
            reference_image=styled_character,
            mode=GenerationMode.STRUCTURED,
            system_prompt=prompt.system,
        )

        story = parse_composed_story(payload)
        logger.info(
            "Composed story %r with %d pages for %s.",
            story.title,
            story.page_count,
            preferences.character_name,
        )
        return story


def parse_composed_story(payload: Any) -> ComposedStory:
    """
    Convert a loosely-shaped structured result into a :class:`ComposedStory`.

    Raises :class:`CompositionIncompleteError` when any required field is missing.
    """
    if not isinstance(payload, Mapping):
        raise CompositionIncompleteError(
            "Failed to generate story. The AI flow did not return a structured result."
        )

    title = _clean_text(payload.get("title"))
    character_description = _clean_text(
        payload.get("characterDescription") or payload.get("character_description")
    )

    if not title:
        raise CompositionIncompleteError("Failed to generate story. The story has no title.")
    if not character_description:
        raise CompositionIncompleteError(
            "Failed to generate story. The story has no character description."
        )

    raw_pages = payload.get("pages")
    if not isinstance(raw_pages, Sequence) or isinstance(raw_pages, (str, bytes)):
        raise CompositionIncompleteError("Failed to generate story. The story has no pages.")

    pages = _convert_to_pages(raw_pages)
    if not pages:
        raise CompositionIncompleteError("Failed to generate story. The story has no pages.")

    return ComposedStory(
        title=title,
        character_description=character_description,
        pages=tuple(pages),
    )


def _convert_to_pages(pages_data: Iterable[Any]) -> list[StoryPage]:
    pages: list[StoryPage] = []
    for number, item in enumerate(pages_data, start=1):
        if not isinstance(item, Mapping):
            raise CompositionIncompleteError(f"Page {number} is not a structured page entry.")

        text = _clean_text(item.get("text"))
        scene = _clean_text(item.get("sceneDescription") or item.get("scene_description"))
        if not text or not scene:
            raise CompositionIncompleteError(
                f"Page {number} is missing text or sceneDescription content."
            )

        pages.append(StoryPage(text=text, scene_description=scene))
    return pages


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
