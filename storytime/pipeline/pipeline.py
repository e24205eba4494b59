"""
Orchestrates the full StoryTime pipeline from uploaded photo to illustrated book.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence, TypeVar

import yaml

from storytime.ai_generation import GenerationCapability, StudioGenerationCapability
from storytime.common import (
    AssetRef,
    CompositionIncompleteError,
    ConsistencyViolation,
    FatalStageFailure,
    InvalidInputError,
    RecoverableStageFailure,
)
from storytime.config import StudioSettings
from storytime.story_generation import (
    ComposedStory,
    StoryComposer,
    StoryPage,
    StoryPreferences,
)

from .stages import CharacterStyler, CoverComposer, PageIllustrator, validate_photo

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]

T = TypeVar("T")


class StagePolicy(str, enum.Enum):
    FATAL = "fatal"
    RECOVERABLE = "recoverable"


STAGE_POLICIES: Mapping[str, StagePolicy] = MappingProxyType(
    {
        CharacterStyler.stage_name: StagePolicy.FATAL,
        StoryComposer.stage_name: StagePolicy.FATAL,
        CoverComposer.stage_name: StagePolicy.RECOVERABLE,
        PageIllustrator.stage_name: StagePolicy.RECOVERABLE,
    }
)


@dataclass(frozen=True)
class StoryPageData:
    """A finished page: composed text and scene plus its illustration."""

    text: str
    scene_description: str
    image_uri: AssetRef

    @property
    def page(self) -> StoryPage:
        return StoryPage(text=self.text, scene_description=self.scene_description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "scene_description": self.scene_description,
            "image_uri": self.image_uri.uri,
        }


@dataclass(frozen=True)
class StoryData:
    """Aggregated output of the StoryTime pipeline."""

    title: str
    character_description: str
    character_name: str
    original_character_uri: AssetRef
    cover_image_uri: AssetRef
    pages: tuple[StoryPageData, ...]

    def with_page(self, index: int, page: StoryPageData) -> "StoryData":
        """Return a copy with the page at ``index`` replaced."""
        if not 0 <= index < len(self.pages):
            raise IndexError(f"Page index {index} is out of range for {len(self.pages)} pages.")
        pages = list(self.pages)
        pages[index] = page
        return replace(self, pages=tuple(pages))

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "character_description": self.character_description,
            "character_name": self.character_name,
            "original_character_uri": self.original_character_uri.uri,
            "cover_image_uri": self.cover_image_uri.uri,
            "pages": [page.to_dict() for page in self.pages],
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True, width=120)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StoryData":
        for key in ("title", "character_name", "original_character_uri", "pages"):
            if key not in payload:
                raise ValueError(f"Story payload must include '{key}'.")

        original = AssetRef.parse(payload["original_character_uri"])
        cover = AssetRef.parse(payload.get("cover_image_uri") or original.uri)

        pages: list[StoryPageData] = []
        for entry in payload.get("pages") or []:
            try:
                pages.append(
                    StoryPageData(
                        text=str(entry["text"]).strip(),
                        scene_description=str(entry["scene_description"]).strip(),
                        image_uri=AssetRef.parse(entry.get("image_uri") or original.uri),
                    )
                )
            except (KeyError, TypeError, AttributeError) as exc:
                raise ValueError(f"Invalid page entry: {entry!r}"[:200]) from exc

        if not pages:
            raise ValueError("Story payload must include at least one page.")

        return cls(
            title=str(payload["title"]).strip(),
            character_description=str(payload.get("character_description", "")).strip(),
            character_name=str(payload["character_name"]).strip(),
            original_character_uri=original,
            cover_image_uri=cover,
            pages=tuple(pages),
        )

    @classmethod
    def from_yaml(cls, source: str | Path) -> "StoryData":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Story YAML must deserialize to a mapping.")
        return cls.from_dict(data)


@dataclass(frozen=True)
class PipelineRun:
    """A finished story plus the non-critical stages that fell back."""

    story: StoryData
    recovered_failures: tuple[RecoverableStageFailure, ...] = field(default_factory=tuple)

    @property
    def fully_generated(self) -> bool:
        return not self.recovered_failures


@dataclass(frozen=True)
class _StageOutcome:
    value: Any
    failure: RecoverableStageFailure | None = None


class StoryPipeline:
    """
    High-level coordinator that chains the generation stages together.

    Stage order is fixed: style character, compose story, then cover and page
    illustrations. Whether a failing stage aborts the run or falls back to the
    styled character is looked up in :data:`STAGE_POLICIES`.
    """

    def __init__(
        self,
        *,
        capability: GenerationCapability | None = None,
        settings: StudioSettings | None = None,
        styler: CharacterStyler | None = None,
        composer: StoryComposer | None = None,
        cover_composer: CoverComposer | None = None,
        illustrator: PageIllustrator | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._settings = settings or StudioSettings.from_env()
        capability = capability or StudioGenerationCapability(settings=self._settings)

        self._styler = styler or CharacterStyler(capability)
        self._composer = composer or StoryComposer(
            capability,
            target_pages=self._settings.target_pages,
        )
        self._cover_composer = cover_composer or CoverComposer(capability)
        self._illustrator = illustrator or PageIllustrator(capability)
        self._max_workers = max_workers if max_workers is not None else self._settings.max_workers
        if self._max_workers < 1:
            raise ValueError("max_workers must be at least 1.")

    def run(
        self,
        photo: str | AssetRef,
        preferences: StoryPreferences,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> PipelineRun:
        """
        Run every stage and assemble the finished story.

        Raises
        ------
        InvalidInputError
            The photo is not image data or the character name is missing. No
            generation call is made.
        FatalStageFailure, CompositionIncompleteError
            Character styling or story composition failed.
        ConsistencyViolation
            The assembled page list does not match the composed story.
        """
        photo_asset = validate_photo(photo)
        character_name = preferences.require_character_name()

        self._notify(progress_callback, "character:styling", character_name=character_name)
        styled = self._run_fatal(
            CharacterStyler.stage_name,
            lambda: self._styler.style(photo_asset, preferences),
        )
        self._notify(progress_callback, "character:styled")

        self._notify(progress_callback, "story:composing")
        story = self._run_fatal(
            StoryComposer.stage_name,
            lambda: self._composer.compose(styled, preferences),
        )
        total_pages = story.page_count
        self._notify(
            progress_callback,
            "story:composed",
            title=story.title,
            total_pages=total_pages,
        )

        cover_outcome, page_outcomes = self._illustrate(
            styled=styled,
            story=story,
            preferences=preferences,
            progress_callback=progress_callback,
        )

        story_data = build_story_data(
            story=story,
            character_name=character_name,
            styled_character=styled,
            cover=cover_outcome.value,
            page_images=[outcome.value for outcome in page_outcomes],
        )
        recovered = tuple(
            outcome.failure
            for outcome in (cover_outcome, *page_outcomes)
            if outcome.failure is not None
        )

        self._notify(
            progress_callback,
            "pipeline:complete",
            total_pages=total_pages,
            fallbacks=len(recovered),
        )
        return PipelineRun(story=story_data, recovered_failures=recovered)

    def regenerate_page_illustration(
        self,
        base_character: str | AssetRef,
        page_text: str,
        scene_description: str,
        preferences: StoryPreferences,
        page_specific_details: str | None = None,
    ) -> AssetRef:
        """
        Re-illustrate one page with (possibly edited) text and extra scene notes.

        Raises :class:`RegenerationFailure` on any generation failure.
        """
        if not scene_description or not scene_description.strip():
            raise InvalidInputError("A scene description is required to regenerate an illustration.")

        page = StoryPage(text=(page_text or "").strip(), scene_description=scene_description.strip())
        image = self._illustrator.regenerate(
            base_character,
            page,
            preferences,
            page_specific_details,
        )
        logger.info("Regenerated illustration for scene %r.", page.scene_description[:50])
        return image

    def _illustrate(
        self,
        *,
        styled: AssetRef,
        story: ComposedStory,
        preferences: StoryPreferences,
        progress_callback: ProgressCallback | None,
    ) -> tuple[_StageOutcome, list[_StageOutcome]]:
        total_pages = story.page_count

        def cover_task() -> _StageOutcome:
            self._notify(progress_callback, "cover:generating", title=story.title)
            outcome = self._run_recoverable(
                CoverComposer.stage_name,
                lambda: self._cover_composer.compose_cover(styled, story.title, preferences),
                fallback=styled,
            )
            self._notify(
                progress_callback,
                "cover:done",
                fallback=outcome.failure is not None,
            )
            return outcome

        def page_task(index: int, page: StoryPage) -> _StageOutcome:
            self._notify(
                progress_callback,
                "page:processing",
                page_index=index,
                total_pages=total_pages,
            )
            outcome = self._run_recoverable(
                PageIllustrator.stage_name,
                lambda: self._illustrator.illustrate(styled, page, preferences),
                fallback=styled,
                page_index=index,
            )
            self._notify(
                progress_callback,
                "page:done",
                page_index=index,
                total_pages=total_pages,
                fallback=outcome.failure is not None,
            )
            return outcome

        if self._max_workers == 1:
            cover = cover_task()
            pages = [page_task(index, page) for index, page in enumerate(story.pages, start=1)]
            return cover, pages

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            cover_future = executor.submit(cover_task)
            page_futures = [
                executor.submit(page_task, index, page)
                for index, page in enumerate(story.pages, start=1)
            ]
            # Futures are read back in submission order, so pages keep composer order.
            return cover_future.result(), [future.result() for future in page_futures]

    @staticmethod
    def _run_fatal(stage: str, call: Callable[[], T]) -> T:
        if STAGE_POLICIES[stage] is not StagePolicy.FATAL:
            raise ValueError(f"Stage {stage!r} is not classified as fatal.")
        try:
            return call()
        except (InvalidInputError, FatalStageFailure, CompositionIncompleteError):
            raise
        except Exception as exc:
            raise FatalStageFailure(str(exc) or exc.__class__.__name__, stage=stage) from exc

    @staticmethod
    def _run_recoverable(
        stage: str,
        call: Callable[[], AssetRef],
        *,
        fallback: AssetRef,
        page_index: int | None = None,
    ) -> _StageOutcome:
        if STAGE_POLICIES[stage] is not StagePolicy.RECOVERABLE:
            raise ValueError(f"Stage {stage!r} is not classified as recoverable.")
        try:
            return _StageOutcome(value=call())
        except Exception as exc:
            location = f" (page {page_index})" if page_index is not None else ""
            logger.warning(
                "Stage %s%s failed, using the styled character instead: %s",
                stage,
                location,
                exc,
            )
            failure = RecoverableStageFailure(str(exc) or exc.__class__.__name__, stage=stage)
            failure.__cause__ = exc
            return _StageOutcome(value=fallback, failure=failure)

    @staticmethod
    def _notify(
        callback: ProgressCallback | None,
        stage: str,
        **payload: Any,
    ) -> None:
        if callback is not None:
            callback(stage, payload)


def build_story_data(
    *,
    story: ComposedStory,
    character_name: str,
    styled_character: AssetRef,
    cover: AssetRef,
    page_images: Sequence[AssetRef],
) -> StoryData:
    """
    Assemble a :class:`StoryData` from already generated assets.

    Raises :class:`ConsistencyViolation` when the image count differs from the page count.
    """
    if len(page_images) != story.page_count:
        raise ConsistencyViolation(
            f"Received {len(page_images)} illustrations for a story with {story.page_count} pages."
        )
    return StoryData(
        title=story.title,
        character_description=story.character_description,
        character_name=character_name,
        original_character_uri=styled_character,
        cover_image_uri=cover,
        pages=tuple(
            StoryPageData(
                text=page.text,
                scene_description=page.scene_description,
                image_uri=image,
            )
            for page, image in zip(story.pages, page_images)
        ),
    )
