"""
Structured representation of the story preferences gathered from the creation form.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping

from storytime.common import InvalidInputError


def _coerce_optional_str(value: Any) -> str | None:
    if value is None:
        return None

    text = str(value).strip()
    return text or None


def _require_str(data: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        text = _coerce_optional_str(data.get(key))
        if text:
            return text
    raise InvalidInputError(f"Story preferences must include a non-empty '{keys[0]}' field.")


@dataclass(frozen=True)
class StoryPreferences:
    """
    Canonical representation of what the user asked the story to be about.

    Attributes
    ----------
    story_theme:
        High-level theme (adventure, mystery, fantasy, ...).
    moral_lesson:
        Lesson the story should teach (honesty, kindness, courage, ...).
    character_name:
        Name of the hero. Optional while styling the photo, required from story
        composition onwards.
    additional_details:
        Free-form notes about setting, plot, or style.
    """

    story_theme: str
    moral_lesson: str
    character_name: str | None = None
    additional_details: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoryPreferences":
        """
        Build preferences from a dict-like object (e.g., parsed JSON/YAML form data).
        """
        return cls(
            story_theme=_require_str(data, "story_theme", "theme"),
            moral_lesson=_require_str(data, "moral_lesson", "moral", "lesson"),
            character_name=_coerce_optional_str(
                data.get("character_name") or data.get("name")
            ),
            additional_details=_coerce_optional_str(
                data.get("additional_details") or data.get("details")
            ),
        )

    def with_character_name(self, name: str | None) -> "StoryPreferences":
        return replace(self, character_name=_coerce_optional_str(name))

    def require_character_name(self) -> str:
        if not self.character_name:
            raise InvalidInputError("A character name is required to compose the story.")
        return self.character_name

    def context_bullets(self) -> list[str]:
        """
        Produce bullet-friendly lines describing the request, for prompt conditioning.
        """
        bullets: list[str] = []

        if self.character_name:
            bullets.append(f"Main character name: {self.character_name}")

        bullets.append(f"Story theme: {self.story_theme}")
        bullets.append(f"Moral lesson: {self.moral_lesson}")

        if self.additional_details:
            bullets.append(f"Additional details: {self.additional_details}")

        return bullets

    def summary_for_prompt(self) -> str:
        return "\n".join(f"- {line}" for line in self.context_bullets())

    def to_dict(self) -> dict[str, Any]:
        return {
            "character_name": self.character_name,
            "story_theme": self.story_theme,
            "moral_lesson": self.moral_lesson,
            "additional_details": self.additional_details,
        }
