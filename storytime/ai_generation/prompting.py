"""
Prompt construction utilities for StoryTime image generation.

Illustrations never contain rendered text: page text is passed as context only
and covers leave room for a title overlaid at print time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

SCENE_DETAILS_MARKER = "For this specific scene, also consider:"

NEGATIVE_PROMPT = (
    "text, letters, words, captions, speech bubbles, watermark, logo, signature, "
    "identity drift, distorted face, extra limbs, frightening imagery, cluttered background"
)

STYLE_DIRECTION = (
    "Vibrant children's book illustration style: soft rounded shapes, warm saturated colors, "
    "gentle lighting, and a friendly, wholesome mood."
)


@dataclass(frozen=True)
class StorybookPrompt:
    """Container for the positive and negative prompts passed to the image model."""

    positive: str
    negative: str = NEGATIVE_PROMPT


def merge_scene_details(
    general_details: str | None,
    page_specific_details: str | None = None,
) -> str | None:
    """
    Combine story-wide details with notes for one scene.

    General details always come first; scene notes are appended after the
    marker clause and never replace them.
    """
    general = general_details.strip() if general_details else ""
    specific = page_specific_details.strip() if page_specific_details else ""

    if general and specific:
        return f"{general} {SCENE_DETAILS_MARKER} {specific}"
    if specific:
        return f"{SCENE_DETAILS_MARKER} {specific}"
    return general or None


def build_character_prompt(
    *,
    story_theme: str | None,
    moral_lesson: str | None,
    character_name: str | None = None,
    additional_details: str | None = None,
) -> StorybookPrompt:
    """
    Build the prompt that restyles the uploaded photo into the canonical character.
    """
    subject = character_name.strip() if character_name and character_name.strip() else "this character"

    lines = [
        f"Generate an image of {subject} from the provided photo in a vibrant children's book illustration style.",
        "The character should be depicted in a scene that reflects the story.",
    ]
    if story_theme:
        lines.append(f'The story\'s theme is "{story_theme}".')
    if moral_lesson:
        lines.append(f'It aims to teach a moral about "{moral_lesson}".')
    if additional_details:
        lines.append(
            f'Consider these details for the setting, plot, or character\'s action: "{additional_details}".'
        )
    else:
        lines.append("The character can be in a general setting suitable for a children's story.")

    positive = f"""TASK
{" ".join(lines)}

IDENTITY
- Keep the person's recognizable features (face shape, skin tone, hair color and style) from the photo.
- The character must be clearly visible and suitable for a children's book cover or illustration.

ART DIRECTION
- {STYLE_DIRECTION}
- Do not add any text, letters, or captions to the image."""

    return StorybookPrompt(positive=positive)


def build_cover_prompt(
    *,
    title: str,
    story_theme: str,
    character_name: str,
    additional_details: str | None = None,
) -> StorybookPrompt:
    """
    Build the cover prompt. The title is context only and must not be drawn.
    """
    if not title or not title.strip():
        raise ValueError("title must be a non-empty string.")

    extra = ""
    if additional_details:
        extra = f'\n- Consider these additional details for the cover: "{additional_details}".'

    positive = f"""TASK
Generate a captivating children's book cover. The main character, {character_name}, is provided in the base image.

STORY
- The story title is "{title}".
- The story theme is "{story_theme}".{extra}

COMPOSITION
- The cover should be vibrant, engaging, and clearly display the character.
- The title text itself must NOT be part of the image; leave open space near the top for a title to be overlaid.
- Keep the character consistent with the base image.

ART DIRECTION
- {STYLE_DIRECTION}"""

    return StorybookPrompt(positive=positive)


def build_page_illustration_prompt(
    *,
    scene_description: str,
    page_text: str,
    story_theme: str,
    moral_lesson: str,
    additional_details: str | None = None,
) -> StorybookPrompt:
    """
    Build the prompt for a single page illustration.

    ``additional_details`` should already be merged with any scene-specific notes
    via :func:`merge_scene_details`.
    """
    if not scene_description or not scene_description.strip():
        raise ValueError("scene_description must be a non-empty string.")

    extra_sections: list[str] = []
    if additional_details:
        extra_sections.append(
            _format_bullet_section("ADDITIONAL DETAILS", [additional_details])
        )

    positive = f"""TASK
Generate a children's book illustration for a story page. The character from the provided base image should be depicted in this scene.

SCENE
- {scene_description.strip()}

STORY CONTEXT
- The overall story theme is "{story_theme}" and the moral is "{moral_lesson}".
- Page text for context (do NOT include this text in the image itself): "{page_text.strip()}"

ART DIRECTION
- {STYLE_DIRECTION}
- Keep the style consistent with the base character image; the character must be clearly recognizable.
- No text, letters, captions, or speech bubbles anywhere in the illustration."""

    if extra_sections:
        positive = positive + "\n\n" + "\n\n".join(extra_sections)

    return StorybookPrompt(positive=positive)


def _format_bullet_section(title: str, lines: Sequence[str]) -> str:
    bullet_block = "\n".join(f"- {line}" for line in lines if line.strip())
    return f"{title}\n{bullet_block}"
