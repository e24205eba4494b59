"""
Prompt construction utilities for the StoryTime story composition step.
"""

from __future__ import annotations

from dataclasses import dataclass

from .preferences import StoryPreferences

DEFAULT_LENGTH_GUIDANCE = (
    "Write at least 500 words in total across all pages so the story feels complete, "
    "while each page stays short enough to read aloud in under a minute."
)


@dataclass(frozen=True)
class StoryPrompt:
    """
    Container for the system and user prompts passed to the story model.
    """

    system: str
    user: str


def build_story_prompt(
    preferences: StoryPreferences,
    *,
    target_pages: int,
    length_guidance: str = DEFAULT_LENGTH_GUIDANCE,
) -> StoryPrompt:
    """
    Build the prompt pair used to solicit a paged story as JSON.
    """
    character_name = preferences.require_character_name()

    system_prompt = f"""You are a children's book author and art director.
You write unique, engaging picture-book stories and plan an illustration for every page.

Writing directives:
- {character_name} is the hero of the story; keep their agency central in every page.
- The attached image shows {character_name} as they will be drawn. Describe them faithfully in the character description.
- Build the plot around the requested theme and make the moral lesson clear by the ending.
- Keep the language warm, playful, and age-appropriate for young children.
- {length_guidance}
- Aim for about {target_pages} pages. Each page needs its own text and its own scene.
- Scene descriptions are briefs for an illustrator: setting, the character's action and expression, key props, lighting, and mood. They must never ask for written words, letters, or captions inside the picture.

Safety guardrails:
- Avoid frightening peril, violence, or mature themes.
- Use inclusive, respectful language only.
- Do not mention you are an AI and do not include meta commentary.

Output format:
Respond with valid JSON matching this schema:
{{
  "title": "string, a short captivating story title",
  "characterDescription": "string, 2-3 sentences describing how {character_name} looks in the image",
  "pages": [
    {{
      "text": "string, the story text printed on this page",
      "sceneDescription": "string, 2-4 sentences describing the illustration for this page"
    }}
  ]
}}

Do not include commentary outside the JSON."""

    user_prompt = f"""Write a story using the following preferences:

{preferences.summary_for_prompt()}

Create the description of the character based on the attached image.
Respond with the JSON object only."""

    return StoryPrompt(system=system_prompt, user=user_prompt)
