"""
Regenerate the illustration of a single page in a saved story.

Usage:
    python scripts/regenerate_page.py \
        --story storybook.yaml \
        --page 3 \
        --story-theme "space adventure" \
        --moral "courage" \
        --details "make the rocket bright red"

The previous illustration is kept when regeneration fails.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime import StoryData, StoryPageData, regenerate_page_illustration  # noqa: E402


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Regenerate one page illustration of a StoryTime story."
    )
    parser.add_argument("--story", required=True, help="Story YAML produced by run_full_pipeline.py.")
    parser.add_argument("--page", type=int, required=True, help="1-based page number to regenerate.")
    parser.add_argument("--story-theme", required=True, help="Theme the story was created with.")
    parser.add_argument("--moral", required=True, help="Moral lesson the story was created with.")
    parser.add_argument(
        "--story-details",
        default=None,
        help="General additional details the story was created with.",
    )
    parser.add_argument(
        "--details",
        default=None,
        help="Extra visual notes for this page only.",
    )
    parser.add_argument(
        "--text",
        default=None,
        help="Edited page text. Defaults to the saved text.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Where to write the updated story (defaults to overwriting --story).",
    )
    return parser.parse_args(argv)


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    story = StoryData.from_yaml(args.story)
    index = args.page - 1
    if not 0 <= index < len(story.pages):
        print(f"Error: page must be between 1 and {len(story.pages)}.", file=sys.stderr)
        return 2

    page = story.pages[index]
    page_text = args.text if args.text is not None else page.text

    result = regenerate_page_illustration(
        story.original_character_uri,
        page_text,
        page.scene_description,
        args.story_theme,
        args.moral,
        args.story_details,
        args.details,
    )

    if not result.success or result.image_uri is None:
        print(f"Error regenerating illustration: {result.error}", file=sys.stderr)
        print("The previous illustration was kept.", file=sys.stderr)
        return 1

    updated = story.with_page(
        index,
        StoryPageData(
            text=page_text,
            scene_description=page.scene_description,
            image_uri=result.image_uri,
        ),
    )
    output_path = Path(args.output or args.story)
    output_path.write_text(updated.to_yaml(), encoding="utf-8")
    print(f"Illustration for page {args.page} regenerated; saved to {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
