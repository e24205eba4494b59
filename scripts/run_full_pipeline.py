"""
CLI example to run the complete StoryTime pipeline end-to-end.

Usage:
    python scripts/run_full_pipeline.py \
        --photo example_images/maya.jpg \
        --name "Maya" \
        --theme "space adventure" \
        --moral "courage" \
        --output storybook.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime import create_story  # noqa: E402
from storytime.common import StoryStudioError, load_photo  # noqa: E402


class ProgressTracker:
    """
    Provides user-friendly command-line progress updates for the StoryTime pipeline.
    """

    def __init__(self) -> None:
        self._page_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "character:styling":
                name = payload.get("character_name", "the hero")
                self._write(f"[1/4] Styling {name} as a storybook character...")
            case "character:styled":
                self._write("[1/4] Character ready.")
            case "story:composing":
                self._write("[2/4] Writing the story...")
            case "story:composed":
                title = payload.get("title", "")
                total = payload.get("total_pages", 0)
                self._write(f'[2/4] "{title}" written in {total} pages.')
                self._write("[3/4] Painting the cover and page illustrations...")
                self._page_bar = tqdm(total=total, desc="Illustrated pages", unit="page")
            case "cover:done":
                if payload.get("fallback"):
                    self._write("  Cover generation failed; using the styled character instead.")
            case "page:done":
                if payload.get("fallback"):
                    self._write(
                        f"  Page {payload.get('page_index')} illustration failed; "
                        "using the styled character instead."
                    )
                if self._page_bar is not None:
                    self._page_bar.update(1)
            case "pipeline:complete":
                self.close()
                self._write("[4/4] Story complete.")

    def close(self) -> None:
        if self._page_bar is not None:
            self._page_bar.close()
            self._page_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the full StoryTime generation pipeline.")
    parser.add_argument("--photo", required=True, help="Path to the character photo.")
    parser.add_argument("--name", required=True, help="Name of the story's hero.")
    parser.add_argument("--theme", required=True, help="Story theme, e.g. 'underwater adventure'.")
    parser.add_argument("--moral", required=True, help="Moral lesson, e.g. 'kindness'.")
    parser.add_argument(
        "--details",
        default=None,
        help="Optional additional details for setting, plot, or style.",
    )
    parser.add_argument(
        "--output",
        default="storybook.yaml",
        help="Output YAML file to store the finished story.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        photo = load_photo(args.photo)
    except StoryStudioError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    tracker = ProgressTracker()
    try:
        result = create_story(
            photo,
            args.name,
            args.theme,
            args.moral,
            args.details,
            progress_callback=tracker,
        )
    finally:
        tracker.close()

    if not result.success or result.data is None:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        tqdm.write(f"Warning: {warning}")

    output_path = Path(args.output)
    output_path.write_text(result.data.to_yaml(), encoding="utf-8")
    print(f"Saved story to {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
