"""
Finalize a saved story: render the PDF and simulate emailing it.

Usage:
    python scripts/checkout.py --story storybook.yaml --email parent@example.com

No email is actually sent; the delivery is only logged.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from storytime import BookCheckoutService, StoryData  # noqa: E402
from storytime.common import CheckoutError  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulated StoryTime checkout.")
    parser.add_argument("--story", required=True, help="Story YAML to finalize.")
    parser.add_argument("--email", required=True, help="Address the book is (notionally) sent to.")
    parser.add_argument(
        "--output-dir",
        default="finished_books",
        help="Directory for the rendered PDF (default: finished_books).",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    story = StoryData.from_yaml(args.story)
    service = BookCheckoutService()
    try:
        receipt = service.checkout(story, args.email, output_dir=args.output_dir)
    except CheckoutError as exc:
        print(f"Error finalizing book: {exc}", file=sys.stderr)
        return 1

    print(f"Book rendered to {receipt.pdf_path} ({receipt.page_count} pages).")
    print(f"A copy would be emailed to {receipt.email}. (Simulation: nothing was sent.)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
