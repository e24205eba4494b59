"""
Simulated checkout: render the finished book to PDF and pretend to email it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from storytime.common import CheckoutError
from storytime.config import StudioSettings
from storytime.pdf_generation import StorybookPDFBuilder
from storytime.pipeline import StoryData

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class CheckoutReceipt:
    email: str
    pdf_path: Path
    page_count: int
    notified: str | None = None


def slugify(text: str) -> str:
    slug = _SLUG_PATTERN.sub("-", text.lower()).strip("-")
    return slug or "storybook"


class BookCheckoutService:
    """
    Finalizes a book for a customer.

    No email is ever sent; deliveries are logged. The optional notification
    recipient comes from configuration (``STORYTIME_CHECKOUT_RECIPIENT``).
    """

    def __init__(
        self,
        *,
        pdf_builder: StorybookPDFBuilder | None = None,
        notification_recipient: str | None = None,
        settings: StudioSettings | None = None,
    ) -> None:
        self._pdf_builder = pdf_builder or StorybookPDFBuilder()
        if notification_recipient is None:
            settings = settings or StudioSettings.from_env()
            notification_recipient = settings.checkout_notification_recipient
        self._notification_recipient = notification_recipient

    @property
    def notification_recipient(self) -> str | None:
        return self._notification_recipient

    def checkout(
        self,
        story: StoryData,
        email: str,
        *,
        output_dir: Path | str,
    ) -> CheckoutReceipt:
        address = (email or "").strip()
        if not EMAIL_PATTERN.match(address):
            raise CheckoutError("Please enter a valid email address.")

        pdf_path = Path(output_dir) / f"{slugify(story.title)}.pdf"
        try:
            self._pdf_builder.build(story, pdf_path)
        except OSError as exc:
            raise CheckoutError(f"Could not finalize the book: {exc}") from exc

        logger.info(
            "Simulated delivery of %r (%d pages) to %s from %s",
            story.title,
            len(story.pages),
            address,
            pdf_path,
        )
        if self._notification_recipient:
            logger.info(
                "Simulated checkout notification for %r sent to %s",
                story.title,
                self._notification_recipient,
            )

        return CheckoutReceipt(
            email=address,
            pdf_path=pdf_path,
            page_count=len(story.pages),
            notified=self._notification_recipient,
        )
