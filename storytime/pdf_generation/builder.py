"""
High-level utilities for rendering finished StoryTime books into printable PDFs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Frame, Paragraph

from storytime.common import AssetRef, InvalidAssetError, is_image_data_uri
from storytime.pipeline import StoryData, StoryPageData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageLayoutConfig:
    text_background: colors.Color
    image_background: colors.Color
    cover_background: colors.Color
    bubble_color: colors.Color
    text_color: colors.Color
    caption_color: colors.Color


DEFAULT_LAYOUT = PageLayoutConfig(
    text_background=colors.HexColor("#FFF8EC"),
    image_background=colors.HexColor("#E8F5FF"),
    cover_background=colors.HexColor("#3D6FD8"),
    bubble_color=colors.HexColor("#FFE4BD"),
    text_color=colors.HexColor("#2F2A40"),
    caption_color=colors.HexColor("#4B506D"),
)


PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
    "square": (8 * inch, 8 * inch),
}


class StorybookPDFBuilder:
    """
    Render finished stories into printable PDFs.

    The builder creates:
      * A cover page with the cover illustration and the story title overlaid.
      * One text page followed by one illustration page for every story page.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["square"],
        margin_mm: float = 18.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
        request_timeout: float = 30.0,
        body_font_path: Path | str | None = None,
    ) -> None:
        self.page_size = page_size
        self.margin = margin_mm * mm
        self.layout = layout
        self.request_timeout = request_timeout

        self.body_font = self._register_body_font(body_font_path)

        self.title_style = ParagraphStyle(
            name="StoryTitle",
            fontName="Helvetica-Bold",
            fontSize=30,
            leading=34,
            alignment=TA_CENTER,
            textColor=colors.white,
            spaceAfter=10,
        )
        self.subtitle_style = ParagraphStyle(
            name="StorySubtitle",
            fontName="Helvetica",
            fontSize=16,
            leading=20,
            alignment=TA_CENTER,
            textColor=colors.white,
        )
        self.body_style = ParagraphStyle(
            name="Body",
            fontName=self.body_font,
            fontSize=18,
            leading=27,
            alignment=TA_JUSTIFY,
            textColor=self.layout.text_color,
            spaceAfter=16,
        )
        self.footer_style = ParagraphStyle(
            name="Footer",
            fontName="Helvetica-Oblique",
            fontSize=10,
            leading=12,
            alignment=TA_CENTER,
            textColor=self.layout.caption_color,
        )

    def build_from_yaml(self, story_path: Path | str, output_path: Path | str) -> Path:
        story = StoryData.from_yaml(story_path)
        return self.build(story, output_path)

    def build(self, story: StoryData, output_path: Path | str) -> Path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        pdf = canvas.Canvas(str(output_file), pagesize=self.page_size)
        pdf.setTitle(story.title)
        pdf.setAuthor("StoryTime Studio")
        width, height = self.page_size

        self._draw_cover_page(pdf, story, width, height)

        for number, page in enumerate(story.pages, start=1):
            self._draw_text_page(pdf, story, page, number, width, height)
            self._draw_image_page(pdf, page, number, width, height)

        pdf.save()
        logger.info("Rendered %d story pages to %s", len(story.pages), output_file)
        return output_file

    # ------------------------------------------------------------------ cover rendering

    def _draw_cover_page(
        self,
        pdf: canvas.Canvas,
        story: StoryData,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.cover_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        cover = self._load_image(story.cover_image_uri.uri)
        if cover is not None:
            self._draw_full_bleed(pdf, cover, width, height)

        # Title band across the top, where the cover prompt leaves open space.
        band_height = height * 0.26
        pdf.saveState()
        pdf.setFillColor(self.layout.cover_background)
        pdf.setFillAlpha(0.78)
        pdf.rect(0, height - band_height, width, band_height, stroke=0, fill=1)
        pdf.restoreState()

        frame = Frame(
            self.margin,
            height - band_height,
            width - 2 * self.margin,
            band_height,
            showBoundary=0,
        )
        frame.addFromList(
            [
                Paragraph(escape(story.title), self.title_style),
                Paragraph(
                    f"A story starring {escape(story.character_name)}",
                    self.subtitle_style,
                ),
            ],
            pdf,
        )
        pdf.showPage()

    # ------------------------------------------------------------------ text pages

    def _draw_text_page(
        self,
        pdf: canvas.Canvas,
        story: StoryData,
        page: StoryPageData,
        number: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.text_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        bubble_width = width - (self.margin * 2 * 0.6)
        bubble_height = height - (self.margin * 2 * 0.6)
        bubble_x = (width - bubble_width) / 2
        bubble_y = (height - bubble_height) / 2

        pdf.saveState()
        pdf.setFillColor(self.layout.bubble_color)
        pdf.roundRect(bubble_x, bubble_y, bubble_width, bubble_height, 26, stroke=0, fill=1)
        pdf.restoreState()

        content_width = bubble_width - (self.margin * 2 * 0.3)
        content_height = bubble_height - (self.margin * 2 * 0.3)
        frame = Frame(
            bubble_x + (bubble_width - content_width) / 2,
            bubble_y + (bubble_height - content_height) / 2,
            content_width,
            content_height,
            showBoundary=0,
        )

        paragraphs = [
            Paragraph(escape(block).replace("\n", "<br/>"), self.body_style)
            for block in filter(None, (part.strip() for part in page.text.split("\n\n")))
        ]
        frame.addFromList(paragraphs, pdf)

        self._draw_footer(pdf, f"Page {number} • {escape(story.title)}", width)
        pdf.showPage()

    # ------------------------------------------------------------------ image pages

    def _draw_image_page(
        self,
        pdf: canvas.Canvas,
        page: StoryPageData,
        number: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.image_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        image_reader = self._load_image(page.image_uri.uri)
        if image_reader is not None:
            self._draw_full_bleed(pdf, image_reader, width, height)

        self._draw_footer(pdf, f"Illustration for Page {number}", width)
        pdf.showPage()

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _draw_full_bleed(
        pdf: canvas.Canvas,
        image_reader: ImageReader,
        width: float,
        height: float,
    ) -> None:
        img_width, img_height = image_reader.getSize()
        scale = max(width / img_width, height / img_height)
        draw_width = img_width * scale
        draw_height = img_height * scale
        pdf.drawImage(
            image_reader,
            (width - draw_width) / 2,
            (height - draw_height) / 2,
            draw_width,
            draw_height,
            preserveAspectRatio=True,
            mask="auto",
        )

    def _draw_footer(self, pdf: canvas.Canvas, text: str, width: float) -> None:
        footer_frame = Frame(
            self.margin,
            10,
            width - 2 * self.margin,
            20,
            showBoundary=0,
        )
        footer_frame.addFromList([Paragraph(text, self.footer_style)], pdf)

    def _load_image(self, source: str) -> Optional[ImageReader]:
        if is_image_data_uri(source):
            try:
                return ImageReader(BytesIO(AssetRef.parse(source).to_bytes()))
            except (InvalidAssetError, OSError) as exc:
                logger.warning("Skipping undecodable image: %s", exc)
                return None

        try:
            response = requests.get(source, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Could not download image %s: %s", source, exc)
            return None
        return ImageReader(BytesIO(response.content))

    @staticmethod
    def _register_body_font(font_path: Path | str | None) -> str:
        if font_path is None:
            return "Helvetica"

        path = Path(font_path)
        font_name = f"StoryBody-{path.stem}"
        if font_name in pdfmetrics.getRegisteredFontNames():
            return font_name
        try:
            pdfmetrics.registerFont(TTFont(font_name, str(path)))
        except (OSError, TTFError) as exc:
            logger.warning("Could not load body font %s, falling back to Helvetica: %s", path, exc)
            return "Helvetica"
        return font_name
