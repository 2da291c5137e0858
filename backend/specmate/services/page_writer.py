"""
PageWriter — manual pagination on a reportlab canvas.

The writer owns the vertical cursor. Every emission primitive checks the
remaining space first and starts a new page when the next line, bullet or
image would cross the bottom margin, then draws and advances the cursor.
Long strings are pre-wrapped to the available width with stringWidth
measurements; each line advances the cursor by font size × 0.5 mm.

Footers need the final page count, so they are stamped by _FooterCanvas in a
last pass over the buffered pages when the document is saved.
"""
import io
from dataclasses import dataclass
from typing import List, Optional, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as rl_canvas

from specmate import config


@dataclass
class TraceLine:
    page: int
    style: str
    text: str


class _FooterCanvas(rl_canvas.Canvas):
    """Canvas that buffers page states and stamps 'Page i of N' on save."""

    footer_template = "Page {page} of {total}"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[dict] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int):
        page_w, _ = self._pagesize
        self.setFont(config.FONT_REGULAR, config.FONT_SIZES["small"])
        self.setFillColorRGB(*(c / 255 for c in config.MUTED))
        label = self.footer_template.format(page=self._pageNumber, total=total)
        self.drawCentredString(page_w / 2, config.FOOTER_OFFSET_MM * mm, label)


def _rgb(color: Tuple[int, int, int]) -> Tuple[float, float, float]:
    return tuple(c / 255 for c in color)


class PageWriter:
    """Cursor-tracking text/image writer for one PDF document."""

    def __init__(self, footer_text: Optional[str] = None, pagesize=A4):
        self._buffer = io.BytesIO()
        self.c = _FooterCanvas(self._buffer, pagesize=pagesize)
        if footer_text:
            self.c.footer_template = "Page {page} of {total} — " + footer_text.replace("{", "{{").replace("}", "}}")
        self.page_w, self.page_h = pagesize
        self.margin = config.PAGE_MARGIN_MM * mm
        self.content_w = self.page_w - 2 * self.margin
        self.page = 1
        self.y = self.page_h - self.margin
        self.trace: List[TraceLine] = []
        self._finished = False

    # ── Measurement ───────────────────────────────────────────────────────

    @staticmethod
    def font(bold: bool) -> str:
        return config.FONT_BOLD if bold else config.FONT_REGULAR

    @staticmethod
    def line_height(size: float) -> float:
        return size * config.LINE_HEIGHT_FACTOR * mm

    def measure(self, text: str, size: float, bold: bool = False) -> float:
        return self.c.stringWidth(text, self.font(bold), size)

    def wrap_text(self, text: str, size: float, max_width: float, bold: bool = False) -> List[str]:
        """Greedy word wrap. Explicit newlines are kept; oversize words are split."""
        font = self.font(bold)
        lines: List[str] = []
        for paragraph in (text or "").split("\n"):
            line = ""
            for word in paragraph.split():
                test = f"{line} {word}".strip()
                if self.c.stringWidth(test, font, size) <= max_width:
                    line = test
                    continue
                if line:
                    lines.append(line)
                line = word
                # A single word wider than the column is broken by characters
                while self.c.stringWidth(line, font, size) > max_width and len(line) > 1:
                    cut = len(line) - 1
                    while cut > 1 and self.c.stringWidth(line[:cut], font, size) > max_width:
                        cut -= 1
                    lines.append(line[:cut])
                    line = line[cut:]
            lines.append(line)
        return lines or [""]

    # ── Cursor ────────────────────────────────────────────────────────────

    @property
    def remaining(self) -> float:
        return self.y - self.margin

    def new_page(self):
        self.c.showPage()
        self.page += 1
        self.y = self.page_h - self.margin

    def break_if_needed(self, height: float) -> bool:
        if self.y - height < self.margin:
            self.new_page()
            return True
        return False

    def advance(self, height: float):
        self.y -= height

    def spacing(self, millimetres: float):
        self.advance(millimetres * mm)
        self.break_if_needed(0)

    # ── Emission primitives ───────────────────────────────────────────────

    def _draw(self, x: float, text: str, size: float, bold: bool, color, style: str):
        self.c.setFont(self.font(bold), size)
        self.c.setFillColorRGB(*_rgb(color))
        self.c.drawString(x, self.y, text)
        self.trace.append(TraceLine(self.page, style, text))

    def text(
        self,
        text: str,
        size: float = config.FONT_SIZES["body"],
        bold: bool = False,
        color=config.BLACK,
        style: str = "body",
        indent: float = 0,
    ):
        lh = self.line_height(size)
        for line in self.wrap_text(text, size, self.content_w - indent, bold):
            self.break_if_needed(lh)
            self._draw(self.margin + indent, line, size, bold, color, style)
            self.advance(lh)

    def label_value(self, label: str, value: str, size: float = config.FONT_SIZES["body"]):
        """Bold label; value on the same line when it fits, else indented below."""
        lh = self.line_height(size)
        label_w = self.measure(label, size, bold=True)
        gap = 2 * mm
        lines = self.wrap_text(value, size, self.content_w - label_w - gap)

        self.break_if_needed(lh)
        self._draw(self.margin, label, size, True, config.BLACK, "label")
        if len(lines) == 1:
            self._draw(self.margin + label_w + gap, lines[0], size, False, config.BLACK, "value")
            self.advance(lh)
            return
        self.advance(lh)
        indent = 5 * mm
        for line in self.wrap_text(value, size, self.content_w - indent):
            self.break_if_needed(lh)
            self._draw(self.margin + indent, line, size, False, config.BLACK, "value")
            self.advance(lh)

    def bullet(self, text: str, size: float = config.FONT_SIZES["body"], indent_mm: float = 5):
        lh = self.line_height(size)
        indent = indent_mm * mm
        for i, line in enumerate(self.wrap_text(text, size, self.content_w - indent - 5 * mm)):
            self.break_if_needed(lh)
            prefix = "• " if i == 0 else "  "
            self._draw(self.margin + indent, prefix + line, size, False, config.BLACK, "bullet")
            self.advance(lh)

    def image(self, reader, width: float, height: float):
        """Draw an image (reportlab ImageReader) with its top edge at the cursor."""
        self.break_if_needed(height + 5 * mm)
        self.c.drawImage(reader, self.margin, self.y - height, width=width, height=height)
        self.trace.append(TraceLine(self.page, "image", ""))
        self.advance(height + 5 * mm)

    # ── Output ────────────────────────────────────────────────────────────

    @property
    def page_count(self) -> int:
        return self.page

    def finish(self) -> bytes:
        """Close the last page, run the footer pass and return the PDF bytes."""
        if not self._finished:
            self.c.showPage()
            self.c.save()
            self._finished = True
        return self._buffer.getvalue()
