"""
Report Engine — single entry point for report synthesis.

Outputs:
  - Markdown report (str), downloadable as material-analysis-<stamp>.txt
  - PDF report (A4, paginated), downloadable as material-analysis-<stamp>.pdf
  - Preview handle: the PDF written to PREVIEW_DIR for inline display.
    The caller owns the handle and must release() it once it is no longer shown.

Each call builds a fresh ReportContent from the Analysis; nothing is cached or
shared between calls.
"""
import logging
import os
import tempfile
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from specmate import config
from specmate.models.analysis import Analysis
from specmate.services.grouping_engine import ReportContent, build_report_content, report_stamp
from specmate.services.markdown_renderer import render_markdown
from specmate.services.pdf_renderer import PdfReportRenderer

logger = logging.getLogger("specmate-report")


class ReportError(Exception):
    """Base class for report synthesis failures."""


class ReportGenerationError(ReportError):
    """The document itself could not be constructed."""


class PreviewUnavailableError(ReportError):
    """The PDF was built but could not be staged for preview; download still works."""


@dataclass
class ReportDocument:
    content: bytes
    filename: str
    page_count: int
    media_type: str = "application/pdf"


class PreviewHandle:
    """Transient on-disk PDF for in-browser preview. Release when done."""

    def __init__(self, path: str, filename: str, page_count: int):
        self.preview_id = uuid.uuid4().hex
        self.path = path
        self.filename = filename
        self.page_count = page_count
        self.created_at = time.monotonic()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        if self._released:
            raise PreviewUnavailableError(f"Preview {self.preview_id} has been released")
        with open(self.path, "rb") as fh:
            return fh.read()

    def release(self):
        if self._released:
            return
        self._released = True
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        logger.debug(f"Preview released: {self.preview_id}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class ReportEngine:

    def __init__(self, preview_dir: Optional[str] = None, renderer: Optional[PdfReportRenderer] = None):
        self.preview_dir = preview_dir or config.PREVIEW_DIR
        self.renderer = renderer or PdfReportRenderer()

    @staticmethod
    def content_for(analysis: Analysis) -> ReportContent:
        return build_report_content(analysis)

    @staticmethod
    def filename_for(analysis: Analysis, extension: str) -> str:
        return f"material-analysis-{report_stamp(analysis.timestamp)}.{extension}"

    # ── Markdown ──────────────────────────────────────────────────────────────

    def build_markdown(self, analysis: Analysis) -> str:
        report = render_markdown(self.content_for(analysis))
        logger.info(f"Markdown report generated: {len(analysis.materials)} materials, {len(report)} chars")
        return report

    # ── PDF ───────────────────────────────────────────────────────────────────

    async def build_document(self, analysis: Analysis) -> ReportDocument:
        """
        Render the paginated report.

        Raises ReportGenerationError when the PDF cannot be constructed.
        Image problems are not failures; the renderer substitutes a notice.
        """
        start = time.perf_counter()
        content = self.content_for(analysis)
        try:
            rendered = await self.renderer.render(content)
        except Exception as e:
            logger.error(f"PDF report generation failed: {e}", exc_info=True)
            raise ReportGenerationError("Report generation failed") from e

        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        filename = f"material-analysis-{content.file_stamp}.pdf"
        logger.info(
            f"PDF report generated: {filename} ({rendered.page_count} pages)",
            extra={"duration_ms": duration_ms, "report_format": "pdf"},
        )
        return ReportDocument(content=rendered.pdf_bytes, filename=filename, page_count=rendered.page_count)

    async def build_preview_handle(self, analysis: Analysis) -> PreviewHandle:
        """
        Render the PDF and stage it in PREVIEW_DIR.

        Raises ReportGenerationError if rendering fails and
        PreviewUnavailableError if only the staging step fails.
        """
        document = await self.build_document(analysis)
        try:
            os.makedirs(self.preview_dir, exist_ok=True)
            fd, path = tempfile.mkstemp(prefix="preview-", suffix=".pdf", dir=self.preview_dir)
            with os.fdopen(fd, "wb") as fh:
                fh.write(document.content)
        except OSError as e:
            logger.warning(f"Preview staging failed in {self.preview_dir}: {e}")
            raise PreviewUnavailableError("Preview unavailable; the report can still be downloaded") from e

        handle = PreviewHandle(path, document.filename, document.page_count)
        logger.info(f"Preview staged: {handle.preview_id}")
        return handle
