"""
Report Routes — Markdown / PDF generation endpoints for completed analyses.

POST   /api/reports/markdown               — Markdown report as a text download
POST   /api/reports/pdf                    — PDF report as an attachment
POST   /api/reports/preview                — stage a PDF preview, returns its id
GET    /api/reports/preview/{preview_id}   — inline preview PDF
DELETE /api/reports/preview/{preview_id}   — release a preview
"""
import logging
import time
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, Response

from specmate import config
from specmate.models.analysis import Analysis
from specmate.services.middleware import request_id_for
from specmate.services.report_engine import (
    PreviewHandle,
    PreviewUnavailableError,
    ReportEngine,
    ReportGenerationError,
)

router = APIRouter(prefix="/api/reports", tags=["Reports"])
logger = logging.getLogger("specmate-report-routes")


class PreviewRegistry:
    """
    Open preview handles by id.

    Handles are released on DELETE, on shutdown, once older than ``ttl_seconds``
    (checked on every add/get), or when more than ``max_open`` are held, oldest
    first. Clients that never close a preview therefore cannot fill PREVIEW_DIR.
    """

    def __init__(self, max_open: int = config.PREVIEW_MAX_OPEN,
                 ttl_seconds: float = config.PREVIEW_TTL_SECONDS):
        self.max_open = max_open
        self.ttl_seconds = ttl_seconds
        self._handles: Dict[str, PreviewHandle] = {}  # insertion order == age order

    def add(self, handle: PreviewHandle):
        self.prune()
        self._handles[handle.preview_id] = handle
        while len(self._handles) > self.max_open:
            oldest = next(iter(self._handles))
            logger.info(f"Preview limit ({self.max_open}) reached; releasing {oldest}")
            self.release(oldest)

    def get(self, preview_id: str) -> Optional[PreviewHandle]:
        self.prune()
        return self._handles.get(preview_id)

    def prune(self, now: Optional[float] = None) -> int:
        """Release handles older than the TTL; returns how many were released."""
        now = time.monotonic() if now is None else now
        expired = [pid for pid, h in self._handles.items() if now - h.created_at > self.ttl_seconds]
        for preview_id in expired:
            self.release(preview_id)
        if expired:
            logger.info(f"Released {len(expired)} expired previews")
        return len(expired)

    def release(self, preview_id: str) -> bool:
        handle = self._handles.pop(preview_id, None)
        if handle is None:
            return False
        handle.release()
        return True

    def release_all(self) -> int:
        count = len(self._handles)
        for preview_id in list(self._handles):
            self.release(preview_id)
        return count

    def __len__(self):
        return len(self._handles)


_engine = ReportEngine()
_previews = PreviewRegistry()


def get_report_engine() -> ReportEngine:
    return _engine


def get_preview_registry() -> PreviewRegistry:
    return _previews


def _attachment(filename: str, disposition: str = "attachment") -> Dict[str, str]:
    return {"Content-Disposition": f'{disposition}; filename="{filename}"'}


def _log_extra(request: Request, report_format: str) -> Dict[str, Optional[str]]:
    return {"request_id": request_id_for(request), "report_format": report_format}


@router.post("/markdown")
async def generate_markdown_report(
    analysis: Analysis,
    request: Request,
    engine: ReportEngine = Depends(get_report_engine),
):
    """Render the Markdown report for a completed analysis."""
    report = engine.build_markdown(analysis)
    filename = engine.filename_for(analysis, "txt")
    logger.info(f"Markdown report served: {filename}", extra=_log_extra(request, "markdown"))
    return Response(
        content=report.encode("utf-8"),
        media_type="text/markdown; charset=utf-8",
        headers=_attachment(filename),
    )


@router.post("/pdf")
async def generate_pdf_report(
    analysis: Analysis,
    request: Request,
    engine: ReportEngine = Depends(get_report_engine),
):
    """Render the paginated PDF report for download."""
    try:
        document = await engine.build_document(analysis)
    except ReportGenerationError as e:
        logger.error(f"PDF endpoint failed: {e}", extra=_log_extra(request, "pdf"))
        raise HTTPException(status_code=500, detail="Report generation failed")

    logger.info(
        f"PDF report served: {document.filename} ({document.page_count} pages)",
        extra=_log_extra(request, "pdf"),
    )
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={**_attachment(document.filename), "X-Page-Count": str(document.page_count)},
    )


@router.post("/preview")
async def create_preview(
    analysis: Analysis,
    request: Request,
    engine: ReportEngine = Depends(get_report_engine),
    previews: PreviewRegistry = Depends(get_preview_registry),
):
    """Stage a preview PDF. The client should DELETE it once the preview closes."""
    try:
        handle = await engine.build_preview_handle(analysis)
    except ReportGenerationError:
        logger.error("Preview generation failed", extra=_log_extra(request, "pdf"))
        raise HTTPException(status_code=500, detail="Report generation failed")
    except PreviewUnavailableError as e:
        logger.warning(f"Preview unavailable: {e}", extra=_log_extra(request, "pdf"))
        raise HTTPException(status_code=503, detail=str(e))

    previews.add(handle)
    logger.info(f"Preview created: {handle.preview_id}", extra=_log_extra(request, "pdf"))
    return {
        "preview_id": handle.preview_id,
        "filename": handle.filename,
        "page_count": handle.page_count,
        "url": f"{router.prefix}/preview/{handle.preview_id}",
    }


@router.get("/preview/{preview_id}")
async def get_preview(
    preview_id: str,
    previews: PreviewRegistry = Depends(get_preview_registry),
):
    handle = previews.get(preview_id)
    if handle is None or handle.released:
        raise HTTPException(status_code=404, detail=f"Preview {preview_id} not found")
    return FileResponse(handle.path, media_type="application/pdf", headers=_attachment(handle.filename, "inline"))


@router.delete("/preview/{preview_id}")
async def release_preview(
    preview_id: str,
    previews: PreviewRegistry = Depends(get_preview_registry),
):
    if not previews.release(preview_id):
        raise HTTPException(status_code=404, detail=f"Preview {preview_id} not found")
    return {"status": "released", "preview_id": preview_id}
