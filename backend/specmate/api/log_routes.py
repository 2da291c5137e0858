"""
Log Routes — report-generation side channel.

POST /api/logs/report — the client records that a report of a given format was
produced for an earlier usage log. The event is written to the application
log only; nothing is stored.
"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from specmate.services.middleware import request_id_for

router = APIRouter(prefix="/api/logs", tags=["Logs"])
logger = logging.getLogger("specmate-log-routes")


class ReportLogRequest(BaseModel):
    model_config = {"populate_by_name": True}

    log_id: Optional[str] = Field(None, alias="logId")
    format: Optional[Literal["markdown", "pdf", "both"]] = None
    timestamp: Optional[str] = None


@router.post("/report")
async def log_report_generation(payload: ReportLogRequest, request: Request):
    if not payload.log_id or not payload.format:
        raise HTTPException(status_code=400, detail="Missing required fields: logId, format")

    logger.info(
        f"Report generated for usage log {payload.log_id}",
        extra={
            "log_id": payload.log_id,
            "report_format": payload.format,
            "request_id": request_id_for(request),
        },
    )
    return {"success": True, "message": "Report generation logged"}
