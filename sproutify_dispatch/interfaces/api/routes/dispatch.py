"""Trigger endpoint invoked by the scheduler once per tick."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from sproutify_dispatch.application.use_cases.notifications import run_scheduled_dispatch
from sproutify_dispatch.domain.exceptions import DispatchError
from sproutify_dispatch.utils import isoformat_utc, now_utc

router = APIRouter(tags=["dispatch"])
logger = logging.getLogger(__name__)


def _error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": message, "timestamp": isoformat_utc(now_utc())},
    )


@router.post("/")
@router.post("/{path:path}")
def process_scheduled_notifications(path: str = "") -> Any:
    """Run one dispatch cycle and return its report.

    The request body and path are ignored. Configuration problems and a failed
    queue read abort the run with HTTP 500; per-notification failures are part
    of the report.
    """

    try:
        report = run_scheduled_dispatch()
    except DispatchError as exc:
        logger.error("Fatal error: %s", exc.message)
        return _error_response(exc.message)
    except Exception as exc:
        logger.exception("Fatal error while dispatching notifications")
        return _error_response(str(exc) or "Unknown error")

    return JSONResponse(content=report.to_payload())
