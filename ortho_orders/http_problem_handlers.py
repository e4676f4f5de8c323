# ortho_orders/http_problem_handlers.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ortho_orders.core.audit import new_trace_id
from ortho_orders.services.order_errors import OrderError

logger = logging.getLogger("orthoorders")


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for e in exc.errors():
        if not isinstance(e, dict):
            continue
        loc = [str(p) for p in (e.get("loc") or ()) if p != "body"]
        details.append(
            {
                "path": ".".join(loc),
                "reason": str(e.get("msg") or e.get("type") or "invalid"),
            }
        )
    return details


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderError)
    async def _order_exc(req: Request, exc: OrderError):
        return JSONResponse(status_code=exc.status, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Invalid request body",
                "errors": _validation_details(exc),
            },
        )

    @app.exception_handler(HTTPException)
    async def _http_exc(req: Request, exc: HTTPException):
        return JSONResponse(
            status_code=int(exc.status_code),
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = new_trace_id()
        logger.exception(
            "UNHANDLED_EXC[%s] %s %s: %s",
            trace_id,
            req.method,
            getattr(req.url, "path", ""),
            exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Something went wrong",
                "error": str(exc),
                "traceId": trace_id,
            },
        )
