"""
Access log for the proxy: one line in, one line out, tagged with a request id.
"""

import time
import uuid

from fastapi import Request
from loguru import logger

QUIET_PATHS = {"/api/health"}
REQUEST_ID_HEADER = "X-Request-ID"


async def logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
    level = "DEBUG" if request.url.path in QUIET_PATHS else "INFO"
    origin = request.headers.get("origin") or (request.client.host if request.client else "-")

    with logger.contextualize(request_id=request_id):
        started = time.perf_counter()
        logger.log(level, f"[{request_id}] {request.method} {request.url.path} origin={origin}")

        response = await call_next(request)

        took_ms = (time.perf_counter() - started) * 1000
        logger.log(level, f"[{request_id}] {response.status_code} in {took_ms:.1f}ms")

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
