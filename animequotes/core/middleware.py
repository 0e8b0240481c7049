"""HTTP middleware: request correlation and the request gate.

``request_id_middleware`` must be the outermost middleware so that gate logs
already carry the request id. ``gate_middleware`` runs the decision chain for
every path under the API prefix; paths outside it (health, docs) bypass it.

Usage:
    app.middleware("http")(gate_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from animequotes.core.exception_handlers import error_response
from animequotes.core.gate import GateContext, RequestGate, Verdict
from animequotes.core.logging import clear_request_id, set_request_id
from animequotes.core.rate_limit import client_ip

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a request id for logging and echo it on the response.

    The client's id header (``LOG_REQUEST_ID_HEADER``) is reused when sent;
    otherwise a UUID4 is generated. Gate rejections get the header too.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    # Cleared only on success: an exception propagating from here is logged
    # by the server error handler, which still needs the id.
    response: Response = await call_next(request)
    clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


def relative_path(path: str, prefix: str) -> str | None:
    """Path relative to ``prefix``, or None when the path is outside it."""
    prefix = prefix.rstrip("/")
    if not prefix:
        return path
    if path == prefix:
        return "/"
    if path.startswith(prefix + "/"):
        return path[len(prefix):]
    return None


async def gate_middleware(request: Request, call_next) -> Response:
    """Run the request gate before dispatching API requests.

    Rejections are answered directly with ``{"message": ...}`` and the mapped
    status; allowed requests continue to their route handler.
    """

    app_settings = request.app.state.settings.app
    relative = relative_path(request.url.path, app_settings.api_prefix)
    if relative is None:
        return await call_next(request)

    gate: RequestGate = request.app.state.gate
    ctx = GateContext(
        path=relative,
        api_key=request.headers.get(API_KEY_HEADER) or None,
        client_ip=client_ip(request, trust_forwarded_for=app_settings.trust_forwarded_for),
    )
    outcome = await gate.evaluate(ctx)

    if outcome.verdict is Verdict.REJECT and outcome.error is not None:
        logger.info(
            "gate.rejected",
            extra={
                "stage": ctx.stage,
                "error_code": outcome.error.code,
                "status_code": outcome.error.http_status,
                "request_path": request.url.path,
                "api_key_present": ctx.api_key is not None,
            },
        )
        return error_response(outcome.error)

    if len(relative) > 1 and relative.endswith("/"):
        # Dispatch straight to the slash-less route; a redirect would come
        # back through the gate and be counted a second time.
        request.scope["path"] = request.url.path.rstrip("/")
    return await call_next(request)
