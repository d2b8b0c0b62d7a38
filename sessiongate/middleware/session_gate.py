"""Session gate middleware.

Every request to a protected path must carry ``Authorization: Bearer
<credential>``. The credential is checked by the ``Gatekeeper`` held on
``app.state.runtime``; rejected requests get a JSON ``{"error": ...}`` body
with 401 (or 403 when the caller is authenticated but not a member), and
admitted requests continue with the subject attached to ``request.state``.
"""

import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from sessiongate.services.gatekeeper import GateDecision
from sessiongate.services.rejections import RejectionKind

logger = logging.getLogger(__name__)


def rejection_response(decision: GateDecision) -> JSONResponse:
    """Uniform error body for a rejected decision."""
    headers = {}
    if decision.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=decision.status_code,
        content={"error": decision.message},
        headers=headers,
    )


def is_protected(path: str, prefixes: list[str]) -> bool:
    """Prefix match on path segment boundaries (``/api`` guards ``/api/x``, not ``/apix``)."""
    for prefix in prefixes:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Runs the session gate for requests under the protected prefixes."""

    def __init__(self, app: ASGIApp, protected_prefixes: list[str]):
        super().__init__(app)
        self.protected_prefixes = protected_prefixes

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        # CORS preflight never carries credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        if not is_protected(path, self.protected_prefixes):
            return await call_next(request)

        gatekeeper = request.app.state.runtime.gatekeeper
        decision = await gatekeeper.check(request.headers.get("Authorization"))

        if not decision.admitted:
            quiet = decision.rejection in (
                RejectionKind.NO_CREDENTIAL,
                RejectionKind.EXPIRED_CREDENTIAL,
            )
            logger.log(
                logging.DEBUG if quiet else logging.WARNING,
                "Request rejected",
                extra={
                    "rejection": decision.rejection,
                    "reason": decision.reason,
                    "method": request.method,
                    "path": path,
                    "subject_id": decision.claims.subject_id if decision.claims else None,
                },
            )
            return rejection_response(decision)

        request.state.subject = decision.subject
        request.state.claims = decision.claims
        return await call_next(request)
