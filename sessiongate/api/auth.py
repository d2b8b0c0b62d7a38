"""Session API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request

from sessiongate.schemas.auth import (
    ErrorResponse,
    MessageResponse,
    SessionResponse,
    SubjectResponse,
)
from sessiongate.services.gatekeeper import GateDecision, extract_bearer
from sessiongate.services.profiles import SubjectProfile
from sessiongate.services.runtime import SessionRuntime
from sessiongate.services.token_codec import SessionClaims

logger = logging.getLogger(__name__)


class GateRejected(Exception):
    """Raised by dependencies when a route is reached without an admitted session."""

    def __init__(self, decision: GateDecision):
        self.decision = decision
        super().__init__(decision.message)


router = APIRouter(prefix="/auth", tags=["auth"])


def get_runtime(request: Request) -> SessionRuntime:
    """Dependency to get the session runtime."""
    return request.app.state.runtime


async def get_current_session(
    request: Request,
    runtime: SessionRuntime = Depends(get_runtime),
) -> tuple[SubjectProfile, SessionClaims]:
    """Dependency returning the admitted subject and its claims.

    Reuses the middleware's decision when it already ran; otherwise runs
    the gate here so routes outside the protected prefixes can opt in.
    """
    subject = getattr(request.state, "subject", None)
    claims = getattr(request.state, "claims", None)
    if subject is not None and claims is not None:
        return subject, claims

    decision = await runtime.gatekeeper.check(request.headers.get("Authorization"))
    if not decision.admitted or decision.subject is None or decision.claims is None:
        raise GateRejected(decision)
    request.state.subject = decision.subject
    request.state.claims = decision.claims
    return decision.subject, decision.claims


async def get_current_subject(
    session: tuple[SubjectProfile, SessionClaims] = Depends(get_current_session),
) -> SubjectProfile:
    """Dependency to get the current authenticated subject."""
    return session[0]


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    runtime: SessionRuntime = Depends(get_runtime),
) -> MessageResponse:
    """Log out the presented session.

    Revokes the bearer credential for the rest of its lifetime. Does not run
    the gate: a credential already voided by a password change, or one whose
    subject lost membership, can still be logged out. Missing or invalid
    credentials are accepted silently.
    """
    credential = extract_bearer(request.headers.get("Authorization"))
    revoked = await runtime.sessions.logout(credential)
    if revoked:
        logger.info("Session logged out")
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def get_session(
    session: tuple[SubjectProfile, SessionClaims] = Depends(get_current_session),
) -> SessionResponse:
    """Describe the current session: who it belongs to and when it expires."""
    subject, claims = session
    return SessionResponse(
        subject=SubjectResponse.model_validate(subject),
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
