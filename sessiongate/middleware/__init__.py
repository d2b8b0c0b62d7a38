"""Middleware module for sessiongate."""

from sessiongate.middleware.session_gate import SessionGateMiddleware, rejection_response

__all__ = [
    "SessionGateMiddleware",
    "rejection_response",
]
