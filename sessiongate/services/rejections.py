"""Outcome vocabulary shared by the token codec and the session gate."""

from enum import Enum


class RejectionKind(str, Enum):
    """Why a request was not admitted."""

    NO_CREDENTIAL = "no_credential"
    MALFORMED_CREDENTIAL = "malformed_credential"
    EXPIRED_CREDENTIAL = "expired_credential"
    REVOKED = "revoked"
    SUPERSEDED_BY_PASSWORD_CHANGE = "superseded_by_password_change"
    UNKNOWN_SUBJECT = "unknown_subject"
    NOT_AUTHORIZED = "not_authorized"
    STORE_UNAVAILABLE = "store_unavailable"


class SessionError(Exception):
    """Base session error."""

    pass


class InvalidCredentialError(SessionError):
    """Credential signature or structure is invalid."""

    pass
