# sessiongate Pydantic Schemas
from sessiongate.schemas.auth import (
    ErrorResponse,
    MessageResponse,
    SessionResponse,
    SubjectResponse,
)

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "SessionResponse",
    "SubjectResponse",
]
