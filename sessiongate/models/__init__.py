# sessiongate Models
from sessiongate.models.base import BaseModel
from sessiongate.models.member import Member
from sessiongate.models.revocation_entry import RevocationEntry

__all__ = [
    "BaseModel",
    "Member",
    "RevocationEntry",
]
