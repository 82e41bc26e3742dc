"""The authenticated caller, as seen by the project/task core."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class Identity:
    """
    Minimal caller identity passed explicitly into every core operation.

    Decouples the domain services from ``request.user`` and from the
    token library's own representation of a principal.
    """

    id: UUID
    email: str

    @classmethod
    def from_user(cls, user):
        return cls(id=user.pk, email=user.email)
