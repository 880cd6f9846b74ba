"""Identity on whose behalf repositories operate."""

from __future__ import annotations

from dataclasses import dataclass

from event_finder.domain.exceptions import AuthorizationError


@dataclass(frozen=True)
class Principal:
    """Either an authenticated user or the system itself.

    User principals may only read and mutate rows they own. The system
    principal is used by the dispatcher, the reminder sweep and the email
    adapter, which write on behalf of any user.
    """

    user_id: str | None
    is_system: bool = False

    @classmethod
    def system(cls) -> "Principal":
        return cls(user_id=None, is_system=True)

    @classmethod
    def for_user(cls, user_id: str) -> "Principal":
        if not user_id:
            raise ValueError("A user principal requires a user id")
        return cls(user_id=user_id)

    def can_access(self, owner_id: str | None) -> bool:
        return self.is_system or (owner_id is not None and owner_id == self.user_id)

    def ensure_can_access(self, owner_id: str | None) -> None:
        if not self.can_access(owner_id):
            raise AuthorizationError("Not allowed to access data owned by another user")

    def ensure_system(self) -> None:
        if not self.is_system:
            raise AuthorizationError("Operation restricted to the system principal")


__all__ = ["Principal"]
