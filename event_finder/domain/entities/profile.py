"""Domain entity for the public profile of a user."""

from dataclasses import dataclass


@dataclass
class Profile:
    """Contact details maintained by the auth provider."""

    id: str
    email: str | None
    full_name: str | None = None


__all__ = ["Profile"]
