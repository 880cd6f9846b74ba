"""Persistence helpers for user profiles."""

from __future__ import annotations

from sqlalchemy.orm import Session

from event_finder.domain.entities import Principal, Profile
from event_finder.infrastructure.models import ProfileModel


class ProfileRepository:
    def __init__(self, session: Session, principal: Principal) -> None:
        self.session = session
        self.principal = principal

    def get(self, user_id: str) -> Profile | None:
        self.principal.ensure_can_access(user_id)
        model = self.session.get(ProfileModel, user_id)
        if model is None:
            return None
        return self._to_entity(model)

    def save(self, profile: Profile) -> Profile:
        self.principal.ensure_can_access(profile.id)
        model = self.session.get(ProfileModel, profile.id) or ProfileModel(id=profile.id)
        model.email = profile.email
        model.full_name = profile.full_name
        self.session.add(model)
        self.session.commit()
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: ProfileModel) -> Profile:
        return Profile(id=model.id, email=model.email, full_name=model.full_name)


__all__ = ["ProfileRepository"]
