"""Read access to staff users."""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from securohelp.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active(self, user_id: uuid.UUID) -> User | None:
        user = self.db.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user
