"""Read access to clients."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from securohelp.models.client import Client


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, client_id: uuid.UUID) -> Client | None:
        client = self.db.get(Client, client_id)
        if client is None or client.deleted_at is not None:
            return None
        return client

    def count_active(self) -> int:
        return self.db.scalar(
            select(func.count()).select_from(Client).where(Client.deleted_at.is_(None))
        ) or 0
