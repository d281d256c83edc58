"""Clients CRUD: lookup by name and create."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.db.models import Client


def find_client_id_by_name(db: Session, name: str) -> Optional[int]:
    client = db.query(Client).filter(Client.name == name).order_by(Client.id.asc()).first()
    return client.id if client else None


def create_client(db: Session, name: str, email: str | None = None) -> int:
    client = Client(name=name, email=email)
    db.add(client)
    db.flush()
    return client.id


def get_client(db: Session, client_id: int) -> Optional[Client]:
    return db.get(Client, client_id)
