from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, User
from app.core.database import SessionLocal
from app.services.store import Store


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Store:
    """Persistence collaborator scoped to the authenticated landlord."""
    return Store(db, user_id=current_user.id)
