"""User lookups and writes."""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockroom.models.user import User, UserRole


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(func.lower(User.email) == normalize_email(email))
        .first()
    )


def get_users_by_ids(db: Session, user_ids: List[int]) -> List[User]:
    if not user_ids:
        return []
    return db.query(User).filter(User.id.in_(user_ids)).all()


def create_user(
    db: Session, email: str, password_hash: str, role: UserRole = UserRole.ADMIN
) -> User:
    user = User(email=normalize_email(email), password_hash=password_hash, role=role)
    db.add(user)
    db.flush()
    return user


def update_user_email(db: Session, user: User, email: str) -> User:
    user.email = normalize_email(email)
    db.flush()
    return user


def update_user_password(db: Session, user: User, password_hash: str) -> User:
    user.password_hash = password_hash
    db.flush()
    return user
