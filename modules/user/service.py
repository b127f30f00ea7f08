"""
User Module - Service Layer
=============================
Account creation and admin-role management.

At least one active admin must exist at all times. The admin count is re-read
with row locks inside the same transaction as the demotion/deactivation, so two
admins demoting each other concurrently cannot both succeed.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.database import atomic
from common.exceptions import ConflictError, NotFoundError, ValidationError
from modules.user.models import User

logger = logging.getLogger("storefront.user")


class UserService:

    def get_user(self, db: Session, user_id: int, active_only: bool = False) -> User:
        q = db.query(User).filter(User.id == user_id)
        if active_only:
            q = q.filter(User.is_active == True)  # noqa: E712
        user = q.first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(self, db: Session, email: str, name: str, is_admin: bool = False) -> User:
        """Create an account. Duplicate email -> ConflictError."""
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")

        try:
            with atomic(db):
                if db.query(User.id).filter(User.email == email).first():
                    raise ConflictError(f"Email {email} is already registered")
                user = User(email=email, name=(name or "").strip() or email, is_admin=is_admin)
                db.add(user)
                db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            raise ConflictError(f"Email {email} is already registered")

        db.refresh(user)
        logger.info(f"Created user {user.id} ({email}){' as admin' if is_admin else ''}")
        return user

    def set_admin(self, db: Session, user_id: int, is_admin: bool, acting_user_id: Optional[int] = None) -> User:
        """Grant or revoke the admin flag; revoking the last active admin is refused."""
        with atomic(db):
            user = self._lock_user(db, user_id)
            if user.is_admin and not is_admin:
                self._ensure_other_admin(db, user)
            user.is_admin = is_admin
            db.flush()

        db.refresh(user)
        logger.info(f"User {user_id} admin={is_admin} (by {acting_user_id})")
        return user

    def deactivate_user(self, db: Session, user_id: int, acting_user_id: Optional[int] = None) -> User:
        """Soft-delete an account; orders keep referencing it."""
        with atomic(db):
            user = self._lock_user(db, user_id)
            if user.is_admin and user.is_active:
                self._ensure_other_admin(db, user)
            user.is_active = False
            db.flush()

        db.refresh(user)
        logger.info(f"User {user_id} deactivated (by {acting_user_id})")
        return user

    # ==========================================
    # Private helpers
    # ==========================================

    def _lock_user(self, db: Session, user_id: int) -> User:
        user = (
            db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not user:
            raise NotFoundError("User not found")
        return user

    def _ensure_other_admin(self, db: Session, user: User):
        others = (
            db.query(User)
            .filter(
                User.is_admin == True,  # noqa: E712
                User.is_active == True,  # noqa: E712
                User.id != user.id,
            )
            .with_for_update()
            .all()
        )
        if not others:
            raise ConflictError("Cannot remove the last active administrator")


# Singleton
user_service = UserService()
