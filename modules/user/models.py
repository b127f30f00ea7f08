"""
User Module - User Model
==========================
Accounts as seen by the order core: identity plus an admin capability flag.
Credentials and profile data are owned by the external identity service.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)

    # === Role Flags ===
    is_admin = Column(Boolean, default=False, server_default="0", nullable=False, index=True)
    is_active = Column(Boolean, default=True, server_default="1", nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    cart_items = relationship("CartItem", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}{' admin' if self.is_admin else ''}>"

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}
