# src/ozark_collab/models/user.py
"""SQLAlchemy model for the user accounts referenced by collaboration rows."""

from __future__ import annotations

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ozark_collab.db.session import Base

ROLE_ADMIN = "admin"


class User(Base):
    """Account owned by the identity service; read here for display and roles."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # student, instructor, admin, hr_admin, manager, employee
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="student")

    @property
    def is_admin(self) -> bool:
        """Return True for system administrators."""
        return self.role == ROLE_ADMIN

    @property
    def label(self) -> str:
        """Name shown next to content the user produced."""
        return self.display_name or self.username
