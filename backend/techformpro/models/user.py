"""User accounts.

Accounts are created by the platform's auth service. This backend reads them
to validate sessions (token revocation) and as the owner of onboarding
records.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, String, text
from sqlalchemy.orm import Mapped, mapped_column

from techformpro.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Platform account.

    Attributes:
        role: student, trainer or admin. Onboarding runs for every role.
        token_invalidated_before: Session JWTs with an earlier iat are
            rejected (sign out everywhere).
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('student', 'trainer', 'admin')",
            name="ck_users_role",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(
        String(20), server_default=text("'student'"), default="student"
    )
    token_invalidated_before: Mapped[datetime | None]
