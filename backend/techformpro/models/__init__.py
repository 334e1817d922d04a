"""SQLAlchemy ORM models for TechFormPro.

All models are exported from this module for convenient imports:
    from techformpro.models import User, UserOnboarding

Models are organized by domain:
- user.py: User (Tier 0)
- onboarding.py: UserOnboarding (Tier 1)
"""

from techformpro.models.base import Base, TimestampMixin
from techformpro.models.onboarding import UserOnboarding
from techformpro.models.user import User

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    # Tier 0
    "User",
    # Tier 1
    "UserOnboarding",
]
