"""Session snapshot passed to the onboarding sequencer.

The host application owns authentication. Whenever its session changes it
hands the sequencer a fresh SessionSnapshot; the sequencer never reads
session state from anywhere else.
"""

import uuid
from dataclasses import dataclass, field
from typing import Literal

UserRole = Literal["student", "trainer", "admin"]


@dataclass(frozen=True)
class SessionUser:
    """The signed-in user, as far as onboarding cares."""

    id: uuid.UUID
    role: UserRole = "student"


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of the host's session.

    Attributes:
        current_user: Signed-in user, or None when signed out.
        is_loading: True while the host is still resolving the session.
        session_token: The user's session JWT, sent as the auth cookie on
            every onboarding request made for this session. None in
            local-first mode.
    """

    current_user: SessionUser | None = None
    is_loading: bool = False
    session_token: str | None = field(default=None, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None and not self.is_loading

    @property
    def user_id(self) -> uuid.UUID | None:
        return self.current_user.id if self.current_user else None
