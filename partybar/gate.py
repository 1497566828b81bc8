"""Session and event gate.

Resolves who is acting, forces guests out once the event window closes and keeps
each role on its own surface. Every protected action goes through ``check`` and
receives an explicit ``Session`` back, which is then passed to the engines.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from partybar import config
from partybar.clock import Clock
from partybar.errors import (
    EventEndedError,
    NoActiveEventError,
    NotAuthenticatedError,
    SessionExpiredError,
    WrongRoleError,
)
from partybar.repository import CURRENT_SESSION, Repository
from partybar.schemas import EventConfig, Role, Theme, User

logger = logging.getLogger(__name__)

# Where each role lands; exhaustive over Role
SURFACES = {
    Role.ADMIN:   "/admin",
    Role.KITCHEN: "/kitchen",
    Role.GUEST:   "/app",
}

ADMIN_ID   = "admin"
KITCHEN_ID = "kitchen"


@dataclass(frozen=True)
class Session:
    key: str
    user: User

    @property
    def surface(self) -> str:
        return SURFACES[self.user.role]


def new_id() -> str:
    return secrets.token_hex(8)


class SessionGate:
    def __init__(
        self,
        repo: Repository,
        clock: Clock,
        starting_coins: int = config.STARTING_COINS,
        event_duration_hours: float = config.EVENT_DURATION_HOURS,
        kitchen_login_name: str = config.KITCHEN_LOGIN_NAME,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self.starting_coins = starting_coins
        self.event_duration_hours = event_duration_hours
        self.kitchen_login_name = kitchen_login_name

    # ── Checks ────────────────────────────────────────────────────────────────

    def check(self, session_key: str = CURRENT_SESSION, required_role: Optional[Role] = None) -> Session:
        """Resolve the acting user and enforce expiry and role.

        Raises:
            NotAuthenticatedError: If nobody is logged in under ``session_key``.
            SessionExpiredError: If a guest's event has ended; the session is cleared first.
            WrongRoleError: If ``required_role`` is given and does not match.
        """
        user = self._repo.get_current_user(session_key)
        if user is None:
            raise NotAuthenticatedError()

        if user.role is Role.GUEST:
            event = self._repo.get_event_config()
            if event is not None and event.has_ended(self._clock.now_ms()):
                self._repo.clear_current_user(session_key)
                logger.warning("Guest %s forced out: event %s has ended", user.id, event.id)
                raise SessionExpiredError()

        if required_role is not None and user.role is not required_role:
            raise WrongRoleError(user.role, required_role, SURFACES[user.role])

        return Session(key=session_key, user=user)

    def time_left_ms(self) -> Optional[int]:
        """Milliseconds until the event ends, never negative. None without an event."""
        event = self._repo.get_event_config()
        if event is None:
            return None
        return max(0, event.end_time - self._clock.now_ms())

    # ── Login / logout ────────────────────────────────────────────────────────

    def login_guest(self, name: str, session_key: str = CURRENT_SESSION) -> Session:
        """Log a guest into the active event with the starting balance.

        Raises:
            NoActiveEventError: If no event has been configured.
            EventEndedError: If the event window has already closed.
        """
        event = self._repo.get_event_config()
        if event is None:
            raise NoActiveEventError()
        if event.has_ended(self._clock.now_ms()):
            raise EventEndedError()

        user = User(
            id=new_id(),
            name=name.strip(),
            role=Role.GUEST,
            coins=self.starting_coins,
            event_id=event.id,
        )
        self._repo.set_current_user(user, session_key)
        logger.info("Guest %s (%s) joined event %s", user.name, user.id, event.id)
        return Session(key=session_key, user=user)

    def login_staff(
        self,
        name: str,
        event_name: str = "Drinks Party",
        location: str = "Main Bar",
        theme: Theme = Theme.NEON,
        session_key: str = CURRENT_SESSION,
    ) -> Session:
        """Kitchen login when ``name`` is the reserved kitchen name, admin otherwise.

        The first admin login creates the event with the given name, location and theme.
        """
        if name.strip().lower() == self.kitchen_login_name.lower():
            event = self._repo.get_event_config()
            user = User(
                id=KITCHEN_ID,
                name="Kitchen",
                role=Role.KITCHEN,
                coins=0,
                event_id=event.id if event else "",
            )
            self._repo.set_current_user(user, session_key)
            logger.info("Kitchen terminal logged in")
            return Session(key=session_key, user=user)

        event = self._repo.get_event_config()
        if event is None:
            event = self.create_event(event_name, location, theme)

        user = User(id=ADMIN_ID, name="Administrator", role=Role.ADMIN, coins=0, event_id=event.id)
        self._repo.set_current_user(user, session_key)
        logger.info("Admin logged in to event %s", event.id)
        return Session(key=session_key, user=user)

    def logout(self, session_key: str = CURRENT_SESSION) -> None:
        self._repo.clear_current_user(session_key)
        logger.info("Session %s logged out", session_key[:6])

    # ── Event ─────────────────────────────────────────────────────────────────

    def create_event(self, name: str, location: str, theme: Theme) -> EventConfig:
        now = self._clock.now_ms()
        event = EventConfig(
            id=new_id(),
            name=name,
            location=location,
            date=datetime.fromtimestamp(now / 1000, tz=timezone.utc).date().isoformat(),
            theme=theme,
            start_time=now,
            duration_hours=self.event_duration_hours,
        )
        self._repo.set_event_config(event)
        logger.info("Event %s (%s) created, ends at %d", event.name, event.id, event.end_time)
        return event

    def update_event(
        self,
        name: Optional[str] = None,
        location: Optional[str] = None,
        theme: Optional[Theme] = None,
        duration_hours: Optional[float] = None,
    ) -> EventConfig:
        event = self._repo.get_event_config()
        if event is None:
            raise NoActiveEventError()

        changes = {
            field: value
            for field, value in (
                ("name", name),
                ("location", location),
                ("theme", theme),
                ("duration_hours", duration_hours),
            )
            if value is not None
        }
        # Re-validate so duration and name rules hold after the edit
        event = EventConfig.model_validate({**event.model_dump(), **changes})
        self._repo.set_event_config(event)
        logger.info("Event %s updated: %s", event.id, ", ".join(sorted(changes)) or "no changes")
        return event
