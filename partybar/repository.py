"""Typed access to the record store.

Every call goes to the store; nothing is cached between calls. Methods ending in
``_versioned`` also return the record version for optimistic writes.
"""

import logging
from typing import Callable, List, Optional, Tuple, TypeVar

from partybar.errors import ConflictError
from partybar.schemas import CoinCode, Drink, EventConfig, Order, User
from partybar.store import Collection, RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENT_KEY = "active"
# Shared current-user slot used when no per-terminal session key is given
CURRENT_SESSION = "current"


def _dump(entity) -> dict:
    return entity.model_dump(mode="json")


class Repository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # --- Event (singleton) ---

    def get_event_config(self) -> Optional[EventConfig]:
        record = self.store.get_record(Collection.EVENTS, EVENT_KEY)
        return EventConfig.model_validate(record.data) if record else None

    def set_event_config(self, event: EventConfig) -> None:
        self.store.upsert(Collection.EVENTS, EVENT_KEY, _dump(event))

    def clear_event_config(self) -> None:
        self.store.delete(Collection.EVENTS, EVENT_KEY)

    # --- Current user (one per session key) ---

    def get_current_user(self, session_key: str = CURRENT_SESSION) -> Optional[User]:
        found = self.get_current_user_versioned(session_key)
        return found[0] if found else None

    def get_current_user_versioned(self, session_key: str = CURRENT_SESSION) -> Optional[Tuple[User, int]]:
        record = self.store.get_record(Collection.SESSIONS, session_key)
        return (User.model_validate(record.data), record.version) if record else None

    def set_current_user(
        self, user: User, session_key: str = CURRENT_SESSION, expected_version: Optional[int] = None
    ) -> int:
        return self.store.upsert(Collection.SESSIONS, session_key, _dump(user), expected_version)

    def clear_current_user(self, session_key: str = CURRENT_SESSION) -> None:
        self.store.delete(Collection.SESSIONS, session_key)

    # --- Drinks ---

    def list_drinks(self) -> List[Drink]:
        return [Drink.model_validate(d) for d in self.store.get_all(Collection.DRINKS)]

    def get_drink(self, drink_id: str) -> Optional[Drink]:
        record = self.store.get_record(Collection.DRINKS, drink_id)
        return Drink.model_validate(record.data) if record else None

    def save_drink(self, drink: Drink) -> None:
        self.store.upsert(Collection.DRINKS, drink.id, _dump(drink))

    def delete_drink(self, drink_id: str) -> bool:
        return self.store.delete(Collection.DRINKS, drink_id)

    # --- Orders ---

    def list_orders(self) -> List[Order]:
        return [Order.model_validate(o) for o in self.store.get_all(Collection.ORDERS)]

    def get_order_versioned(self, order_id: str) -> Optional[Tuple[Order, int]]:
        record = self.store.get_record(Collection.ORDERS, order_id)
        return (Order.model_validate(record.data), record.version) if record else None

    def save_order(self, order: Order, expected_version: Optional[int] = None) -> int:
        return self.store.upsert(Collection.ORDERS, order.id, _dump(order), expected_version)

    # --- Coin codes ---

    def list_coin_codes(self) -> List[CoinCode]:
        return [CoinCode.model_validate(c) for c in self.store.get_all(Collection.COIN_CODES)]

    def get_coin_code_versioned(self, code: str) -> Optional[Tuple[CoinCode, int]]:
        record = self.store.get_record(Collection.COIN_CODES, code)
        return (CoinCode.model_validate(record.data), record.version) if record else None

    def save_coin_code(self, coin_code: CoinCode, expected_version: Optional[int] = None) -> int:
        return self.store.upsert(
            Collection.COIN_CODES, coin_code.code, _dump(coin_code), expected_version
        )


def retry_on_conflict(operation: Callable[[], T], attempts: int) -> T:
    """Run a read-modify-write ``operation``, re-running it when its write loses a race."""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConflictError as exc:
            if attempt >= attempts:
                raise
            logger.warning(
                "Write conflict on %s/%s (attempt %d of %d), retrying",
                exc.collection, exc.key, attempt, attempts,
            )
    raise ValueError("attempts must be at least 1")
