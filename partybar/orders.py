"""Order lifecycle: placing orders against the coin balance and moving them
through pending -> preparing -> ready -> delivered.
"""

import logging
from typing import List

from partybar import config
from partybar.clock import Clock
from partybar.errors import InsufficientCoinsError, NotAuthenticatedError, OrderNotFoundError
from partybar.gate import Session, new_id
from partybar.repository import Repository, retry_on_conflict
from partybar.schemas import NEXT_STATUS, Drink, Order, OrderStatus

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, repo: Repository, clock: Clock, write_attempts: int = config.WRITE_ATTEMPTS) -> None:
        self._repo = repo
        self._clock = clock
        self.write_attempts = write_attempts

    def place_order(self, session: Session, drink: Drink) -> Order:
        """Debit the drink's cost and queue a pending order.

        The balance is re-read from the store, not taken from ``session``.

        Raises:
            InsufficientCoinsError: If the balance is below the cost. Nothing is written.
        """

        def debit():
            found = self._repo.get_current_user_versioned(session.key)
            if found is None:
                raise NotAuthenticatedError()
            user, version = found
            if user.coins < drink.cost:
                raise InsufficientCoinsError(user.coins, drink.cost)
            debited = user.model_copy(update={"coins": user.coins - drink.cost})
            self._repo.set_current_user(debited, session.key, expected_version=version)
            return debited

        user = retry_on_conflict(debit, self.write_attempts)

        order = Order(
            id=new_id(),
            drink_id=drink.id,
            drink_name=drink.name,
            drink_image=drink.image_url,
            user_id=user.id,
            user_name=user.name,
            status=OrderStatus.PENDING,
            timestamp=self._clock.now_ms(),
        )
        self._repo.save_order(order, expected_version=0)
        logger.info(
            "Order %s placed by %s for %s (%d coin(s), %d left)",
            order.id, user.id, drink.name, drink.cost, user.coins,
        )
        return order

    def get(self, order_id: str) -> Order:
        found = self._repo.get_order_versioned(order_id)
        if found is None:
            raise OrderNotFoundError(order_id)
        return found[0]

    def advance(self, order_id: str) -> Order:
        """Move an order one step forward. Delivered orders are returned unchanged.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """

        def attempt() -> Order:
            found = self._repo.get_order_versioned(order_id)
            if found is None:
                raise OrderNotFoundError(order_id)
            order, version = found
            if order.status is OrderStatus.DELIVERED:
                return order
            advanced = order.model_copy(update={"status": NEXT_STATUS[order.status]})
            self._repo.save_order(advanced, expected_version=version)
            logger.info("Order %s: %s -> %s", order.id, order.status.value, advanced.status.value)
            return advanced

        return retry_on_conflict(attempt, self.write_attempts)

    def list_for_user(self, user_id: str) -> List[Order]:
        """A guest's orders, newest first."""
        orders = [o for o in self._repo.list_orders() if o.user_id == user_id]
        return sorted(orders, key=lambda o: o.timestamp, reverse=True)

    def list_active(self) -> List[Order]:
        """Undelivered orders, oldest first (kitchen queue)."""
        orders = [o for o in self._repo.list_orders() if o.status is not OrderStatus.DELIVERED]
        return sorted(orders, key=lambda o: o.timestamp)
