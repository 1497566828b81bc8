"""Unit tests for OrderService.

Run with: pytest tests/test_orders.py -v
"""

import pytest

from partybar.errors import InsufficientCoinsError, NotAuthenticatedError, OrderNotFoundError
from partybar.schemas import Drink, DrinkUpdate, OrderStatus


def set_balance(repo, coins):
    user = repo.get_current_user()
    repo.set_current_user(user.model_copy(update={"coins": coins}))


class TestPlaceOrder:
    """Tests for placing orders."""

    def test_debits_cost_and_appends_pending_order(self, orders, repo, guest_session, drink, clock):
        order = orders.place_order(guest_session, drink)

        assert repo.get_current_user().coins == 2
        assert order.status is OrderStatus.PENDING
        assert order.timestamp == clock.now_ms()
        assert repo.list_orders() == [order]

    def test_order_snapshots_drink_and_user(self, orders, guest_session, drink):
        order = orders.place_order(guest_session, drink)

        assert order.drink_id == "d1"
        assert order.drink_name == "Neon Sunset"
        assert order.drink_image == "img.png"
        assert order.user_id == guest_session.user.id
        assert order.user_name == "Ana"

    def test_editing_drink_leaves_placed_order_unchanged(self, orders, catalog, guest_session, drink):
        order = orders.place_order(guest_session, drink)
        catalog.update(drink.id, DrinkUpdate(name="Renamed"))
        catalog.delete(drink.id)

        assert orders.get(order.id).drink_name == "Neon Sunset"

    def test_exact_balance_can_be_spent(self, orders, repo, guest_session):
        pricey = Drink(id="d3", name="Triple", cost=3)
        orders.place_order(guest_session, pricey)
        assert repo.get_current_user().coins == 0

    def test_insufficient_coins_scenario(self, orders, repo, guest_session, drink):
        """Drink cost 1, balance 0: refused, balance stays 0, no order."""
        set_balance(repo, 0)

        with pytest.raises(InsufficientCoinsError):
            orders.place_order(guest_session, drink)

        assert repo.get_current_user().coins == 0
        assert repo.list_orders() == []

    @pytest.mark.parametrize("balance, cost", [(0, 1), (2, 3), (4, 9)])
    def test_insufficient_coins_writes_nothing(self, orders, repo, guest_session, balance, cost):
        set_balance(repo, balance)
        with pytest.raises(InsufficientCoinsError):
            orders.place_order(guest_session, Drink(id="dx", name="X", cost=cost))
        assert repo.get_current_user().coins == balance
        assert repo.list_orders() == []

    def test_balance_is_reread_not_taken_from_session(self, orders, repo, guest_session, drink):
        set_balance(repo, 0)  # session value still says 3
        with pytest.raises(InsufficientCoinsError):
            orders.place_order(guest_session, drink)

    def test_logged_out_session_cannot_order(self, orders, gate, guest_session, drink):
        gate.logout()
        with pytest.raises(NotAuthenticatedError):
            orders.place_order(guest_session, drink)


class TestAdvance:
    """Tests for the status pipeline."""

    def test_visits_each_status_then_stays_delivered(self, orders, guest_session, drink):
        order = orders.place_order(guest_session, drink)

        seen = [orders.advance(order.id).status for _ in range(5)]

        assert seen == [
            OrderStatus.PREPARING,
            OrderStatus.READY,
            OrderStatus.DELIVERED,
            OrderStatus.DELIVERED,
            OrderStatus.DELIVERED,
        ]
        assert orders.get(order.id).status is OrderStatus.DELIVERED

    def test_unknown_order_not_found(self, orders):
        with pytest.raises(OrderNotFoundError):
            orders.advance("missing")

    def test_get_unknown_order_not_found(self, orders):
        with pytest.raises(OrderNotFoundError):
            orders.get("missing")

    def test_advancing_one_order_keeps_concurrent_order(self, orders, guest_session, drink, clock):
        """Per-record writes: a kitchen update never drops a guest's new order."""
        first = orders.place_order(guest_session, drink)
        clock.advance(seconds=1)
        second = orders.place_order(guest_session, drink)

        orders.advance(first.id)

        assert orders.get(first.id).status is OrderStatus.PREPARING
        assert orders.get(second.id).status is OrderStatus.PENDING


class TestListing:
    """Tests for guest and kitchen views."""

    def test_list_for_user_newest_first(self, orders, gate, event, drink, clock):
        ana = gate.login_guest("Ana", session_key="ana")
        bob = gate.login_guest("Bob", session_key="bob")

        a1 = orders.place_order(ana, drink)
        clock.advance(seconds=10)
        orders.place_order(bob, drink)
        clock.advance(seconds=10)
        a2 = orders.place_order(ana, drink)

        assert [o.id for o in orders.list_for_user(ana.user.id)] == [a2.id, a1.id]

    def test_list_active_oldest_first_without_delivered(self, orders, guest_session, drink, clock):
        placed = []
        for _ in range(3):
            placed.append(orders.place_order(guest_session, drink))
            clock.advance(seconds=5)
        for _ in range(3):
            orders.advance(placed[1].id)

        assert [o.id for o in orders.list_active()] == [placed[0].id, placed[2].id]
