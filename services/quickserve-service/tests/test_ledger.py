from __future__ import annotations

from dataclasses import replace

import pytest

from quickserve_service import cart, ledger
from quickserve_service.domain import AppState, MenuItem, OrderStatus, Restaurant
from quickserve_service.ledger import OrderNotFoundError


@pytest.fixture()
def state() -> AppState:
    menu = (
        MenuItem(id="m1", name="Dumplings", price=10.0),
        MenuItem(id="m2", name="Tea", price=2.5),
    )
    return AppState(
        restaurants=(
            Restaurant(id="r1", name="Noodle Bar", vendor_id="v1", menu=menu),
            Restaurant(
                id="r2",
                name="Taco Stand",
                vendor_id="v2",
                menu=(MenuItem(id="t1", name="Taco", price=4.0),),
            ),
        )
    )


def _with_cart(state: AppState, *picks) -> AppState:
    for restaurant_id, item_id in picks:
        state = cart.add_to_cart(state, restaurant_id, item_id)
    return state


def test_place_order_creates_pending_order_and_clears_cart(state: AppState) -> None:
    state = _with_cart(state, ("r1", "m1"), ("r1", "m1"))

    placed = ledger.place(state, now=1_700_000_000_000)

    assert len(placed.orders) == 1
    order = placed.orders[0]
    assert order.status is OrderStatus.PENDING
    assert order.total == 20.0
    assert order.id == "ord_1700000000000"
    assert order.customer_id == ledger.GUEST_CUSTOMER_ID
    assert order.restaurant_id == "r1"
    assert placed.cart == ()


def test_place_order_excludes_service_fee(state: AppState) -> None:
    state = _with_cart(state, ("r1", "m1"), ("r1", "m2"))
    placed = ledger.place(state, "cust-1", now=1)
    assert placed.orders[0].total == 12.5
    assert placed.orders[0].customer_id == "cust-1"


def test_place_empty_cart_is_noop(state: AppState) -> None:
    assert ledger.place(state) is state


def test_orders_are_most_recent_first_with_unique_ids(state: AppState) -> None:
    state = ledger.place(_with_cart(state, ("r1", "m1")), now=5)
    state = ledger.place(_with_cart(state, ("r2", "t1")), now=5)

    assert [o.restaurant_id for o in state.orders] == ["r2", "r1"]
    assert state.orders[0].id != state.orders[1].id


def test_restaurant_comes_from_first_cart_line(state: AppState) -> None:
    state = _with_cart(state, ("r2", "t1"), ("r1", "m1"))
    placed = ledger.place(state, now=1)
    assert placed.orders[0].restaurant_id == "r2"
    assert placed.orders[0].total == 14.0


def test_placed_items_are_frozen_against_menu_changes(state: AppState) -> None:
    state = ledger.place(_with_cart(state, ("r1", "m1")), now=1)
    restaurant = state.restaurant("r1")
    repriced = replace(restaurant, menu=(replace(restaurant.menu[0], price=99.0),))
    state = replace(state, restaurants=(repriced,) + state.restaurants[1:])

    assert state.orders[0].items[0].price == 10.0
    assert state.orders[0].total == 10.0


def test_update_status_overwrites_unconditionally(state: AppState) -> None:
    state = ledger.place(_with_cart(state, ("r1", "m1")), now=1)
    order_id = state.orders[0].id

    state = ledger.update_status(state, order_id, OrderStatus.COMPLETED)
    state = ledger.update_status(state, order_id, OrderStatus.PENDING)

    assert state.order(order_id).status is OrderStatus.PENDING


def test_update_status_unknown_order(state: AppState) -> None:
    with pytest.raises(OrderNotFoundError):
        ledger.update_status(state, "ord_missing", OrderStatus.ONGOING)


def test_vendor_actions_follow_the_order_lifecycle() -> None:
    pending = ledger.vendor_actions(OrderStatus.PENDING)
    assert [(a.label, a.target) for a in pending] == [
        ("Accept", OrderStatus.ONGOING),
        ("Decline", OrderStatus.CANCELLED),
    ]
    assert [a.target for a in ledger.vendor_actions(OrderStatus.ONGOING)] == [OrderStatus.COMPLETED]
    assert ledger.vendor_actions(OrderStatus.COMPLETED) == ()
    assert ledger.vendor_actions(OrderStatus.CANCELLED) == ()


def test_vendor_queue_and_active_orders(state: AppState) -> None:
    for now in (1, 2, 3, 4):
        state = ledger.place(_with_cart(state, ("r1", "m1")), now=now)
    ids = [o.id for o in state.orders]
    state = ledger.update_status(state, ids[0], OrderStatus.ONGOING)
    state = ledger.update_status(state, ids[1], OrderStatus.COMPLETED)
    state = ledger.update_status(state, ids[2], OrderStatus.CANCELLED)

    ongoing = ledger.vendor_queue(state.orders, OrderStatus.PENDING)
    assert [o.id for o in ongoing] == [ids[0], ids[3]]
    assert [o.id for o in ledger.vendor_queue(state.orders, OrderStatus.COMPLETED)] == [ids[1]]
    assert [o.id for o in ledger.active_orders(state.orders)] == [ids[0], ids[3]]


def test_sales_reports(state: AppState) -> None:
    state = ledger.place(_with_cart(state, ("r1", "m1"), ("r1", "m2")), now=1)
    state = ledger.place(_with_cart(state, ("r2", "t1")), now=2)

    assert ledger.total_revenue(state.orders) == 16.5
    assert ledger.restaurant_sales(state) == [
        {"restaurant_id": "r1", "name": "Noodle Bar", "total": 12.5},
        {"restaurant_id": "r2", "name": "Taco Stand", "total": 4.0},
    ]
    assert len(ledger.orders_for_restaurant(state.orders, "r2")) == 1
