from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from . import cart as cart_ops
from .domain import AppState, Order, OrderStatus

logger = logging.getLogger(__name__)

GUEST_CUSTOMER_ID = "guest_user"


class OrderNotFoundError(Exception):
    """Raised when an order id is not in the ledger."""


@dataclass(frozen=True)
class StatusAction:
    label: str
    target: OrderStatus


# Transitions the vendor is offered. The ledger itself does not enforce them.
VENDOR_ACTIONS: Dict[OrderStatus, Tuple[StatusAction, ...]] = {
    OrderStatus.PENDING: (
        StatusAction("Accept", OrderStatus.ONGOING),
        StatusAction("Decline", OrderStatus.CANCELLED),
    ),
    OrderStatus.ONGOING: (StatusAction("Ready", OrderStatus.COMPLETED),),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}


def now_ms() -> int:
    return int(time.time() * 1000)


def place(
    state: AppState,
    customer_id: str = GUEST_CUSTOMER_ID,
    now: Optional[int] = None,
) -> AppState:
    """Turn the cart into a PENDING order at the front of the ledger.

    An empty cart leaves the state untouched.
    """
    if not state.cart:
        logger.debug("Checkout ignored, cart is empty")
        return state

    timestamp = now if now is not None else now_ms()
    order = Order(
        id=_unique_order_id(state.orders, timestamp),
        items=state.cart,
        total=cart_ops.total(state.cart),
        status=OrderStatus.PENDING,
        timestamp=timestamp,
        customer_id=customer_id,
        restaurant_id=state.cart[0].restaurant_id,
    )
    logger.info(
        "Order placed id=%s restaurant=%s customer=%s items=%d total=%.2f",
        order.id,
        order.restaurant_id,
        customer_id,
        cart_ops.item_count(order.items),
        order.total,
    )
    return replace(state, orders=(order,) + state.orders, cart=())


def update_status(state: AppState, order_id: str, status: OrderStatus) -> AppState:
    order = state.order(order_id)
    if order is None:
        raise OrderNotFoundError(f"Order {order_id} is unknown.")
    status = OrderStatus(status)
    logger.info("Order status id=%s %s -> %s", order_id, order.status.value, status.value)
    orders = tuple(
        replace(o, status=status) if o.id == order_id else o for o in state.orders
    )
    return replace(state, orders=orders)


def vendor_actions(status: OrderStatus) -> Tuple[StatusAction, ...]:
    return VENDOR_ACTIONS[OrderStatus(status)]


def orders_for_restaurant(orders: Iterable[Order], restaurant_id: str) -> List[Order]:
    return [o for o in orders if o.restaurant_id == restaurant_id]


def vendor_queue(orders: Iterable[Order], tab: OrderStatus = OrderStatus.PENDING) -> List[Order]:
    """Filter orders for one of the vendor's tabs.

    The PENDING tab is the vendor's "Ongoing" queue and also lists accepted
    orders that are still being prepared.
    """
    tab = OrderStatus(tab)
    if tab is OrderStatus.PENDING:
        wanted = {OrderStatus.PENDING, OrderStatus.ONGOING}
    else:
        wanted = {tab}
    return [o for o in orders if o.status in wanted]


def active_orders(orders: Iterable[Order]) -> List[Order]:
    return [
        o for o in orders if o.status not in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)
    ]


def total_revenue(orders: Iterable[Order]) -> float:
    return round(sum(o.total for o in orders), 2)


def restaurant_sales(state: AppState) -> List[dict]:
    return [
        {
            "restaurant_id": r.id,
            "name": r.name,
            "total": total_revenue(orders_for_restaurant(state.orders, r.id)),
        }
        for r in state.restaurants
    ]


def _unique_order_id(orders: Tuple[Order, ...], timestamp: int) -> str:
    taken = {o.id for o in orders}
    candidate = timestamp
    while f"ord_{candidate}" in taken:
        candidate += 1
    return f"ord_{candidate}"
