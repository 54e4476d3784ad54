from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple

from .catalog import MenuItemValidationError, compose_price, find_item
from .domain import AppState, CartItem, MenuItem, Temperature

logger = logging.getLogger(__name__)

Cart = Tuple[CartItem, ...]

DEFAULT_SERVICE_FEE = 1.50


def make_entry(
    item: MenuItem,
    restaurant_id: str,
    size: Optional[str] = None,
    temperature: Optional[Temperature] = None,
) -> CartItem:
    return CartItem(
        item=item,
        restaurant_id=restaurant_id,
        price=compose_price(item, size, temperature),
        quantity=1,
        selected_size=size,
        selected_temp=Temperature(temperature) if temperature is not None else None,
    )


def add(cart: Cart, entry: CartItem) -> Cart:
    """Add one unit of ``entry``; lines are keyed by menu item id only."""
    if any(line.id == entry.id for line in cart):
        return tuple(
            replace(line, quantity=line.quantity + 1) if line.id == entry.id else line
            for line in cart
        )
    return cart + (replace(entry, quantity=1),)


def remove(cart: Cart, item_id: str) -> Cart:
    existing = next((line for line in cart if line.id == item_id), None)
    if existing is None:
        return cart
    if existing.quantity > 1:
        return tuple(
            replace(line, quantity=line.quantity - 1) if line.id == item_id else line
            for line in cart
        )
    return tuple(line for line in cart if line.id != item_id)


def total(cart: Cart) -> float:
    return round(sum(line.price * line.quantity for line in cart), 2)


def checkout_total(cart: Cart, service_fee: float = DEFAULT_SERVICE_FEE) -> float:
    """Amount shown at checkout; the fee is never part of a stored order total."""
    return round(total(cart) + service_fee, 2)


def item_count(cart: Cart) -> int:
    return sum(line.quantity for line in cart)


def add_to_cart(
    state: AppState,
    restaurant_id: str,
    item_id: str,
    size: Optional[str] = None,
    temperature: Optional[Temperature] = None,
) -> AppState:
    item = find_item(state, restaurant_id, item_id)
    if item.archived:
        raise MenuItemValidationError(f"Menu item {item_id} is archived.")
    cart = add(state.cart, make_entry(item, restaurant_id, size, temperature))
    logger.info("Cart add item=%s restaurant=%s count=%d", item_id, restaurant_id, item_count(cart))
    return replace(state, cart=cart)


def remove_from_cart(state: AppState, item_id: str) -> AppState:
    cart = remove(state.cart, item_id)
    if cart == state.cart:
        logger.debug("Cart remove ignored, item=%s not in cart", item_id)
        return state
    logger.info("Cart remove item=%s count=%d", item_id, item_count(cart))
    return replace(state, cart=cart)
