from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .domain import AppState, MenuItem, Restaurant, Temperature

logger = logging.getLogger(__name__)


class RestaurantNotFoundError(Exception):
    """Raised when a restaurant identifier is unknown."""


class MenuItemNotFoundError(Exception):
    """Raised when a menu item cannot be located on a restaurant's menu."""


class MenuItemValidationError(Exception):
    """Raised when a variant selection does not match the menu item."""


@dataclass(frozen=True)
class AddItem:
    item: MenuItem


@dataclass(frozen=True)
class UpdateItem:
    item: MenuItem


@dataclass(frozen=True)
class ArchiveItem:
    item_id: str


@dataclass(frozen=True)
class RestoreItem:
    item_id: str


@dataclass(frozen=True)
class DeleteItem:
    item_id: str
    confirmed: bool = False


MenuAction = Union[AddItem, UpdateItem, ArchiveItem, RestoreItem, DeleteItem]


def compose_price(
    item: MenuItem,
    size: Optional[str] = None,
    temperature: Optional[Temperature] = None,
) -> float:
    """Return the unit price of ``item`` for a variant selection.

    A selected size replaces the base price with the variant's own price. A
    selected temperature adds its surcharge on top, but only while the item's
    temperature block is enabled.
    """
    price = item.price
    if size is not None:
        variant = next((v for v in item.sizes if v.name == size), None)
        if variant is None:
            raise MenuItemValidationError(
                f"Size {size!r} is not offered for menu item {item.id}."
            )
        price = variant.price

    options = item.temperature
    if temperature is not None and options is not None and options.enabled:
        if Temperature(temperature) is Temperature.HOT:
            price += options.hot_surcharge
        else:
            price += options.cold_surcharge
    return round(price, 2)


def upsert_item(state: AppState, restaurant_id: str, item: MenuItem) -> AppState:
    restaurant = _require_restaurant(state, restaurant_id)
    if any(m.id == item.id for m in restaurant.menu):
        menu = tuple(item if m.id == item.id else m for m in restaurant.menu)
        logger.info("Menu item updated restaurant=%s item=%s", restaurant_id, item.id)
    else:
        menu = restaurant.menu + (item,)
        logger.info("Menu item added restaurant=%s item=%s", restaurant_id, item.id)
    return _replace_restaurant(state, replace(restaurant, menu=menu))


def archive(state: AppState, restaurant_id: str, item_id: str) -> AppState:
    return _set_archived(state, restaurant_id, item_id, True)


def restore(state: AppState, restaurant_id: str, item_id: str) -> AppState:
    return _set_archived(state, restaurant_id, item_id, False)


def permanently_delete(
    state: AppState, restaurant_id: str, item_id: str, confirmed: bool = False
) -> AppState:
    if not confirmed:
        logger.debug(
            "Delete not confirmed, keeping restaurant=%s item=%s", restaurant_id, item_id
        )
        return state
    restaurant = _require_restaurant(state, restaurant_id)
    menu = tuple(m for m in restaurant.menu if m.id != item_id)
    logger.info("Menu item deleted restaurant=%s item=%s", restaurant_id, item_id)
    return _replace_restaurant(state, replace(restaurant, menu=menu))


def apply_menu_action(state: AppState, restaurant_id: str, action: MenuAction) -> AppState:
    if isinstance(action, (AddItem, UpdateItem)):
        return upsert_item(state, restaurant_id, action.item)
    if isinstance(action, ArchiveItem):
        return archive(state, restaurant_id, action.item_id)
    if isinstance(action, RestoreItem):
        return restore(state, restaurant_id, action.item_id)
    if isinstance(action, DeleteItem):
        return permanently_delete(state, restaurant_id, action.item_id, action.confirmed)
    raise TypeError(f"Unsupported menu action: {action!r}")


def customer_menu(restaurant: Restaurant) -> Tuple[MenuItem, ...]:
    return tuple(m for m in restaurant.menu if not m.archived)


def customer_catalog(state: AppState, location: Optional[str] = None) -> Tuple[Restaurant, ...]:
    """Project the restaurants as customers see them, archived items removed."""
    return tuple(
        replace(r, menu=customer_menu(r))
        for r in state.restaurants
        if location is None or r.location == location
    )


def active_items(restaurant: Restaurant) -> Tuple[MenuItem, ...]:
    return customer_menu(restaurant)


def archived_items(restaurant: Restaurant) -> Tuple[MenuItem, ...]:
    return tuple(m for m in restaurant.menu if m.archived)


def find_item(state: AppState, restaurant_id: str, item_id: str) -> MenuItem:
    restaurant = _require_restaurant(state, restaurant_id)
    item = next((m for m in restaurant.menu if m.id == item_id), None)
    if item is None:
        raise MenuItemNotFoundError(
            f"Menu item {item_id} is not on the menu of restaurant {restaurant_id}."
        )
    return item


def _set_archived(state: AppState, restaurant_id: str, item_id: str, archived: bool) -> AppState:
    item = find_item(state, restaurant_id, item_id)
    logger.info(
        "Menu item %s restaurant=%s item=%s",
        "archived" if archived else "restored",
        restaurant_id,
        item_id,
    )
    return upsert_item(state, restaurant_id, replace(item, archived=archived))


def _require_restaurant(state: AppState, restaurant_id: str) -> Restaurant:
    restaurant = state.restaurant(restaurant_id)
    if restaurant is None:
        raise RestaurantNotFoundError(f"Restaurant {restaurant_id} does not exist.")
    return restaurant


def _replace_restaurant(state: AppState, restaurant: Restaurant) -> AppState:
    restaurants = tuple(restaurant if r.id == restaurant.id else r for r in state.restaurants)
    return replace(state, restaurants=restaurants)
