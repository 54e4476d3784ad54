from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from .catalog import RestaurantNotFoundError
from .domain import AppState, Restaurant, Role, User
from .ledger import now_ms

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid username or password. Please try again."


class InvalidCredentialsError(Exception):
    """Raised when no user matches the submitted username and password."""


class VendorNotFoundError(Exception):
    """Raised when a vendor account id is unknown."""


class NotAnAdminError(Exception):
    """Raised when a non-admin account tries an admin-only action."""


@dataclass(frozen=True)
class VendorProfile:
    username: str
    password: str
    restaurant_name: str
    location: str = ""
    logo: str = ""


@dataclass(frozen=True)
class Session:
    user: User
    impersonated_by: Optional[str] = None

    @property
    def role(self) -> Role:
        return self.user.role


def login(users: Iterable[User], username: str, password: str) -> Session:
    """Match the credentials against the user table in plain text.

    The active flag is not consulted here; disabled vendors can still sign in.
    """
    user = next(
        (u for u in users if u.username == username and u.password == password), None
    )
    if user is None:
        logger.warning("Login failed username=%s", username)
        raise InvalidCredentialsError(LOGIN_FAILED_MESSAGE)
    logger.info("Login username=%s role=%s", username, Role(user.role).value)
    return Session(user=user)


def register_vendor(state: AppState, profile: VendorProfile, now: Optional[int] = None) -> AppState:
    stamp = now if now is not None else now_ms()
    taken = {u.id for u in state.users} | {r.id for r in state.restaurants}
    while f"v_{stamp}" in taken or f"r_{stamp}" in taken:
        stamp += 1

    user_id, restaurant_id = f"v_{stamp}", f"r_{stamp}"
    user = User(
        id=user_id,
        username=profile.username,
        role=Role.VENDOR,
        restaurant_id=restaurant_id,
        password=profile.password,
        is_active=True,
    )
    restaurant = Restaurant(
        id=restaurant_id,
        name=profile.restaurant_name,
        vendor_id=user_id,
        location=profile.location,
        logo=profile.logo,
        menu=(),
    )
    logger.info("Vendor registered user=%s restaurant=%s", user_id, restaurant_id)
    return replace(
        state,
        users=state.users + (user,),
        restaurants=state.restaurants + (restaurant,),
    )


def update_vendor(state: AppState, user: User, restaurant: Restaurant) -> AppState:
    if state.user(user.id) is None:
        raise VendorNotFoundError(f"Vendor {user.id} does not exist.")
    if state.restaurant(restaurant.id) is None:
        raise RestaurantNotFoundError(f"Restaurant {restaurant.id} does not exist.")
    logger.info("Vendor updated user=%s restaurant=%s", user.id, restaurant.id)
    return replace(
        state,
        users=tuple(user if u.id == user.id else u for u in state.users),
        restaurants=tuple(restaurant if r.id == restaurant.id else r for r in state.restaurants),
    )


def toggle_active(state: AppState, user_id: str) -> AppState:
    user = require_vendor(state, user_id)
    updated = replace(user, is_active=not user.is_active)
    logger.info("Vendor %s user=%s", "enabled" if updated.is_active else "disabled", user_id)
    return replace(state, users=tuple(updated if u.id == user_id else u for u in state.users))


def impersonate(state: AppState, user_id: str, admin: Optional[User] = None) -> Session:
    if admin is not None and admin.role != Role.ADMIN:
        raise NotAnAdminError(f"User {admin.id} cannot impersonate vendors.")
    user = require_vendor(state, user_id)
    admin_id = admin.id if admin is not None else None
    logger.info("Impersonation vendor=%s admin=%s", user_id, admin_id)
    return Session(user=user, impersonated_by=admin_id)


def add_location(state: AppState, location: str) -> AppState:
    location = location.strip()
    if not location:
        raise ValueError("Location name must not be blank.")
    if location in state.locations:
        logger.debug("Location %r already registered", location)
        return state
    logger.info("Location added name=%s", location)
    return replace(state, locations=state.locations + (location,))


def delete_location(state: AppState, location: str) -> AppState:
    # Restaurants tagged with the location keep the tag.
    location = location.strip()
    logger.info("Location deleted name=%s", location)
    return replace(state, locations=tuple(loc for loc in state.locations if loc != location))


def require_admin(state: AppState, user_id: str) -> User:
    user = state.user(user_id)
    if user is None or user.role != Role.ADMIN:
        raise NotAnAdminError(f"User {user_id} is not an admin.")
    return user


def require_vendor(state: AppState, user_id: str) -> User:
    user = state.user(user_id)
    if user is None or user.role != Role.VENDOR:
        raise VendorNotFoundError(f"Vendor {user_id} does not exist.")
    return user
