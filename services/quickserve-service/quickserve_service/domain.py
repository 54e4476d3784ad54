"""Domain model of the QuickServe ordering demo.

All records are frozen dataclasses and every collection is a tuple, so a
state transition always builds a new snapshot instead of mutating the old one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Role(str, Enum):
    CUSTOMER = "CUSTOMER"
    VENDOR = "VENDOR"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Temperature(str, Enum):
    HOT = "HOT"
    COLD = "COLD"


@dataclass(frozen=True)
class SizeVariant:
    name: str
    price: float


@dataclass(frozen=True)
class TemperatureOptions:
    enabled: bool = False
    hot_surcharge: float = 0.0
    cold_surcharge: float = 0.0


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: float
    description: str = ""
    image: str = ""
    category: str = ""
    archived: bool = False
    sizes: Tuple[SizeVariant, ...] = ()
    temperature: Optional[TemperatureOptions] = None


@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    vendor_id: str
    location: str = ""
    logo: str = ""
    menu: Tuple[MenuItem, ...] = ()


@dataclass(frozen=True)
class CartItem:
    """A menu item snapshot as it sits in the cart.

    ``price`` is the unit price charged for the line, which is the composed
    price of the item for the selection captured when the line was created.
    """

    item: MenuItem
    restaurant_id: str
    price: float
    quantity: int = 1
    selected_size: Optional[str] = None
    selected_temp: Optional[Temperature] = None

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


@dataclass(frozen=True)
class Order:
    id: str
    items: Tuple[CartItem, ...]
    total: float
    status: OrderStatus
    timestamp: int
    customer_id: str
    restaurant_id: str


@dataclass(frozen=True)
class User:
    id: str
    username: str
    role: Role
    restaurant_id: Optional[str] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None


@dataclass(frozen=True)
class AppState:
    restaurants: Tuple[Restaurant, ...] = ()
    orders: Tuple[Order, ...] = ()
    cart: Tuple[CartItem, ...] = ()
    users: Tuple[User, ...] = ()
    locations: Tuple[str, ...] = field(default_factory=tuple)

    def restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        return next((r for r in self.restaurants if r.id == restaurant_id), None)

    def user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    @property
    def vendors(self) -> Tuple[User, ...]:
        return tuple(u for u in self.users if u.role == Role.VENDOR)
