from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from . import domain


class HealthResponse(BaseModel):
    status: Literal["ok"]


class SizeVariant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    price: float = Field(..., ge=0)


class TemperatureOptions(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enabled: bool = False
    hot_surcharge: float = 0.0
    cold_surcharge: float = 0.0


class MenuItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    price: float = Field(..., ge=0, description="Base price")
    description: str = ""
    image: str = ""
    category: str = ""
    archived: bool = False
    sizes: List[SizeVariant] = Field(default_factory=list)
    temperature: Optional[TemperatureOptions] = None

    def to_domain(self) -> domain.MenuItem:
        return domain.MenuItem(
            id=self.id,
            name=self.name,
            price=self.price,
            description=self.description,
            image=self.image,
            category=self.category,
            archived=self.archived,
            sizes=tuple(domain.SizeVariant(s.name, s.price) for s in self.sizes),
            temperature=(
                domain.TemperatureOptions(**self.temperature.model_dump())
                if self.temperature is not None
                else None
            ),
        )


class Restaurant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    vendor_id: str
    location: str
    logo: str
    menu: List[MenuItem]


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    role: domain.Role
    restaurant_id: Optional[str] = None
    is_active: Optional[bool] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class SessionResponse(BaseModel):
    user: User
    impersonated_by: Optional[str] = None


class CartLine(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item: MenuItem
    restaurant_id: str
    price: float
    quantity: int
    selected_size: Optional[str] = None
    selected_temp: Optional[domain.Temperature] = None
    line_total: float


class CartResponse(BaseModel):
    items: List[CartLine]
    item_count: int
    subtotal: float
    service_fee: float
    total: float


class AddToCartRequest(BaseModel):
    restaurant_id: str
    item_id: str
    size: Optional[str] = None
    temperature: Optional[domain.Temperature] = None


class StatusAction(BaseModel):
    label: str
    target: domain.OrderStatus


class Order(BaseModel):
    id: str
    items: List[CartLine]
    total: float
    status: domain.OrderStatus
    timestamp: int
    customer_id: str
    restaurant_id: str
    actions: List[StatusAction] = Field(
        default_factory=list, description="Status changes offered to the vendor"
    )


class PlaceOrderRequest(BaseModel):
    customer_id: Optional[str] = None


class PlaceOrderResponse(BaseModel):
    placed: bool
    order: Optional[Order] = None


class StatusUpdateRequest(BaseModel):
    status: domain.OrderStatus


class AddItemAction(BaseModel):
    type: Literal["add"]
    item: MenuItem


class UpdateItemAction(BaseModel):
    type: Literal["update"]
    item: MenuItem


class ArchiveItemAction(BaseModel):
    type: Literal["archive"]
    item_id: str


class RestoreItemAction(BaseModel):
    type: Literal["restore"]
    item_id: str


class DeleteItemAction(BaseModel):
    type: Literal["delete"]
    item_id: str
    confirmed: bool = Field(
        default=False, description="Must be true, otherwise nothing is deleted"
    )


MenuAction = Annotated[
    Union[AddItemAction, UpdateItemAction, ArchiveItemAction, RestoreItemAction, DeleteItemAction],
    Field(discriminator="type"),
]


class MenuActionRequest(BaseModel):
    action: MenuAction


class VendorMenu(BaseModel):
    restaurant_id: str
    active: List[MenuItem]
    archived: List[MenuItem]


class VendorRegistration(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    restaurant_name: str = Field(..., min_length=1)
    location: str = ""
    logo: str = ""


class VendorUpdate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    restaurant_name: Optional[str] = None
    location: Optional[str] = None
    logo: Optional[str] = None


class Vendor(BaseModel):
    user: User
    restaurant: Optional[Restaurant] = None


class LocationRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)


class RestaurantSales(BaseModel):
    restaurant_id: str
    name: str
    total: float


class Report(BaseModel):
    vendor_count: int
    order_count: int
    total_revenue: float
    restaurant_sales: List[RestaurantSales]


class Theme(BaseModel):
    theme: Literal["light", "dark"]
