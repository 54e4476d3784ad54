from __future__ import annotations

import logging
import os
from dataclasses import replace
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from . import accounts, cart, catalog, domain, ledger, schemas
from .accounts import (
    InvalidCredentialsError,
    NotAnAdminError,
    VendorNotFoundError,
    VendorProfile,
)
from .catalog import MenuItemNotFoundError, MenuItemValidationError, RestaurantNotFoundError
from .database import init_db
from .ledger import OrderNotFoundError
from .repository import StateRepository
from .seed import initial_state
from .store import AppStore

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def build_store() -> AppStore:
    if os.environ.get("PERSIST_STATE", "1") == "0":
        logger.info("State persistence disabled, keeping snapshots in memory")
        return AppStore(initial_state())
    init_db()
    return AppStore.load(StateRepository(), initial_state())


def service_fee() -> float:
    return float(os.environ.get("SERVICE_FEE", str(cart.DEFAULT_SERVICE_FEE)))


def create_app(store: Optional[AppStore] = None) -> FastAPI:
    configure_logging()
    app_store = store if store is not None else build_store()
    app = FastAPI(
        title="QuickServe Service",
        version="0.1.0",
        description="Customer, vendor and admin callbacks of the QuickServe ordering demo.",
    )

    allowed_origins = [
        origin.strip() for origin in os.environ.get("ALLOWED_ORIGINS", "*").split(",")
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_store() -> AppStore:
        return app_store

    @app.get("/healthz", response_model=schemas.HealthResponse, tags=["system"])
    async def health() -> schemas.HealthResponse:
        return schemas.HealthResponse(status="ok")

    @app.post("/login", response_model=schemas.SessionResponse, tags=["auth"])
    async def login(
        payload: schemas.LoginRequest, store: AppStore = Depends(get_store)
    ) -> schemas.SessionResponse:
        try:
            session = accounts.login(store.state.users, payload.username, payload.password)
        except InvalidCredentialsError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
        return _session_out(session)

    # Customer

    @app.get("/restaurants", response_model=List[schemas.Restaurant], tags=["customer"])
    async def list_restaurants(
        location: Optional[str] = None, store: AppStore = Depends(get_store)
    ) -> List[schemas.Restaurant]:
        return [
            schemas.Restaurant.model_validate(r)
            for r in catalog.customer_catalog(store.state, location)
        ]

    @app.get("/cart", response_model=schemas.CartResponse, tags=["customer"])
    async def get_cart(store: AppStore = Depends(get_store)) -> schemas.CartResponse:
        return _cart_out(store.state.cart)

    @app.post("/cart/items", response_model=schemas.CartResponse, tags=["customer"])
    async def add_to_cart(
        payload: schemas.AddToCartRequest, store: AppStore = Depends(get_store)
    ) -> schemas.CartResponse:
        try:
            state = store.dispatch(
                cart.add_to_cart,
                payload.restaurant_id,
                payload.item_id,
                payload.size,
                payload.temperature,
            )
        except (RestaurantNotFoundError, MenuItemNotFoundError) as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        except MenuItemValidationError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        return _cart_out(state.cart)

    @app.delete("/cart/items/{item_id}", response_model=schemas.CartResponse, tags=["customer"])
    async def remove_from_cart(
        item_id: str, store: AppStore = Depends(get_store)
    ) -> schemas.CartResponse:
        state = store.dispatch(cart.remove_from_cart, item_id)
        return _cart_out(state.cart)

    @app.post("/orders", response_model=schemas.PlaceOrderResponse, tags=["customer"])
    async def place_order(
        payload: schemas.PlaceOrderRequest, store: AppStore = Depends(get_store)
    ) -> schemas.PlaceOrderResponse:
        before = store.state
        state = store.dispatch(ledger.place, payload.customer_id or ledger.GUEST_CUSTOMER_ID)
        if state is before:
            return schemas.PlaceOrderResponse(placed=False)
        return schemas.PlaceOrderResponse(placed=True, order=_order_out(state.orders[0]))

    @app.get("/orders/active", response_model=List[schemas.Order], tags=["customer"])
    async def active_orders(store: AppStore = Depends(get_store)) -> List[schemas.Order]:
        return [_order_out(o) for o in ledger.active_orders(store.state.orders)]

    # Vendor

    @app.get(
        "/vendors/{restaurant_id}/orders",
        response_model=List[schemas.Order],
        tags=["vendor"],
    )
    async def vendor_orders(
        restaurant_id: str,
        tab: domain.OrderStatus = domain.OrderStatus.PENDING,
        store: AppStore = Depends(get_store),
    ) -> List[schemas.Order]:
        _require_restaurant(store.state, restaurant_id)
        orders = ledger.orders_for_restaurant(store.state.orders, restaurant_id)
        return [_order_out(o) for o in ledger.vendor_queue(orders, tab)]

    @app.post(
        "/orders/{order_id}/status",
        response_model=schemas.Order,
        tags=["vendor"],
    )
    async def update_order_status(
        order_id: str,
        payload: schemas.StatusUpdateRequest,
        store: AppStore = Depends(get_store),
    ) -> schemas.Order:
        try:
            state = store.dispatch(ledger.update_status, order_id, payload.status)
        except OrderNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        return _order_out(state.order(order_id))

    @app.get(
        "/vendors/{restaurant_id}/menu",
        response_model=schemas.VendorMenu,
        tags=["vendor"],
    )
    async def vendor_menu(
        restaurant_id: str, store: AppStore = Depends(get_store)
    ) -> schemas.VendorMenu:
        return _vendor_menu_out(_require_restaurant(store.state, restaurant_id))

    @app.post(
        "/vendors/{restaurant_id}/menu/actions",
        response_model=schemas.VendorMenu,
        tags=["vendor"],
    )
    async def apply_menu_action(
        restaurant_id: str,
        payload: schemas.MenuActionRequest,
        store: AppStore = Depends(get_store),
    ) -> schemas.VendorMenu:
        try:
            state = store.dispatch(
                catalog.apply_menu_action, restaurant_id, _menu_action(payload.action)
            )
        except (RestaurantNotFoundError, MenuItemNotFoundError) as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        return _vendor_menu_out(state.restaurant(restaurant_id))

    # Admin

    @app.get("/admin/vendors", response_model=List[schemas.Vendor], tags=["admin"])
    async def list_vendors(store: AppStore = Depends(get_store)) -> List[schemas.Vendor]:
        state = store.state
        return [_vendor_out(state, v) for v in state.vendors]

    @app.post(
        "/admin/vendors",
        response_model=schemas.Vendor,
        status_code=status.HTTP_201_CREATED,
        tags=["admin"],
    )
    async def register_vendor(
        payload: schemas.VendorRegistration, store: AppStore = Depends(get_store)
    ) -> schemas.Vendor:
        state = store.dispatch(accounts.register_vendor, VendorProfile(**payload.model_dump()))
        return _vendor_out(state, state.users[-1])

    @app.put("/admin/vendors/{user_id}", response_model=schemas.Vendor, tags=["admin"])
    async def update_vendor(
        user_id: str,
        payload: schemas.VendorUpdate,
        store: AppStore = Depends(get_store),
    ) -> schemas.Vendor:
        try:
            user = accounts.require_vendor(store.state, user_id)
        except VendorNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        restaurant = _require_restaurant(store.state, user.restaurant_id or "")
        changes = payload.model_dump(exclude_none=True)
        updated_user = replace(
            user,
            username=changes.get("username", user.username),
            password=changes.get("password", user.password),
        )
        updated_restaurant = replace(
            restaurant,
            name=changes.get("restaurant_name", restaurant.name),
            location=changes.get("location", restaurant.location),
            logo=changes.get("logo", restaurant.logo),
        )
        state = store.dispatch(accounts.update_vendor, updated_user, updated_restaurant)
        return _vendor_out(state, state.user(user_id))

    @app.post(
        "/admin/vendors/{user_id}/toggle-active",
        response_model=schemas.Vendor,
        tags=["admin"],
    )
    async def toggle_vendor(user_id: str, store: AppStore = Depends(get_store)) -> schemas.Vendor:
        try:
            state = store.dispatch(accounts.toggle_active, user_id)
        except VendorNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        return _vendor_out(state, state.user(user_id))

    @app.post(
        "/admin/vendors/{user_id}/impersonate",
        response_model=schemas.SessionResponse,
        tags=["admin"],
    )
    async def impersonate_vendor(
        user_id: str,
        admin_id: Optional[str] = None,
        store: AppStore = Depends(get_store),
    ) -> schemas.SessionResponse:
        try:
            admin = accounts.require_admin(store.state, admin_id) if admin_id else None
            session = accounts.impersonate(store.state, user_id, admin)
        except NotAnAdminError as exc:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
        except VendorNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
        return _session_out(session)

    @app.get("/admin/locations", response_model=List[str], tags=["admin"])
    async def list_locations(store: AppStore = Depends(get_store)) -> List[str]:
        return list(store.state.locations)

    @app.post("/admin/locations", response_model=List[str], tags=["admin"])
    async def add_location(
        payload: schemas.LocationRequest, store: AppStore = Depends(get_store)
    ) -> List[str]:
        return list(store.dispatch(accounts.add_location, payload.name).locations)

    @app.delete("/admin/locations/{name}", response_model=List[str], tags=["admin"])
    async def delete_location(name: str, store: AppStore = Depends(get_store)) -> List[str]:
        return list(store.dispatch(accounts.delete_location, name).locations)

    @app.get("/admin/reports", response_model=schemas.Report, tags=["admin"])
    async def reports(store: AppStore = Depends(get_store)) -> schemas.Report:
        state = store.state
        return schemas.Report(
            vendor_count=len(state.vendors),
            order_count=len(state.orders),
            total_revenue=ledger.total_revenue(state.orders),
            restaurant_sales=[schemas.RestaurantSales(**row) for row in ledger.restaurant_sales(state)],
        )

    # Preferences

    @app.get("/preferences/theme", response_model=schemas.Theme, tags=["preferences"])
    async def get_theme(store: AppStore = Depends(get_store)) -> schemas.Theme:
        return schemas.Theme(theme=store.get_theme())

    @app.post("/preferences/theme/toggle", response_model=schemas.Theme, tags=["preferences"])
    async def toggle_theme(store: AppStore = Depends(get_store)) -> schemas.Theme:
        return schemas.Theme(theme=store.toggle_theme())

    return app


def _require_restaurant(state: domain.AppState, restaurant_id: str) -> domain.Restaurant:
    restaurant = state.restaurant(restaurant_id)
    if restaurant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Restaurant {restaurant_id} does not exist.",
        )
    return restaurant


def _menu_action(payload) -> catalog.MenuAction:
    if isinstance(payload, schemas.AddItemAction):
        return catalog.AddItem(payload.item.to_domain())
    if isinstance(payload, schemas.UpdateItemAction):
        return catalog.UpdateItem(payload.item.to_domain())
    if isinstance(payload, schemas.ArchiveItemAction):
        return catalog.ArchiveItem(payload.item_id)
    if isinstance(payload, schemas.RestoreItemAction):
        return catalog.RestoreItem(payload.item_id)
    return catalog.DeleteItem(payload.item_id, payload.confirmed)


def _cart_out(entries: cart.Cart) -> schemas.CartResponse:
    fee = service_fee()
    return schemas.CartResponse(
        items=[schemas.CartLine.model_validate(line) for line in entries],
        item_count=cart.item_count(entries),
        subtotal=cart.total(entries),
        service_fee=fee,
        total=cart.checkout_total(entries, fee),
    )


def _order_out(order: domain.Order) -> schemas.Order:
    return schemas.Order(
        id=order.id,
        items=[schemas.CartLine.model_validate(line) for line in order.items],
        total=order.total,
        status=order.status,
        timestamp=order.timestamp,
        customer_id=order.customer_id,
        restaurant_id=order.restaurant_id,
        actions=[
            schemas.StatusAction(label=a.label, target=a.target)
            for a in ledger.vendor_actions(order.status)
        ],
    )


def _vendor_menu_out(restaurant: domain.Restaurant) -> schemas.VendorMenu:
    return schemas.VendorMenu(
        restaurant_id=restaurant.id,
        active=[schemas.MenuItem.model_validate(m) for m in catalog.active_items(restaurant)],
        archived=[schemas.MenuItem.model_validate(m) for m in catalog.archived_items(restaurant)],
    )


def _vendor_out(state: domain.AppState, user: domain.User) -> schemas.Vendor:
    restaurant = state.restaurant(user.restaurant_id) if user.restaurant_id else None
    return schemas.Vendor(
        user=schemas.User.model_validate(user),
        restaurant=schemas.Restaurant.model_validate(restaurant) if restaurant else None,
    )


def _session_out(session: accounts.Session) -> schemas.SessionResponse:
    return schemas.SessionResponse(
        user=schemas.User.model_validate(session.user),
        impersonated_by=session.impersonated_by,
    )
