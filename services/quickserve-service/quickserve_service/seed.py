from __future__ import annotations

from .domain import (
    AppState,
    MenuItem,
    Restaurant,
    Role,
    SizeVariant,
    TemperatureOptions,
    User,
)

LOCATIONS = ("Main Hall", "East Wing", "Food Court")

USERS = (
    User(id="u_admin", username="admin", role=Role.ADMIN, password="adminpassword"),
    User(
        id="u_roma",
        username="roma",
        role=Role.VENDOR,
        restaurant_id="resto-roma",
        password="romapassword",
        is_active=True,
    ),
    User(
        id="u_kyoto",
        username="kyoto",
        role=Role.VENDOR,
        restaurant_id="resto-kyoto",
        password="kyotopassword",
        is_active=True,
    ),
)

RESTAURANTS = (
    Restaurant(
        id="resto-roma",
        name="La Trattoria Roma",
        vendor_id="u_roma",
        location="Main Hall",
        menu=(
            MenuItem(
                id="roma-carbonara",
                name="Pasta Carbonara",
                description="Pancetta and pecorino",
                price=12.5,
                category="Pasta",
            ),
            MenuItem(
                id="roma-margherita",
                name="Pizza Margherita",
                description="San Marzano tomatoes and buffalo mozzarella",
                price=10.0,
                category="Pizza",
                sizes=(SizeVariant("Regular", 10.0), SizeVariant("Large", 14.0)),
            ),
            MenuItem(
                id="roma-tiramisu",
                name="Tiramisu",
                description="Espresso and mascarpone",
                price=6.0,
                category="Dessert",
            ),
        ),
    ),
    Restaurant(
        id="resto-kyoto",
        name="Sakura Sushi Kyoto",
        vendor_id="u_kyoto",
        location="East Wing",
        menu=(
            MenuItem(
                id="kyoto-salmon",
                name="Salmon Nigiri Set",
                description="8 pieces of nigiri",
                price=15.5,
                category="Sushi",
            ),
            MenuItem(
                id="kyoto-ramen",
                name="Shoyu Ramen",
                description="Soy broth with chicken",
                price=13.0,
                category="Noodles",
            ),
            MenuItem(
                id="kyoto-matcha",
                name="Matcha Latte",
                price=4.5,
                category="Drinks",
                sizes=(SizeVariant("Small", 4.5), SizeVariant("Large", 5.5)),
                temperature=TemperatureOptions(enabled=True, hot_surcharge=0.0, cold_surcharge=0.5),
            ),
        ),
    ),
)


def initial_state() -> AppState:
    return AppState(restaurants=RESTAURANTS, users=USERS, locations=LOCATIONS)
