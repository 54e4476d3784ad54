from __future__ import annotations

import sqlite3

import pytest

from quickserve_service import cart, ledger
from quickserve_service.database import init_db
from quickserve_service.domain import OrderStatus, Temperature
from quickserve_service.ledger import OrderNotFoundError
from quickserve_service.repository import StateRepository
from quickserve_service.seed import initial_state
from quickserve_service.store import AppStore


@pytest.fixture()
def repo(tmp_path) -> StateRepository:
    db_path = tmp_path / "quickserve.db"

    def connection_factory() -> sqlite3.Connection:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        return conn

    init_db(connection_factory)
    return StateRepository(connection_factory=connection_factory)


class FailingRepository(StateRepository):
    def __init__(self) -> None:
        super().__init__(connection_factory=None)

    def save_snapshot(self, state):
        raise RuntimeError("database is down")


def test_snapshot_round_trip(repo: StateRepository) -> None:
    state = cart.add_to_cart(initial_state(), "resto-kyoto", "kyoto-matcha", "Large", Temperature.HOT)
    state = ledger.place(state, now=10)
    state = cart.add_to_cart(state, "resto-roma", "roma-tiramisu")

    version = repo.save_snapshot(state)
    loaded = repo.latest_snapshot()

    assert version == 1
    assert loaded == state
    assert loaded.orders[0].status is OrderStatus.PENDING
    assert loaded.orders[0].items[0].selected_temp is Temperature.HOT


def test_latest_snapshot_empty(repo: StateRepository) -> None:
    assert repo.latest_snapshot() is None
    assert repo.snapshot_count() == 0


def test_preferences_upsert(repo: StateRepository) -> None:
    assert repo.get_preference("theme") is None
    repo.set_preference("theme", "dark")
    repo.set_preference("theme", "light")
    assert repo.get_preference("theme") == "light"


def test_store_persists_each_new_snapshot(repo: StateRepository) -> None:
    store = AppStore.load(repo, initial_state())
    assert repo.snapshot_count() == 1

    store.dispatch(cart.add_to_cart, "resto-roma", "roma-carbonara")
    store.dispatch(ledger.place, "guest_user", 99)
    store.dispatch(ledger.place)
    assert repo.snapshot_count() == 3

    resumed = AppStore.load(repo, initial_state())
    assert resumed.state == store.state
    assert resumed.state.orders[0].id == "ord_99"


def test_store_keeps_state_when_transition_fails() -> None:
    store = AppStore(initial_state())
    before = store.state

    with pytest.raises(OrderNotFoundError):
        store.dispatch(ledger.update_status, "ord_missing", OrderStatus.ONGOING)

    assert store.state is before
    assert len(store.history) == 1


def test_store_history_grows_per_change() -> None:
    store = AppStore(initial_state())
    store.dispatch(cart.add_to_cart, "resto-roma", "roma-carbonara")
    store.dispatch(cart.add_to_cart, "resto-roma", "roma-carbonara")
    store.dispatch(cart.remove_from_cart, "nothing-here")

    history = store.history
    assert len(history) == 3
    assert history[0].cart == ()
    assert history[-1].cart[0].quantity == 2


def test_store_keeps_state_when_save_fails() -> None:
    store = AppStore(initial_state(), FailingRepository())
    before = store.state

    with pytest.raises(RuntimeError):
        store.dispatch(cart.add_to_cart, "resto-roma", "roma-tiramisu")

    assert store.state is before
    assert store.state.cart == ()
    assert len(store.history) == 1


def test_store_history_is_capped() -> None:
    store = AppStore(initial_state(), history_limit=3)
    for _ in range(10):
        store.dispatch(cart.add_to_cart, "resto-roma", "roma-tiramisu")

    history = store.history
    assert len(history) == 3
    assert history[-1] is store.state
    assert history[0].cart[0].quantity == 8


def test_save_snapshot_prunes_old_versions(tmp_path) -> None:
    db_path = tmp_path / "pruned.db"

    def connection_factory() -> sqlite3.Connection:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        return conn

    init_db(connection_factory)
    repo = StateRepository(connection_factory=connection_factory, retention=2)
    store = AppStore.load(repo, initial_state())
    for _ in range(4):
        store.dispatch(cart.add_to_cart, "resto-roma", "roma-tiramisu")

    assert repo.snapshot_count() == 2
    assert repo.save_snapshot(store.state) == 6
    assert repo.latest_snapshot() == store.state


def test_theme_toggle_is_persisted(repo: StateRepository) -> None:
    store = AppStore(initial_state(), repo)
    assert store.get_theme() == "light"
    assert store.toggle_theme() == "dark"

    assert AppStore(initial_state(), repo).get_theme() == "dark"

    with pytest.raises(ValueError):
        store.set_theme("sepia")
