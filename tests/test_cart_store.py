from __future__ import annotations

import json

import pytest

from stampshop.domain.cart import CartLine, deserialize_cart, serialize_cart
from stampshop.domain.product import Product
from stampshop.integrations.cart_persistence import MemoryCartPersistence
from stampshop.services.cart_store import CartStore


class BrokenPersistence:
    def __init__(self, stored: str | None = None) -> None:
        self.stored = stored

    def load(self, key: str):
        return self.stored

    def save(self, key: str, payload: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def persistence() -> MemoryCartPersistence:
    return MemoryCartPersistence()


@pytest.fixture
def store(persistence) -> CartStore:
    return CartStore(persistence)


def _stamp(**overrides) -> dict:
    product = {"id": 1, "name": "Sello Automático", "price": 100}
    product.update(overrides)
    return product


def test_same_product_and_customization_merges(store: CartStore) -> None:
    store.add(_stamp(), 1, {"line1": "Ana", "color": "#000"})
    store.add(_stamp(), 2, {"color": "#000", "line1": "Ana", "line2": ""})

    assert len(store.lines) == 1
    assert store.lines[0].quantity == 3
    assert store.is_open is True


def test_different_customization_creates_new_line(store: CartStore) -> None:
    store.add(_stamp(), 1, {"line1": "Ana"})
    store.add(_stamp(), 1, {"line1": "Beto"})
    store.add(_stamp(id=2), 1, {"line1": "Ana"})

    assert len(store.lines) == 3
    assert len({line.line_id for line in store.lines}) == 3


def test_add_accepts_product_model(store: CartStore) -> None:
    product = Product(id=7, name="Sello Escolar", price=4500, category="escolar")
    store.add(product)

    line = store.lines[0]
    assert line.product_id == 7
    assert line.unit_price == 4500
    assert line.category == ["escolar"]


def test_add_defaults_missing_price_and_quantity(store: CartStore) -> None:
    store.add({"id": 3, "name": "Sin precio"}, quantity=0)

    line = store.lines[0]
    assert line.unit_price == 0
    assert line.quantity == 1


def test_update_quantity_below_one_removes_line(store: CartStore) -> None:
    store.add(_stamp())
    line_id = store.lines[0].line_id

    store.update_quantity(line_id, 5)
    assert store.lines[0].quantity == 5

    store.update_quantity(line_id, 0)
    assert store.is_empty()


def test_unknown_line_operations_are_noops(store: CartStore, persistence) -> None:
    store.add(_stamp())
    before = persistence.load("cart_v1")

    store.remove("missing")
    store.update_quantity("missing", 3)
    store.replace("missing", {"name": "x"})

    assert persistence.load("cart_v1") == before
    assert store.count == 1


def test_total_and_count_are_derived(store: CartStore) -> None:
    store.add(_stamp(price=100), 2, {"line1": "A"})
    store.add(_stamp(price=50), 1, {"line1": "B"})

    assert store.total == 250
    assert store.count == 3


def test_replace_keeps_line_id_and_opens_panel(store: CartStore) -> None:
    store.add(_stamp(), 1, {"line1": "Ana"})
    store.close()
    line_id = store.lines[0].line_id

    store.replace(line_id, {"customization": {"line1": "Ana María"}})

    assert store.lines[0].line_id == line_id
    assert store.lines[0].customization == {"line1": "Ana María"}
    assert store.is_open is True


def test_replace_merges_when_edit_collides(store: CartStore) -> None:
    store.add(_stamp(), 2, {"line1": "Ana"})
    store.add(_stamp(), 3, {"line1": "Beto"})
    edited_id = store.lines[1].line_id

    store.replace(edited_id, {"customization": {"line1": "Ana"}})

    assert len(store.lines) == 1
    assert store.lines[0].line_id == edited_id
    assert store.lines[0].quantity == 5


def test_open_close_do_not_touch_lines(store: CartStore, persistence) -> None:
    store.add(_stamp())
    before = persistence.load("cart_v1")
    store.close()
    store.open()
    assert persistence.load("cart_v1") == before


def test_every_mutation_is_persisted(store: CartStore, persistence) -> None:
    store.add(_stamp(), 2, {"line1": "Ana"})
    restored = CartStore(persistence)

    assert [line.to_dict() for line in restored.lines] == [line.to_dict() for line in store.lines]

    store.clear()
    assert CartStore(persistence).is_empty()


def test_corrupt_stored_cart_starts_empty(persistence) -> None:
    persistence.save("cart_v1", "{not json")
    store = CartStore(persistence)
    assert store.is_empty()

    persistence.save("cart_v1", json.dumps({"not": "a list"}))
    assert CartStore(persistence).is_empty()


def test_save_failure_is_not_raised() -> None:
    store = CartStore(BrokenPersistence())
    store.add(_stamp())
    assert store.count == 1


def test_listeners_run_after_mutations(store: CartStore) -> None:
    calls: list[int] = []
    store.subscribe(lambda cart: calls.append(cart.count))

    store.add(_stamp())
    store.open()
    store.add(_stamp())
    store.clear()

    assert calls == [1, 2, 0]


def test_legacy_browser_shape_is_rehydrated(persistence) -> None:
    legacy = [
        {"cartItemId": "abc", "id": 1, "name": "Sello", "price": 100, "qty": 2, "customization": {}},
        {"id": 2, "name": "Tinta", "price": 50, "qty": 1},
    ]
    persistence.save("cart_v1", json.dumps(legacy))

    store = CartStore(persistence)

    assert store.lines[0].line_id == "abc"
    assert store.lines[0].quantity == 2
    assert store.lines[1].line_id
    assert store.total == 250


def test_duplicated_stored_lines_are_merged_on_rehydrate(persistence) -> None:
    stored = [
        {"cartItemId": "first", "id": 1, "name": "Sello", "price": 100, "qty": 1, "customization": {"a": "x"}},
        {"cartItemId": "second", "id": "1", "name": "Sello", "price": 100, "qty": 2, "customization": {"a": "x", "b": ""}},
        {"id": 2, "name": "Tinta", "price": 50},
    ]
    persistence.save("cart_v1", json.dumps(stored))

    store = CartStore(persistence)

    assert [line.line_id for line in store.lines][:1] == ["first"]
    assert len(store.lines) == 2
    assert store.lines[0].quantity == 3
    assert store.count == 4


def test_serialization_round_trip_preserves_lines() -> None:
    lines = [
        CartLine(product_id=1, name="Sello", unit_price=100, quantity=2, customization={"line1": "Ana"}),
        CartLine(product_id="kit", name="Kit", unit_price=0, quantity=1),
    ]
    assert deserialize_cart(serialize_cart(lines)) == lines
