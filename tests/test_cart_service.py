"""Tests for the cart store: merge semantics, clamping, derived totals and persistence."""

from decimal import Decimal

from storefront.cart_service import CartStore
from storefront.models import CartItemRequest, CartLine
from tests.fakes import InMemoryCartStorage


def _item(product_id: str = "p1", price: str = "1000", name: str = "Ankara Tote", image: str = "a.jpg") -> CartItemRequest:
    return CartItemRequest(id=product_id, name=name, unit_price=Decimal(price), image=image)


def _store(lines: list[CartLine] | None = None) -> tuple[CartStore, InMemoryCartStorage]:
    storage = InMemoryCartStorage(lines)
    return CartStore(storage, cart_id="session-1"), storage


def _assert_pricing_identity(cart: CartStore) -> None:
    assert cart.get_total() == cart.get_subtotal() + cart.get_vat()
    assert cart.get_vat() == cart.get_subtotal() * Decimal("0.075")


class TestAddToCart:

    def test_first_add_creates_line_with_quantity_one(self):
        cart, _ = _store()
        line = cart.add_to_cart(_item())
        assert line.quantity == 1
        assert len(cart.lines) == 1

    def test_repeated_add_increments_single_line(self):
        cart, _ = _store()
        for _ in range(4):
            cart.add_to_cart(_item())
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 4

    def test_repeated_add_keeps_first_price_name_and_image(self):
        cart, _ = _store()
        cart.add_to_cart(_item(price="1000", name="Tote", image="first.jpg"))
        cart.add_to_cart(_item(price="9999", name="Renamed", image="second.jpg"))
        line = cart.lines[0]
        assert line.unit_price == Decimal("1000")
        assert line.name == "Tote"
        assert line.image == "first.jpg"

    def test_input_quantity_is_ignored(self):
        cart, _ = _store()
        cart.add_to_cart(CartItemRequest(id="p1", name="Tote", unit_price=Decimal("10"), quantity=7))
        assert cart.lines[0].quantity == 1

    def test_lines_keep_insertion_order(self):
        cart, _ = _store()
        cart.add_to_cart(_item("b"))
        cart.add_to_cart(_item("a"))
        cart.add_to_cart(_item("b"))
        assert [line.id for line in cart.lines] == ["b", "a"]

    def test_scenario_readd_bumps_quantity_and_subtotal(self):
        cart, _ = _store([CartLine(id="p1", name="Tote", unit_price=Decimal("1000"), quantity=2, image="")])
        assert cart.get_subtotal() == 2000
        assert cart.get_vat() == 150
        assert cart.get_total() == 2150
        cart.add_to_cart(_item("p1", "1000"))
        assert cart.lines[0].quantity == 3
        assert cart.get_subtotal() == 3000


class TestUpdateQuantity:

    def test_sets_quantity(self):
        cart, _ = _store()
        cart.add_to_cart(_item())
        cart.update_quantity("p1", 5)
        assert cart.lines[0].quantity == 5

    def test_zero_is_clamped_to_one(self):
        cart, _ = _store()
        cart.add_to_cart(_item())
        cart.update_quantity("p1", 0)
        assert cart.lines[0].quantity == 1

    def test_negative_is_clamped_to_one(self):
        cart, _ = _store()
        cart.add_to_cart(_item())
        cart.update_quantity("p1", -5)
        assert cart.lines[0].quantity == 1

    def test_unknown_id_is_noop(self):
        cart, _ = _store()
        cart.add_to_cart(_item())
        before = cart.lines
        cart.update_quantity("missing", 3)
        assert cart.lines == before


class TestRemoveAndClear:

    def test_remove_deletes_line(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1"))
        cart.add_to_cart(_item("p2"))
        cart.remove_from_cart("p1")
        assert [line.id for line in cart.lines] == ["p2"]

    def test_remove_unknown_id_leaves_cart_unchanged(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1"))
        before = cart.lines
        cart.remove_from_cart("nope")
        assert cart.lines == before

    def test_clear_empties_cart(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1"))
        cart.clear_cart()
        assert cart.is_empty()
        assert cart.get_total() == 0


class TestDerivedValues:

    def test_pricing_identity_holds_after_every_mutation(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1", "19.99"))
        _assert_pricing_identity(cart)
        cart.add_to_cart(_item("p2", "250"))
        _assert_pricing_identity(cart)
        cart.update_quantity("p1", 7)
        _assert_pricing_identity(cart)
        cart.remove_from_cart("p2")
        _assert_pricing_identity(cart)
        cart.clear_cart()
        _assert_pricing_identity(cart)

    def test_item_count(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1"))
        cart.add_to_cart(_item("p1"))
        cart.add_to_cart(_item("p2"))
        assert cart.get_item_count() == 3

    def test_lines_snapshot_is_detached(self):
        cart, _ = _store()
        cart.add_to_cart(_item())
        cart.lines[0].quantity = 99
        assert cart.lines[0].quantity == 1

    def test_to_response(self):
        cart, _ = _store()
        cart.add_to_cart(_item("p1", "1000"))
        cart.add_to_cart(_item("p1", "1000"))
        response = cart.to_response()
        assert response.cart_id == "session-1"
        assert response.item_count == 2
        assert response.subtotal == 2000
        assert response.vat == 150
        assert response.total == 2150


class TestPersistence:

    def test_every_mutation_is_persisted(self):
        cart, storage = _store()
        cart.add_to_cart(_item("p1"))
        cart.update_quantity("p1", 3)
        cart.remove_from_cart("p2")
        cart.clear_cart()
        assert storage.save_count == 4
        assert storage.saved == []

    def test_rehydrates_from_storage(self):
        cart, storage = _store()
        cart.add_to_cart(_item("p1"))
        cart.update_quantity("p1", 4)

        reloaded = CartStore(storage, cart_id="session-1")
        assert reloaded.lines == cart.lines
        assert reloaded.get_total() == cart.get_total()

    def test_reads_do_not_persist(self):
        cart, storage = _store()
        cart.get_subtotal()
        cart.get_vat()
        cart.get_total()
        assert storage.save_count == 0
