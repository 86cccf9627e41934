"""
Cart store: owns the cart lines, exposes the mutation API and derived totals,
and persists itself through an injected storage adapter.
"""
import hashlib
import logging
from decimal import Decimal
from typing import List, Optional

from storefront import pricing
from storefront.cart_storage import CartStorage
from storefront.models import CartItemRequest, CartLine, CartResponse

logger = logging.getLogger(__name__)


class CartStore:
    """Cart state container for one cart session"""

    def __init__(self, storage: CartStorage, cart_id: Optional[str] = None):
        self.storage = storage
        self.cart_id = cart_id
        self._lines: List[CartLine] = storage.load()

    def _hash_cart_id(self) -> Optional[str]:
        """Hash cart ID for logging (no PII)"""
        if not self.cart_id:
            return None
        return hashlib.sha256(self.cart_id.encode()).hexdigest()[:8]

    def _find(self, product_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.id == product_id:
                return line
        return None

    def _persist(self) -> None:
        self.storage.save(self._lines)

    @property
    def lines(self) -> List[CartLine]:
        """Snapshot of the current lines in insertion order"""
        return [line.model_copy() for line in self._lines]

    def is_empty(self) -> bool:
        return not self._lines

    def add_to_cart(self, item: CartItemRequest) -> CartLine:
        """
        Add one unit of a product.

        A repeated add only bumps the quantity; the name, price and image
        captured on the first add are kept.
        """
        existing = self._find(item.id)
        if existing:
            existing.quantity += 1
            line = existing
        else:
            line = CartLine(
                id=item.id,
                name=item.name,
                unit_price=item.unit_price,
                quantity=1,
                image=item.image,
            )
            self._lines.append(line)

        self._persist()
        logger.info(
            f"Cart add: product={item.id} quantity={line.quantity}",
            extra={"hashed_cart_id": self._hash_cart_id()}
        )
        return line.model_copy()

    def remove_from_cart(self, product_id: str) -> None:
        """Remove a line; unknown ids are ignored"""
        self._lines = [line for line in self._lines if line.id != product_id]
        self._persist()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set a line's quantity, never below 1; unknown ids are ignored"""
        line = self._find(product_id)
        if line:
            line.quantity = max(1, quantity)
        self._persist()

    def clear_cart(self) -> None:
        self._lines = []
        self._persist()
        logger.info("Cart cleared", extra={"hashed_cart_id": self._hash_cart_id()})

    def get_subtotal(self) -> Decimal:
        return pricing.subtotal(self._lines)

    def get_vat(self) -> Decimal:
        return pricing.vat(self.get_subtotal())

    def get_total(self) -> Decimal:
        return pricing.total(self.get_subtotal())

    def get_item_count(self) -> int:
        return pricing.item_count(self._lines)

    def to_response(self) -> CartResponse:
        subtotal = self.get_subtotal()
        return CartResponse(
            cart_id=self.cart_id or "",
            lines=self.lines,
            item_count=self.get_item_count(),
            subtotal=subtotal,
            vat=pricing.vat(subtotal),
            total=pricing.total(subtotal),
        )
