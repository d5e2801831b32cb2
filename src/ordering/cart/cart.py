"""Shopping Cart aggregate (CQRS): what a customer intends to buy.

Each customer has a single cart. Checkout copies its lines into a draft; the
cart is emptied only once an order holding those lines exists.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.cart.events import CartCleared, CartItemAdded, CartItemRemoved
from ordering.domain import ordering


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    variation = Text()  # JSON: selected options
    added_at = DateTime()


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier(required=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, customer_id):
        now = datetime.now(UTC)
        return cls(customer_id=customer_id, created_at=now, updated_at=now)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def add_item(self, product_id, product_name, unit_price, quantity, variation=None):
        """Add an item to the cart (or increase quantity if already present)."""
        variation_json = json.dumps(variation, sort_keys=True) if isinstance(variation, dict) else variation

        existing = next(
            (
                i
                for i in self.items
                if str(i.product_id) == str(product_id) and (i.variation or None) == (variation_json or None)
            ),
            None,
        )

        now = datetime.now(UTC)
        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                product_name=product_name,
                unit_price=unit_price,
                quantity=quantity,
                variation=variation_json,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                quantity=quantity,
            )
        )
        return item_id

    def remove_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        """Empty the cart. Returns the number of lines removed."""
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)

        if removed:
            self.updated_at = datetime.now(UTC)
            self.raise_(
                CartCleared(
                    cart_id=str(self.id),
                    customer_id=str(self.customer_id),
                    items_removed=removed,
                )
            )
        return removed
