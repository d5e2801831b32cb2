"""Printable order documents: invoice, packing slip and shipping label.

Rendering only reads already persisted order data and never changes an
order.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.order.order import Order


class DocumentType(Enum):
    INVOICE = "invoice"
    PACKING_SLIP = "packing_slip"
    SHIPPING_LABEL = "shipping_label"


@dataclass(frozen=True)
class OrderDocument:
    order_id: str
    document_type: DocumentType
    title: str
    body: str


def _money(amount) -> str:
    return f"{amount or 0.0:.2f}"


def render_invoice(order: Order) -> OrderDocument:
    lines = [
        f"INVOICE #{order.short_id}",
        f"Date: {order.created_at:%Y-%m-%d}" if order.created_at else "Date: -",
        f"Status: {order.status}",
        f"Payment: {order.payment_method} ({order.payment_status})",
        "",
        f"{'Item':<32}{'Qty':>5}{'Price':>12}{'Total':>12}",
    ]
    for item in order.items:
        lines.append(
            f"{item.product_name[:32]:<32}{item.quantity:>5}{_money(item.unit_price):>12}{_money(item.line_total):>12}"
        )
    lines += [
        "",
        f"{'Subtotal':<49}{_money(order.subtotal):>12}",
        f"{'Shipping':<49}{_money(order.shipping_charge):>12}",
    ]
    if order.discount:
        lines.append(f"{'Discount':<49}{'-' + _money(order.discount):>12}")
    lines.append(f"{'Total':<49}{_money(order.total):>12}")

    return OrderDocument(
        order_id=str(order.id),
        document_type=DocumentType.INVOICE,
        title=f"Invoice #{order.short_id}",
        body="\n".join(lines),
    )


def render_packing_slip(order: Order) -> OrderDocument:
    lines = [f"PACKING SLIP #{order.short_id}", "", f"{'Product':<40}{'Qty':>5}"]
    for item in order.items:
        lines.append(f"{item.product_name[:40]:<40}{item.quantity:>5}")

    return OrderDocument(
        order_id=str(order.id),
        document_type=DocumentType.PACKING_SLIP,
        title=f"Packing slip #{order.short_id}",
        body="\n".join(lines),
    )


def render_shipping_label(order: Order) -> OrderDocument:
    shipping = order.shipping
    lines = [
        f"SHIP TO  (Order #{order.short_id})",
        shipping.recipient_name or "Customer",
        shipping.address,
    ]
    city_line = " ".join(part for part in (shipping.city, shipping.postal_code) if part)
    if city_line:
        lines.append(city_line)
    if shipping.phone:
        lines.append(f"Phone: {shipping.phone}")
    lines.append(f"Area: {shipping.delivery_area}")

    return OrderDocument(
        order_id=str(order.id),
        document_type=DocumentType.SHIPPING_LABEL,
        title=f"Shipping label #{order.short_id}",
        body="\n".join(lines),
    )


_RENDERERS = {
    DocumentType.INVOICE: render_invoice,
    DocumentType.PACKING_SLIP: render_packing_slip,
    DocumentType.SHIPPING_LABEL: render_shipping_label,
}


def render_document(order: Order, document_type) -> OrderDocument:
    return _RENDERERS[DocumentType(document_type)](order)
