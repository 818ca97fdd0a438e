"""
Serializers for consistent API responses.

Store rows use snake_case columns; everything leaving the service is the
camelCase shape the browser works with.
"""

from typing import Any

from qrdine_shared.constants import ORDER_STATUS_LABELS, OrderStatus
from qrdine_shared.datetime_utils import to_epoch_ms
from qrdine_shared.models import (
    ActionLog,
    Category,
    DiningTable,
    Order,
    OrderItem,
    Product,
    RealtimeEvent,
    Staff,
    SystemSettings,
)


def _safe_int(value) -> int:
    try:
        return int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0


def resolve_status_meta(status_key: str, scope: str = "admin") -> dict[str, str]:
    labels = ORDER_STATUS_LABELS.get(
        status_key, {"client_label": status_key, "admin_label": status_key}
    )
    status_display = labels["client_label"] if scope == "client" else labels["admin_label"]
    return {**labels, "status_display": status_display}


def serialize_product(product: Product) -> dict[str, Any]:
    """Serialize Product model."""
    return {
        "id": product.id,
        "name": product.name,
        "price": _safe_int(product.price),
        "description": product.description or "",
        "image": product.image or "",
        "category": product.category or "",
        "available": bool(product.available),
        "createdAt": to_epoch_ms(product.created_at),
    }


def serialize_category(category: Category) -> dict[str, Any]:
    return {"id": category.id, "name": category.name, "order": category.display_order}


def serialize_table(table: DiningTable) -> dict[str, Any]:
    return {"id": table.id, "name": table.name, "isOccupied": bool(table.is_occupied)}


def serialize_staff(staff: Staff) -> dict[str, Any]:
    """Serialize Staff model. The password hash never leaves the service."""
    return {
        "id": staff.id,
        "username": staff.username,
        "role": staff.role,
        "name": staff.name,
        "avatarUrl": staff.avatar_url,
    }


def serialize_order_item(order_item: OrderItem) -> dict[str, Any]:
    return {
        "id": order_item.product_id,
        "name": order_item.name,
        "price": _safe_int(order_item.price),
        "quantity": order_item.quantity,
        "note": order_item.note,
        "category": order_item.category or "",
    }


def serialize_order(order: Order, scope: str = "admin") -> dict[str, Any]:
    """Serialize Order model with its line items."""
    status_meta = resolve_status_meta(order.status, scope)
    return {
        "id": order.id,
        "tableId": order.table_id,
        "customerName": order.customer_name,
        "items": [serialize_order_item(item) for item in order.items],
        "totalAmount": _safe_int(order.total_amount),
        "status": order.status,
        "statusDisplay": status_meta["status_display"],
        "createdAt": to_epoch_ms(order.created_at),
        "isOpen": order.status
        in {OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value, OrderStatus.PREPARING.value},
    }


def serialize_log(log: ActionLog) -> dict[str, Any]:
    return {
        "id": log.id,
        "action": log.action,
        "details": log.details,
        "user": log.user,
        "timestamp": to_epoch_ms(log.timestamp),
    }


def serialize_settings(settings: SystemSettings) -> dict[str, Any]:
    tax_rate = settings.tax_rate
    if isinstance(tax_rate, float) and tax_rate.is_integer():
        tax_rate = int(tax_rate)
    return {
        "restaurantName": settings.restaurant_name,
        "address": settings.address,
        "phone": settings.phone,
        "wifiPass": settings.wifi_pass,
        "taxRate": tax_rate,
    }


def serialize_event(event: RealtimeEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "topic": event.topic,
        "eventType": event.event_type,
        "entity": event.entity,
        "recordId": event.record_id,
        "payload": event.payload,
        "createdAt": to_epoch_ms(event.created_at),
    }


def success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    """Create a standardized success response."""
    response = {"status": "success", "data": data, "error": None}
    if message:
        response["message"] = message
    return response


def error_response(error: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a standardized error response."""
    response = {"status": "error", "data": None, "error": error}
    if details:
        response["details"] = details
    return response
