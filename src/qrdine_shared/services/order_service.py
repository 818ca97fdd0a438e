"""
Order placement and status workflow.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from qrdine_shared.constants import LOG_ORDER_STATUS, ChangeType, OrderStatus
from qrdine_shared.db import get_session
from qrdine_shared.logging_config import get_logger
from qrdine_shared.models import DiningTable, Order, OrderItem
from qrdine_shared.realtime import record_change
from qrdine_shared.schemas import CreateOrderRequest, OrderFilterParams
from qrdine_shared.serializers import serialize_order
from qrdine_shared.services.order_state_machine import (
    OrderStateError,
    TransitionContext,
    order_state_machine,
)
from qrdine_shared.services.audit_service import append_log
from qrdine_shared.services.table_service import set_occupied
from qrdine_shared.validation import ValidationError

logger = get_logger(__name__)


class OrderNotFoundError(LookupError):
    """Raised when an order id does not exist."""


def calculate_total(items) -> int:
    return sum(item.price * item.quantity for item in items)


def create_order(
    table_id: str,
    customer_name: str,
    items: list[dict[str, Any]],
    total_amount: int | None = None,
) -> dict[str, Any] | None:
    """
    Place an order for a table.

    The order row, its item snapshots and the table's occupied flag are
    written in one transaction. The total is computed from the items; a
    supplied total that disagrees is rejected.

    Raises:
        ValidationError / pydantic.ValidationError: empty cart, bad input,
            mismatching total or unknown table.

    Returns:
        The created order, or None when the store rejects the write.
    """
    data = CreateOrderRequest.model_validate(
        {
            "tableId": table_id,
            "customerName": customer_name,
            "items": items,
            "totalAmount": total_amount,
        }
    )
    computed_total = calculate_total(data.items)
    if data.total_amount is not None and data.total_amount != computed_total:
        raise ValidationError(
            f"Tổng tiền không khớp: nhận {data.total_amount}, tính được {computed_total}"
        )

    try:
        with get_session() as session:
            if session.get(DiningTable, data.table_id) is None:
                raise ValidationError(f"Bàn không tồn tại: {data.table_id}")

            order = Order(
                table_id=data.table_id,
                customer_name=data.customer_name,
                total_amount=computed_total,
                status=OrderStatus.PENDING.value,
            )
            order.items = [
                OrderItem(
                    product_id=item.product_id,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    note=item.note or None,
                    category=item.category,
                )
                for item in data.items
            ]
            session.add(order)
            session.flush()

            set_occupied(session, data.table_id, True)

            serialized = serialize_order(order)
            record_change(session, "order", ChangeType.INSERT, order.id, serialized)
            logger.info(
                f"Order {order.id} created for table {order.table_id} "
                f"({len(order.items)} items, total {computed_total})"
            )
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error creating order for table {table_id}: {exc}")
        return None


def transition_order(
    order_id: str, status: OrderStatus | str, actor: str | None = None
) -> dict[str, Any]:
    """
    Move an order to ``status`` if the workflow allows it.

    Writing the current status again is a no-op success. A successful move
    appends one action-log row; completing an order frees its table in the
    same transaction.

    Raises:
        OrderNotFoundError: unknown order id
        OrderStateError: the move is not allowed from the current status
    """
    try:
        target = status if isinstance(status, OrderStatus) else OrderStatus(status)
    except ValueError as exc:
        raise OrderStateError(f"Trạng thái không hợp lệ: {status}", None, None) from exc

    with get_session() as session:
        order = session.get(Order, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        context = TransitionContext(
            order=order, target=target, session=session, actor_name=actor or ""
        )
        changed = order_state_machine.apply_transition(context)
        if changed:
            session.flush()
            serialized = serialize_order(order)
            record_change(session, "order", ChangeType.UPDATE, order.id, serialized)
            append_log(
                session,
                LOG_ORDER_STATUS,
                f"Đơn #{order.id[-4:]} -> {target.value}",
                context.actor_name or None,
            )
            return serialized
        return serialize_order(order)


def update_order_status(order_id: str, status: OrderStatus | str, actor: str | None = None) -> bool:
    """Boolean form of :func:`transition_order`; illegal moves and store errors return False."""
    try:
        transition_order(order_id, status, actor)
        return True
    except OrderNotFoundError:
        logger.warning(f"Status update for unknown order {order_id}")
        return False
    except OrderStateError as exc:
        logger.warning(f"Rejected status update for order {order_id}: {exc}")
        return False
    except SQLAlchemyError as exc:
        logger.error(f"Error updating status for order {order_id}: {exc}")
        return False


def _order_query():
    return select(Order).order_by(Order.created_at.desc(), Order.id)


def list_orders() -> list[dict[str, Any]]:
    """Newest first."""
    try:
        with get_session() as session:
            return [serialize_order(o) for o in session.execute(_order_query()).scalars().all()]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching orders: {exc}")
        return []


def get_order(order_id: str) -> dict[str, Any] | None:
    try:
        with get_session() as session:
            order = session.get(Order, order_id)
            return serialize_order(order) if order else None
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching order {order_id}: {exc}")
        return None


def list_orders_for_table(
    table_id: str, customer_name: str | None = None, scope: str = "client"
) -> list[dict[str, Any]]:
    """Orders of one table (optionally one customer), newest first."""
    try:
        with get_session() as session:
            stmt = _order_query().where(Order.table_id == table_id)
            if customer_name:
                stmt = stmt.where(Order.customer_name == customer_name)
            return [serialize_order(o, scope) for o in session.execute(stmt).scalars().all()]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching orders for table {table_id}: {exc}")
        return []


def _local_range(filters: OrderFilterParams, tz: ZoneInfo) -> tuple[datetime, datetime] | None:
    if filters.date:
        start = datetime.strptime(filters.date, "%Y-%m-%d").replace(tzinfo=tz)
        return start, start + timedelta(days=1)
    if filters.month:
        start = datetime.strptime(filters.month, "%Y-%m").replace(tzinfo=tz)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end
    if filters.year:
        start = datetime(filters.year, 1, 1, tzinfo=tz)
        return start, start.replace(year=filters.year + 1)
    return None


def filter_orders(
    filters: OrderFilterParams | dict[str, Any], timezone_name: str = "Asia/Ho_Chi_Minh"
) -> list[dict[str, Any]]:
    """Admin order list narrowed by status and by a local date, month or year."""
    params = (
        filters
        if isinstance(filters, OrderFilterParams)
        else OrderFilterParams.model_validate(filters)
    )
    stmt = _order_query()
    if params.status:
        stmt = stmt.where(Order.status == params.status)
    window = _local_range(params, ZoneInfo(timezone_name))
    if window:
        start, end = (bound.astimezone(timezone.utc) for bound in window)
        stmt = stmt.where(Order.created_at >= start, Order.created_at < end)
    try:
        with get_session() as session:
            return [serialize_order(o) for o in session.execute(stmt).scalars().all()]
    except SQLAlchemyError as exc:
        logger.error(f"Error filtering orders: {exc}")
        return []

