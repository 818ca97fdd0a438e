"""
SQLAlchemy ORM models shared by the qrdine services.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from .constants import DEFAULT_SETTINGS, SETTINGS_ROW_ID, OrderStatus, StaffRole
from .datetime_utils import utcnow
from .security import hash_password, verify_password


class JSONBType(TypeDecorator):
    """
    JSONB on PostgreSQL, JSON-serialized TEXT elsewhere (SQLite in tests).
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "postgresql":
            return value
        if isinstance(value, str):
            return json.loads(value)
        return value


JSONB_TYPE = JSONBType()

_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in OrderStatus)
_ROLE_VALUES = ", ".join(f"'{role.value}'" for role in StaffRole)


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for declarative models."""


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_product_category", "category"),
        Index("ix_product_created_at", "created_at"),
        CheckConstraint("price >= 0", name="ck_product_price_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Category name, not a foreign key: renaming or deleting a category leaves
    # existing products untouched.
    category: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class DiningTable(Base):
    __tablename__ = "tables"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    is_occupied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Staff(Base):
    __tablename__ = "staff"
    __table_args__ = (CheckConstraint(f"role IN ({_ROLE_VALUES})", name="ck_staff_role"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=StaffRole.STAFF.value)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def set_password(self, password: str) -> None:
        self.password_hash = hash_password(password)

    def verify_password(self, password: str | None) -> bool:
        return verify_password(password, self.password_hash)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_order_table_id", "table_id"),
        Index("ix_order_status_created", "status", "created_at"),
        Index("ix_order_created_at", "created_at"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_order_status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # No foreign key: order history survives table deletion.
    table_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(120), nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OrderStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    items: Mapped[list[OrderItem]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    def mark_status(self, status: str) -> None:
        valid_statuses = {s.value for s in OrderStatus}
        if status not in valid_statuses:
            raise ValueError(f"Trạng thái không hợp lệ: {status}")
        self.status = status
        self.updated_at = utcnow()


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        Index("ix_order_item_order_id", "order_id"),
        CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    order: Mapped[Order] = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


class ActionLog(Base):
    """Append-only staff action log."""

    __tablename__ = "logs"
    __table_args__ = (Index("ix_log_timestamp", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user: Mapped[str] = mapped_column(String(120), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SystemSettings(Base):
    """
    Restaurant-wide settings. A single row keyed ``"system"``.
    """

    __tablename__ = "settings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=SETTINGS_ROW_ID)
    restaurant_name: Mapped[str] = mapped_column(
        String(200), nullable=False, default=DEFAULT_SETTINGS["restaurant_name"]
    )
    address: Mapped[str] = mapped_column(
        Text, nullable=False, default=DEFAULT_SETTINGS["address"]
    )
    phone: Mapped[str] = mapped_column(
        String(40), nullable=False, default=DEFAULT_SETTINGS["phone"]
    )
    wifi_pass: Mapped[str] = mapped_column(
        String(120), nullable=False, default=DEFAULT_SETTINGS["wifi_pass"]
    )
    tax_rate: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_SETTINGS["tax_rate"]
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class RealtimeEvent(Base):
    """
    Row-level change feed. Written in the same transaction as the mutation it
    describes; readers poll by topic and ``after_id``.
    """

    __tablename__ = "realtime_events"
    __table_args__ = (
        Index("ix_realtime_event_topic_id", "topic", "id"),
        Index("ix_realtime_event_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic: Mapped[str] = mapped_column(String(120), nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    entity: Mapped[str] = mapped_column(String(32), nullable=False)
    record_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
