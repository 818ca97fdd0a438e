"""
Menu management: products and categories.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from qrdine_shared.constants import (
    LOG_CATEGORY,
    LOG_PRODUCT_CREATE,
    LOG_PRODUCT_DELETE,
    LOG_PRODUCT_UPDATE,
    ChangeType,
)
from qrdine_shared.db import get_session
from qrdine_shared.models import Category, Product
from qrdine_shared.realtime import record_change
from qrdine_shared.schemas import CategoryRequest, ProductRequest
from qrdine_shared.serializers import serialize_category, serialize_product
from qrdine_shared.services.audit_service import append_log

logger = logging.getLogger(__name__)


def list_products(available_only: bool = False) -> list[dict[str, Any]]:
    """Newest first."""
    try:
        with get_session() as session:
            stmt = select(Product).order_by(Product.created_at.desc(), Product.name)
            if available_only:
                stmt = stmt.where(Product.available.is_(True))
            return [serialize_product(p) for p in session.execute(stmt).scalars().all()]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching products: {exc}")
        return []


def get_product(product_id: str) -> dict[str, Any] | None:
    try:
        with get_session() as session:
            product = session.get(Product, product_id)
            return serialize_product(product) if product else None
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching product {product_id}: {exc}")
        return None


def save_product(
    payload: ProductRequest | dict[str, Any], actor: str | None = None
) -> dict[str, Any] | None:
    """
    Insert a product when it has no id (or an unknown one), otherwise update it.

    Returns the saved product, or None when the store rejects the write.
    """
    data = payload if isinstance(payload, ProductRequest) else ProductRequest.model_validate(payload)
    try:
        with get_session() as session:
            product = session.get(Product, data.id) if data.id else None
            is_new = product is None
            if is_new:
                product = Product(id=data.id) if data.id else Product()
                session.add(product)

            product.name = data.name
            product.price = data.price
            product.description = data.description
            product.image = data.image
            product.category = data.category
            product.available = data.available
            session.flush()

            serialized = serialize_product(product)
            record_change(
                session,
                "product",
                ChangeType.INSERT if is_new else ChangeType.UPDATE,
                product.id,
                serialized,
            )
            append_log(
                session,
                LOG_PRODUCT_CREATE if is_new else LOG_PRODUCT_UPDATE,
                f"Món: {product.name}",
                actor,
            )
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error saving product '{data.name}': {exc}")
        return None


def delete_product(product_id: str, actor: str | None = None) -> bool:
    """Past orders keep their item snapshots."""
    try:
        with get_session() as session:
            product = session.get(Product, product_id)
            if product is None:
                return False
            session.delete(product)
            record_change(session, "product", ChangeType.DELETE, product_id, {"id": product_id})
            append_log(session, LOG_PRODUCT_DELETE, f"ID: {product_id}", actor)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error deleting product {product_id}: {exc}")
        return False


def list_categories() -> list[dict[str, Any]]:
    try:
        with get_session() as session:
            rows = (
                session.execute(select(Category).order_by(Category.display_order, Category.name))
                .scalars()
                .all()
            )
            return [serialize_category(c) for c in rows]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching categories: {exc}")
        return []


def save_category(
    payload: CategoryRequest | dict[str, Any], actor: str | None = None
) -> dict[str, Any] | None:
    """
    New categories without an explicit order go to the end of the list.

    Renaming a category does not touch products that still carry the old name.
    """
    data = (
        payload if isinstance(payload, CategoryRequest) else CategoryRequest.model_validate(payload)
    )
    try:
        with get_session() as session:
            category = session.get(Category, data.id) if data.id else None
            is_new = category is None
            if is_new:
                category = Category(id=data.id) if data.id else Category()
                if data.order is None:
                    count = session.execute(select(func.count(Category.id))).scalar_one()
                    category.display_order = count + 1
                session.add(category)

            category.name = data.name
            if data.order is not None:
                category.display_order = data.order
            session.flush()

            serialized = serialize_category(category)
            record_change(
                session,
                "category",
                ChangeType.INSERT if is_new else ChangeType.UPDATE,
                category.id,
                serialized,
            )
            append_log(session, LOG_CATEGORY, f"Lưu danh mục: {category.name}", actor)
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error saving category '{data.name}': {exc}")
        return None


def delete_category(category_id: str, actor: str | None = None) -> bool:
    """
    Products referencing the category by name are left as they are; the
    ordering view shows them under "all" only.
    """
    try:
        with get_session() as session:
            category = session.get(Category, category_id)
            if category is None:
                return False
            session.delete(category)
            record_change(session, "category", ChangeType.DELETE, category_id, {"id": category_id})
            append_log(session, LOG_CATEGORY, f"Xóa danh mục ID: {category_id}", actor)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error deleting category {category_id}: {exc}")
        return False


def get_menu() -> dict[str, Any]:
    """Categories plus the products a customer may order."""
    return {
        "categories": list_categories(),
        "products": list_products(available_only=True),
    }
