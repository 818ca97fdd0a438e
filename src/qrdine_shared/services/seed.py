"""
Initial data: the settings row, a first admin account and an optional demo menu.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from qrdine_shared.config import AppConfig
from qrdine_shared.constants import StaffRole
from qrdine_shared.models import Category, DiningTable, Product, Staff
from qrdine_shared.services.settings_service import ensure_settings_row

logger = logging.getLogger(__name__)

DEMO_CATEGORIES = ["Món chính", "Món phụ", "Đồ uống", "Tráng miệng"]

DEMO_PRODUCTS = [
    {
        "name": "Phở bò tái",
        "price": 55000,
        "category": "Món chính",
        "description": "Phở bò truyền thống, nước dùng hầm xương 12 tiếng",
    },
    {
        "name": "Cơm tấm sườn bì chả",
        "price": 50000,
        "category": "Món chính",
        "description": "Sườn nướng than hoa, bì, chả trứng",
    },
    {
        "name": "Gỏi cuốn tôm thịt",
        "price": 35000,
        "category": "Món phụ",
        "description": "2 cuốn, kèm nước chấm tương đậu",
    },
    {
        "name": "Trà đá",
        "price": 5000,
        "category": "Đồ uống",
        "description": "",
    },
    {
        "name": "Cà phê sữa đá",
        "price": 25000,
        "category": "Đồ uống",
        "description": "Cà phê phin pha sữa đặc",
    },
    {
        "name": "Chè ba màu",
        "price": 20000,
        "category": "Tráng miệng",
        "description": "",
    },
]

DEMO_TABLES = [(str(n), f"Bàn {n}") for n in range(1, 7)]


def ensure_admin(session: Session, config: AppConfig) -> Staff | None:
    """Create the first admin when the staff table is empty and a password is configured."""
    if session.execute(select(func.count(Staff.id))).scalar_one() > 0:
        return None
    if not config.admin_password:
        logger.warning("[SEED] No staff accounts and ADMIN_PASSWORD is empty; skipping admin seed")
        return None
    admin = Staff(
        username=config.admin_username,
        role=StaffRole.ADMIN.value,
        name="Quản trị viên",
    )
    admin.set_password(config.admin_password)
    session.add(admin)
    logger.info(f"[SEED] Created admin account '{config.admin_username}'")
    return admin


def ensure_seed_data(session: Session, config: AppConfig) -> None:
    """Only fills what is missing; safe to run on every start."""
    ensure_settings_row(session)
    ensure_admin(session, config)
    session.flush()


def load_seed_data(session: Session, config: AppConfig) -> None:
    """Upsert the demo menu and tables on top of :func:`ensure_seed_data`."""
    ensure_seed_data(session, config)

    existing_categories = set(session.execute(select(Category.name)).scalars().all())
    for position, name in enumerate(DEMO_CATEGORIES, start=1):
        if name not in existing_categories:
            session.add(Category(name=name, display_order=position))

    existing_products = set(session.execute(select(Product.name)).scalars().all())
    for product in DEMO_PRODUCTS:
        if product["name"] not in existing_products:
            session.add(Product(available=True, image="", **product))

    for table_id, name in DEMO_TABLES:
        if session.get(DiningTable, table_id) is None:
            session.add(DiningTable(id=table_id, name=name, is_occupied=False))

    session.flush()
    logger.info("[SEED] Demo menu and tables loaded")
