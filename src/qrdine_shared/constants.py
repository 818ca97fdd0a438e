"""
Application constants and enums.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class StaffRole(str, Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"

    @classmethod
    def all_values(cls) -> set:
        return {member.value for member in cls}


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


OPEN_ORDER_STATUSES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
}

ORDER_TRANSITIONS = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED): {
        "action": "confirm",
        "label": "Xác nhận đơn",
    },
    (OrderStatus.PENDING, OrderStatus.CANCELLED): {
        "action": "cancel",
        "label": "Hủy đơn",
    },
    (OrderStatus.CONFIRMED, OrderStatus.PREPARING): {
        "action": "kitchen_start",
        "label": "Chuyển sang Chế Biến",
    },
    (OrderStatus.PREPARING, OrderStatus.COMPLETED): {
        "action": "complete",
        "label": "Hoàn thành đơn",
    },
}

ORDER_STATUS_LABELS = {
    OrderStatus.PENDING.value: {
        "client_label": "Đang chờ",
        "admin_label": "Chờ xác nhận",
    },
    OrderStatus.CONFIRMED.value: {
        "client_label": "Đã xác nhận",
        "admin_label": "Đã xác nhận",
    },
    OrderStatus.PREPARING.value: {
        "client_label": "Đang chế biến",
        "admin_label": "Đang chế biến",
    },
    OrderStatus.COMPLETED.value: {
        "client_label": "Đã hoàn thành",
        "admin_label": "Đã hoàn thành",
    },
    OrderStatus.CANCELLED.value: {
        "client_label": "Đã hủy",
        "admin_label": "Đã hủy",
    },
}

# Action log labels
LOG_LOGIN = "Đăng nhập"
LOG_LOGOUT = "Đăng xuất"
LOG_PRODUCT_CREATE = "Thêm món mới"
LOG_PRODUCT_UPDATE = "Cập nhật món"
LOG_PRODUCT_DELETE = "Xóa món"
LOG_CATEGORY = "Quản lý danh mục"
LOG_TABLE = "Quản lý bàn"
LOG_STAFF = "Quản lý nhân viên"
LOG_SETTINGS = "Cài đặt"
LOG_ORDER_STATUS = "Cập nhật đơn hàng"

SYSTEM_USER = "Hệ thống"
ALL_CATEGORIES = "Tất cả"

SETTINGS_ROW_ID = "system"

DEFAULT_SETTINGS = {
    "restaurant_name": "Nhà Hàng QR Dine",
    "address": "123 Đường ABC, Quận 1, TP.HCM",
    "phone": "0909 123 456",
    "wifi_pass": "88888888",
    "tax_rate": 8,
}

TOP_SELLING_LIMIT = 5
LOG_LIST_LIMIT = 100

# Change feed topics
TOPIC_ORDERS = "orders"
TOPIC_MENU = "menu"
TOPIC_TABLES = "tables"
TOPIC_STAFF = "staff"
TOPIC_SETTINGS = "settings"
TOPIC_LOGS = "logs"
STAFF_TOPICS = {TOPIC_ORDERS, TOPIC_MENU, TOPIC_TABLES, TOPIC_STAFF, TOPIC_SETTINGS, TOPIC_LOGS}


def table_orders_topic(table_id: str) -> str:
    return f"{TOPIC_ORDERS}:table:{table_id}"


# Browser persistence keys
TABLE_SESSION_COOKIE_PREFIX = "qrdine_table_"
CUSTOMER_NAME_COOKIE = "qrdine_customer_name"
STAFF_SESSION_COOKIE = "qrdine_staff_session"
STAFF_PERSISTENT_COOKIE = "qrdine_staff"
