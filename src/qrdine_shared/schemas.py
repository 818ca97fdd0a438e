"""
Pydantic schemas for request validation.

Inbound JSON uses the browser's camelCase names; aliases map them onto the
snake_case fields the services work with.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from qrdine_shared.constants import OrderStatus
from qrdine_shared.validation import validate_password, validate_role, validate_table_id


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class ExactCamelModel(CamelModel):
    """Credentials are compared and hashed exactly as typed."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)


TrimmedName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)]


class LoginRequest(ExactCamelModel):
    username: str = Field(..., min_length=1, max_length=80)
    password: str = Field(..., min_length=1)


class OrderItemInput(CamelModel):
    """A cart line as it is placed into an order."""

    product_id: str = Field(..., alias="id", min_length=1)
    name: str = Field(..., min_length=1, max_length=160)
    price: int = Field(..., ge=0)
    quantity: int = Field(default=1, ge=1)
    note: str | None = Field(default=None, max_length=500)
    category: str = ""


class CreateOrderRequest(CamelModel):
    table_id: str = Field(..., alias="tableId")
    customer_name: str = Field(..., alias="customerName", min_length=1, max_length=120)
    items: list[OrderItemInput] = Field(..., min_length=1)
    total_amount: int | None = Field(default=None, alias="totalAmount", ge=0)

    @field_validator("table_id")
    @classmethod
    def validate_table(cls, v):
        return validate_table_id(v)


class UpdateOrderStatusRequest(CamelModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        allowed = {s.value for s in OrderStatus}
        if v not in allowed:
            raise ValueError(
                f"Trạng thái không hợp lệ. Giá trị cho phép: {', '.join(sorted(allowed))}"
            )
        return v


class ProductRequest(CamelModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=160)
    price: int = Field(..., ge=0)
    description: str = ""
    image: str = ""
    category: str = Field(default="", max_length=120)
    available: bool = True


class CategoryRequest(CamelModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=120)
    order: int | None = Field(default=None, ge=0)


class TableRequest(CamelModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=120)
    is_occupied: bool = Field(default=False, alias="isOccupied")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if v is None or v == "":
            return None
        return validate_table_id(v)


class TableStatusRequest(CamelModel):
    is_occupied: bool = Field(..., alias="isOccupied")


class StaffRequest(ExactCamelModel):
    id: str | None = None
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=80)]
    password: str | None = None
    role: str = Field(default="STAFF")
    name: TrimmedName
    avatar_url: str | None = Field(default=None, alias="avatarUrl")

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v):
        if v:
            validate_password(v)
        return v or None

    @field_validator("role")
    @classmethod
    def validate_role_value(cls, v):
        validate_role(v)
        return v


class ProfileRequest(ExactCamelModel):
    name: TrimmedName
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    password: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v):
        if v:
            validate_password(v)
        return v or None


class SettingsRequest(CamelModel):
    restaurant_name: str = Field(..., alias="restaurantName", min_length=1, max_length=200)
    address: str = ""
    phone: str = Field(default="", max_length=40)
    wifi_pass: str = Field(default="", alias="wifiPass", max_length=120)
    tax_rate: float = Field(default=0, alias="taxRate", ge=0, le=100)


class JoinTableRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)


class CartAddRequest(CamelModel):
    product_id: str = Field(..., alias="productId", min_length=1)


class CartNoteRequest(CamelModel):
    note: str = Field(default="", max_length=500)


class PlaceOrderRequest(CamelModel):
    total_amount: int | None = Field(default=None, alias="totalAmount", ge=0)


class OrderFilterParams(CamelModel):
    status: str | None = None
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    month: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    year: int | None = Field(default=None, ge=1970, le=9999)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v in (None, "", "ALL"):
            return None
        if v not in {s.value for s in OrderStatus}:
            raise ValueError(f"Trạng thái không hợp lệ: {v}")
        return v
