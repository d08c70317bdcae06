"""Pydantic request schemas for the HTTP API.

These are external contracts: field names are camelCase on the wire and
snake_case in Python. Services never see raw request bodies.
"""
import json
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter, model_validator
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .models import MAX_LINE_QUANTITY, OrderStatus, PaymentMethod, PaymentStatus, UserRole

_http_url = TypeAdapter(HttpUrl)


def _check_url(value):
    # an empty string clears the field
    if value:
        try:
            _http_url.validate_python(value)
        except SchemaError:
            raise ValueError('must be a valid http(s) URL')
    return value


Url = Annotated[str, AfterValidator(_check_url)]


def parse(schema, data):
    """Validate ``data`` against ``schema`` or raise a 400-class ValidationError."""
    try:
        return schema.model_validate(data or {})
    except SchemaError as exc:
        raise ValidationError('Validation error', details=json.loads(exc.json(include_url=False, include_input=False)))


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth & users
# ---------------------------------------------------------------------------
class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class CreateUserRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: Optional[str] = Field(None, max_length=100)
    role: UserRole = UserRole.CASHIER


class UpdateUserRequest(ApiModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, max_length=100)


class ResetPasswordRequest(ApiModel):
    password: str = Field(min_length=8)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class CreateProductRequest(ApiModel):
    sku: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(gt=0, allow_inf_nan=False)
    color: Optional[str] = Field(None, max_length=50)
    image_url: Optional[Url] = None
    is_active: bool = True


class UpdateProductRequest(ApiModel):
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    color: Optional[str] = Field(None, max_length=50)
    image_url: Optional[Url] = None
    is_active: Optional[bool] = None

    def changes(self):
        return self.model_dump(exclude_unset=True)


class ProductImportRow(BaseModel):
    """One CSV row.

    A blank sku, name or price counts as missing. A blank optional cell is kept
    as an empty string, so re-importing a row clears that field.
    """

    sku: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    price: float = Field(gt=0, allow_inf_nan=False)
    color: Optional[str] = Field(None, max_length=50)
    image_url: Optional[Url] = None

    @model_validator(mode='before')
    @classmethod
    def _strip_cells(cls, data):
        if not isinstance(data, dict):
            return data
        cells = {k: v.strip() if isinstance(v, str) else v for k, v in data.items()}
        for required in ('sku', 'name', 'price'):
            if cells.get(required) == '':
                cells[required] = None
        return cells


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemRequest(ApiModel):
    product_id: Optional[str] = None
    sku: str = Field(min_length=1)
    quantity: int = Field(gt=0, le=MAX_LINE_QUANTITY)
    color: Optional[str] = Field(None, max_length=50)


class CreateOrderRequest(ApiModel):
    items: List[OrderItemRequest] = Field(min_length=1)
    notes: Optional[str] = Field(None, max_length=500)


class CompleteOrderRequest(ApiModel):
    payment_method: PaymentMethod
    notes: Optional[str] = Field(None, max_length=500)


class UpdateOrderStatusRequest(ApiModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=500)


class UpdateOrderPaymentRequest(ApiModel):
    payment_method: PaymentMethod
    payment_status: PaymentStatus


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------
class Pagination(ApiModel):
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    @property
    def offset(self):
        return (self.page - 1) * self.limit


class OrderFilter(Pagination):
    status: Optional[OrderStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class TopProductsQuery(ApiModel):
    limit: int = Field(10, ge=1, le=100)
