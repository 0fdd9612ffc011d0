from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from .utils import as_utc

# Numeric(12, 2) column and a 32-bit INTEGER column
MAX_AMOUNT = Decimal("10000000000")
MAX_QUANTITY = 2**31 - 1


class Role(str, Enum):
    SELLER = "vendedora"
    ADMINISTRATOR = "administradora"


class OrderState(str, Enum):
    PENDING = "pendiente"
    FABRICATING = "fabricando"
    SHIPPED = "enviado"
    DELIVERED = "entregado"
    RETURNED = "devolucion"


class ShipmentType(str, Enum):
    NATIONAL = "nacional"
    CAPITAL = "bogota"


class PhoneType(str, Enum):
    PRINCIPAL = "principal"
    SECONDARY = "secundario"
    WORK = "trabajo"
    HOME = "casa"
    EMERGENCY = "emergencia"


# -------------------- inbound order payloads --------------------
# Field aliases are the wire names used by the order forms.

class ProductLineIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, validation_alias="nombreProducto")
    description: str = Field(default="", validation_alias="descripcionProducto")
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, validation_alias="cantidades")
    image: str = Field(default="", validation_alias="imagen")

    @field_validator("description", "image", mode="before")
    def none_as_empty(cls, v):
        return "" if v is None else v


class PhoneIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    number: str = Field(..., min_length=1, validation_alias="numero")
    kind: PhoneType = Field(..., validation_alias="tipo")


class OrderDraft(BaseModel):
    """A fully typed order payload, produced before any persistence happens."""

    model_config = ConfigDict(str_strip_whitespace=True)

    products: list[ProductLineIn] = Field(..., min_length=1, validation_alias="productos")
    customer_name: str = Field(..., min_length=1, validation_alias="nombreCliente")
    phones: list[PhoneIn] = Field(..., min_length=1, validation_alias="numerosTelefonicos")
    address: str = Field(..., min_length=1, validation_alias="direccionDetallada")
    shipment_type: ShipmentType = Field(..., validation_alias="tipoEnvio")
    total_price: Decimal = Field(..., gt=0, lt=MAX_AMOUNT, validation_alias="precioTotal")
    deposit: Decimal = Field(..., ge=0, lt=MAX_AMOUNT, validation_alias="abonodinero")
    desired_delivery_date: Optional[date] = Field(default=None, validation_alias="fechaEntregaDeseada")
    seller: Optional[str] = Field(default=None, validation_alias="vendedora")

    @field_validator("desired_delivery_date", "seller", mode="before")
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class StatusUpdate(BaseModel):
    estado: Optional[str] = None
    observacionEntrega: Optional[str] = None


# -------------------- order responses --------------------

class ProductLineRead(BaseModel):
    name: str = Field(serialization_alias="nombreProducto")
    description: str = Field(default="", serialization_alias="descripcionProducto")
    quantity: int = Field(serialization_alias="cantidades")
    image: str = Field(default="", serialization_alias="imagen")

    model_config = ConfigDict(from_attributes=True)


class PhoneRead(BaseModel):
    number: str = Field(serialization_alias="numero")
    kind: str = Field(serialization_alias="tipo")

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: str
    products: list[ProductLineRead] = Field(serialization_alias="productos")
    customer_name: str = Field(serialization_alias="nombreCliente")
    phones: list[PhoneRead] = Field(serialization_alias="numerosTelefonicos")
    address: str = Field(serialization_alias="direccionDetallada")
    shipment_type: str = Field(serialization_alias="tipoEnvio")
    total_price: Decimal = Field(serialization_alias="precioTotal")
    deposit: Decimal = Field(serialization_alias="abonodinero")
    seller: str = Field(serialization_alias="vendedora")
    seller_email: Optional[str] = Field(default=None, serialization_alias="correoVendedora")
    created_at: datetime = Field(serialization_alias="fechaCreacion")
    desired_delivery_date: Optional[date] = Field(default=None, serialization_alias="fechaEntregaDeseada")
    status: str = Field(serialization_alias="estado")
    delivery_note: Optional[str] = Field(default=None, serialization_alias="observacionEntrega")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    def created_in_utc(cls, v):
        return as_utc(v)


class OrderCreated(BaseModel):
    id: str


class OrderPage(BaseModel):
    orders: list[OrderRead] = Field(serialization_alias="pedidos")
    total: int
    total_pages: int = Field(serialization_alias="totalPages")
    page: int
    limit: int


class OrderList(BaseModel):
    orders: list[OrderRead] = Field(serialization_alias="pedidos")


# -------------------- users --------------------

class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, validation_alias=AliasChoices("nombre", "name"))
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)
    role: Role = Role.SELLER

    @field_validator("email")
    def looks_like_email(cls, v: str):
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class RegisterIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)

    @field_validator("email")
    def looks_like_email(cls, v: str):
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class LoginIn(BaseModel):
    email: str
    password: str


class UserStatusUpdate(BaseModel):
    is_active: bool = Field(..., validation_alias=AliasChoices("isActive", "is_active"))


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool = Field(serialization_alias="isActive")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    last_login_at: Optional[datetime] = Field(default=None, serialization_alias="lastLogin")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at", "last_login_at")
    def stamps_in_utc(cls, v):
        return as_utc(v)


class IdentityRead(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str


class LoginResult(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: IdentityRead
