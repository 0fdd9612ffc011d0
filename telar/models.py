import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .db import Base


def new_public_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # case-sensitive login key
    email = Column(String, nullable=False, unique=True, index=True)
    # 'vendedora' or 'administradora'
    role = Column(String, nullable=False, default="vendedora", index=True)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)


class Order(Base):
    __tablename__ = "orders"

    # internal key, only used to break ties between orders created in the same instant
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), nullable=False, unique=True, index=True, default=new_public_id)
    customer_name = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    shipment_type = Column(String, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    deposit = Column(Numeric(12, 2), nullable=False)
    # display label; historically either the seller's name or email
    seller = Column(String, nullable=False, index=True)
    seller_email = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    desired_delivery_date = Column(Date, nullable=True)
    status = Column(String, nullable=False, default="pendiente", index=True)
    delivery_note = Column(String(500), nullable=True)

    products = relationship(
        "OrderProduct",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderProduct.position",
    )
    phones = relationship(
        "OrderPhone",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderPhone.position",
    )


class OrderProduct(Base):
    __tablename__ = "order_products"

    id = Column(Integer, primary_key=True)
    order_seq = Column(Integer, ForeignKey("orders.seq", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    image = Column(Text, nullable=False, default="")

    order = relationship("Order", back_populates="products")


class OrderPhone(Base):
    __tablename__ = "order_phones"

    id = Column(Integer, primary_key=True)
    order_seq = Column(Integer, ForeignKey("orders.seq", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    number = Column(String, nullable=False)
    kind = Column(String, nullable=False)

    order = relationship("Order", back_populates="phones")
