"""
SQLAlchemy Database Models

Every tenant-owned row carries ``user_id`` (the owning admin). Orders carry
it too, copied from their table when placed, so kitchen and analytics
queries never need to join through tables to stay inside one tenant.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from tableside.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    NEW = "New"
    PREPARING = "Preparing"
    COMPLETED = "Completed"
    PAID = "Paid"
    REJECTED = "Rejected"


# Lane-specific forward transitions offered to kitchen staff.
NEXT_STATUSES: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.NEW: (OrderStatus.PREPARING, OrderStatus.REJECTED),
    OrderStatus.PREPARING: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (OrderStatus.PAID,),
    OrderStatus.PAID: (),
    OrderStatus.REJECTED: (),
}

# Statuses shown as kitchen board lanes, in display order.
BOARD_LANES: tuple[OrderStatus, ...] = (
    OrderStatus.NEW,
    OrderStatus.PREPARING,
    OrderStatus.COMPLETED,
)


class AdminUser(Base):
    """A restaurant admin account. One admin user is one tenant."""
    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<AdminUser {self.email}>"


class AdminSettings(Base):
    """Per-tenant singleton: branding and the assistant toggle."""
    __tablename__ = "admin_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, unique=True)
    restaurant_name = Column(String(100), nullable=True)
    is_ai_enabled = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Category {self.name}>"


class MenuItem(Base):
    """
    A dish on a tenant's menu.

    ``is_available`` hides the item from customers without deleting it.
    ``tags`` feed the assistant search, ``pairings`` holds ids of items
    suggested after this one is added to a cart.
    """
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    image_url = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    pairings = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    category = relationship("Category")

    def __repr__(self):
        return f"<MenuItem {self.name} {self.price}>"


class Table(Base):
    """A physical table; ``token`` is the customer's only credential."""
    __tablename__ = "tables"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    token = Column(String(64), nullable=False, unique=True, index=True)
    qr_code_url = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Table {self.name}>"


class Poster(Base):
    __tablename__ = "posters"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    image_url = Column(String(500), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    menu_item = relationship("MenuItem")


class Order(Base):
    """
    A customer order placed from a table.

    Created with status New and version 1. Only the status (and with it the
    version) changes afterwards; orders are never deleted.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    table_id = Column(String(36), ForeignKey("tables.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("admin_users.id"), nullable=False, index=True)

    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=True)
    customer_email = Column(String(255), nullable=True)

    total_amount = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [s.value for s in e]),
        default=OrderStatus.NEW,
        nullable=False,
        index=True
    )
    version = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    table = relationship("Table")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.position")

    @property
    def short_id(self) -> str:
        return self.id[:8]

    def __repr__(self):
        return f"<Order #{self.short_id} - {self.customer_name} - {self.status.value}>"


class OrderItem(Base):
    """A line of an order; ``price_at_time`` freezes the menu price."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True)
    position = Column(Integer, default=0, nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_time = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

    @property
    def subtotal(self) -> float:
        return round(self.price_at_time * self.quantity, 2)
