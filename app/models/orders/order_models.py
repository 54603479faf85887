from decimal import Decimal

from sqlalchemy import Column, Integer, Numeric, ForeignKey, Enum, Boolean, CheckConstraint, Index
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.order_type import OrderType


class Order(Base, TimestampMixin):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="RESTRICT"), nullable=True, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    order_type = Column(Enum(OrderType), nullable=False, default=OrderType.DINE_IN)

    total_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    has_discount = Column(Boolean, nullable=False, default=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")
    discount_applications = relationship("DiscountApplication", back_populates="order", lazy="raise")

    __table_args__ = (
        CheckConstraint("total_amount >= 0 AND discount_amount >= 0", name="ck_order_amounts_non_negative"),
        Index("ix_order_restaurant_type", "restaurant_id", "order_type"),
    )

    def __repr__(self):
        return f"<Order id={self.id} total={self.total_amount} discount={self.discount_amount}>"


class OrderItem(Base, TimestampMixin):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(12, 2), nullable=False)
    is_refund = Column(Boolean, nullable=False, default=False)

    order = relationship("Order", back_populates="items", lazy="raise")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_qty_positive"),
        CheckConstraint("price >= 0", name="ck_order_item_price_non_negative"),
    )

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.price) * self.quantity

    def __repr__(self):
        return f"<OrderItem id={self.id} product_id={self.product_id} qty={self.quantity} price={self.price}>"
