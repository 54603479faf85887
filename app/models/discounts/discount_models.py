from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Boolean,
    ForeignKey,
    Enum,
    JSON,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.discount_enums import DiscountType, DiscountTargetType


class Discount(Base, TimestampMixin):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    type = Column(Enum(DiscountType), nullable=False)
    value = Column(Numeric(12, 2), nullable=False)
    target_type = Column(Enum(DiscountTargetType), nullable=False, default=DiscountTargetType.ALL, index=True)
    min_order_amount = Column(Numeric(14, 2), nullable=True)

    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    # Lists of OrderType / DayOfWeek names
    order_types = Column(JSON, nullable=False, default=list)
    days_of_week = Column(JSON, nullable=False, default=list)

    code = Column(String(50), nullable=True, unique=True, index=True)
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    restaurants = relationship("RestaurantDiscount", back_populates="discount", lazy="selectin", passive_deletes=True)
    categories = relationship("CategoryDiscount", back_populates="discount", lazy="selectin", passive_deletes=True)
    products = relationship("ProductDiscount", back_populates="discount", lazy="selectin", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_discount_value_non_negative"),
        CheckConstraint("current_uses >= 0", name="ck_discount_current_uses_non_negative"),
        CheckConstraint("max_uses IS NULL OR current_uses <= max_uses", name="ck_discount_max_uses"),
        Index("ix_discount_active_dates", "is_active", "start_date", "end_date"),
    )

    @property
    def restaurant_ids(self) -> list[int]:
        return [r.restaurant_id for r in self.restaurants]

    @property
    def category_ids(self) -> list[int]:
        return [c.category_id for c in self.categories]

    @property
    def product_ids(self) -> list[int]:
        return [p.product_id for p in self.products]

    def __repr__(self):
        return f"<Discount id={self.id} type={self.type} value={self.value} target={self.target_type}>"


class RestaurantDiscount(Base):
    __tablename__ = "restaurant_discounts"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)

    discount = relationship("Discount", back_populates="restaurants", lazy="raise")

    __table_args__ = (UniqueConstraint("discount_id", "restaurant_id", name="uq_restaurant_discount"),)


class CategoryDiscount(Base):
    __tablename__ = "category_discounts"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)

    discount = relationship("Discount", back_populates="categories", lazy="raise")

    __table_args__ = (UniqueConstraint("discount_id", "category_id", name="uq_category_discount"),)


class ProductDiscount(Base):
    __tablename__ = "product_discounts"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    discount = relationship("Discount", back_populates="products", lazy="raise")

    __table_args__ = (UniqueConstraint("discount_id", "product_id", name="uq_product_discount"),)


class PromoCode(Base, TimestampMixin):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, nullable=False, index=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)

    discount = relationship("Discount", lazy="selectin")

    __table_args__ = (Index("ix_promo_code_discount_customer", "discount_id", "customer_id", "used"),)

    def __repr__(self):
        return f"<PromoCode id={self.id} code={self.code} customer_id={self.customer_id} used={self.used}>"


class DiscountApplication(Base, TimestampMixin):
    """Append-only ledger of applied discounts."""

    __tablename__ = "discount_applications"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(String(500), nullable=False)

    order = relationship("Order", back_populates="discount_applications", lazy="raise")

    __table_args__ = (CheckConstraint("amount > 0", name="ck_discount_application_amount_positive"),)

    def __repr__(self):
        return f"<DiscountApplication id={self.id} discount_id={self.discount_id} order_id={self.order_id} amount={self.amount}>"
