from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class Restaurant(Base, TimestampMixin):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False, index=True)
    address = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<Restaurant id={self.id} title={self.title}>"


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False, index=True)

    products = relationship("Product", back_populates="category", lazy="selectin")

    def __repr__(self):
        return f"<Category id={self.id} title={self.title}>"


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    category = relationship("Category", back_populates="products", lazy="raise")

    __table_args__ = (CheckConstraint("price >= 0", name="ck_product_price_non_negative"),)

    def __repr__(self):
        return f"<Product id={self.id} title={self.title} price={self.price}>"
