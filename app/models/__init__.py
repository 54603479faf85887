# Catalog
from app.models.catalog.catalog_models import Restaurant, Category, Product

# Orders
from app.models.orders.order_models import Order, OrderItem

# Discounts
from app.models.discounts.discount_models import (
    Discount,
    RestaurantDiscount,
    CategoryDiscount,
    ProductDiscount,
    PromoCode,
    DiscountApplication,
)

# Support
from app.models.support.activity_models import UserActivity
