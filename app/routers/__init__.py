# app/routers/__init__.py

from .discounts.discount_router import router as discount_router


__all__ = [
"discount_router",
]
