from typing import Iterable, NamedTuple

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discounts.discount_models import (
    RestaurantDiscount,
    CategoryDiscount,
    ProductDiscount,
)
from app.models.enums.discount_enums import DiscountTargetType


class ScopeAssociation(NamedTuple):
    model: type
    target_column: str
    payload_field: str

    @property
    def target_attr(self):
        return getattr(self.model, self.target_column)


# ALL-targeted discounts ignore every association table.
SCOPE_ASSOCIATIONS: dict[DiscountTargetType, ScopeAssociation | None] = {
    DiscountTargetType.ALL: None,
    DiscountTargetType.RESTAURANT: ScopeAssociation(RestaurantDiscount, "restaurant_id", "restaurant_ids"),
    DiscountTargetType.CATEGORY: ScopeAssociation(CategoryDiscount, "category_id", "category_ids"),
    DiscountTargetType.PRODUCT: ScopeAssociation(ProductDiscount, "product_id", "product_ids"),
}

_missing = set(DiscountTargetType) - set(SCOPE_ASSOCIATIONS)
if _missing:
    raise RuntimeError(f"No scope association declared for {sorted(t.value for t in _missing)}")


def scope_associations() -> list[ScopeAssociation]:
    return [a for a in SCOPE_ASSOCIATIONS.values() if a is not None]


SCOPE_PAYLOAD_FIELDS = tuple(a.payload_field for a in scope_associations())


async def replace_scope(
    db: AsyncSession,
    discount_id: int,
    association: ScopeAssociation,
    target_ids: Iterable[int],
) -> None:
    """Delete-all then insert-all; the caller's transaction makes it atomic."""
    await db.execute(
        delete(association.model).where(association.model.discount_id == discount_id)
    )

    db.add_all(
        association.model(discount_id=discount_id, **{association.target_column: target_id})
        for target_id in dict.fromkeys(target_ids)
    )


async def clear_scopes(db: AsyncSession, discount_id: int) -> None:
    for association in scope_associations():
        await db.execute(
            delete(association.model).where(association.model.discount_id == discount_id)
        )
