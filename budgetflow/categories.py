from typing import Iterable

from budgetflow.constants import FALLBACK_ICON
from budgetflow.domain import Category, TransactionType
from budgetflow.functional import Either, Left, Maybe, Right, first


def resolve_category(cats: Iterable[Category], name: str) -> Maybe[Category]:
    return first(cats, lambda c: c.name == name)


def category_icon(cats: Iterable[Category], name: str) -> str:
    return resolve_category(cats, name).map(lambda c: c.icon or FALLBACK_ICON).get_or_else(FALLBACK_ICON)


def categories_for_type(cats: Iterable[Category], t_type: TransactionType) -> tuple[Category, ...]:
    return tuple(c for c in cats if t_type in c.types)


def is_income_only(cat: Category) -> bool:
    return cat.types == (TransactionType.INCOME,)


def save_category(cats: tuple[Category, ...], category: Category) -> tuple[Category, ...]:
    if any(c.id == category.id for c in cats):
        return tuple(category if c.id == category.id else c for c in cats)
    return cats + (category,)


def delete_category(cats: tuple[Category, ...], cat_id: str) -> Either[str, tuple[Category, ...]]:
    # transactions keep the name; they fall back to the generic grouping
    target = first(cats, lambda c: c.id == cat_id)
    if target.is_none():
        return Left(f"Category {cat_id} does not exist.")
    if not target.get_or_else(None).is_custom:
        return Left("Built-in categories cannot be deleted.")
    return Right(tuple(c for c in cats if c.id != cat_id))

