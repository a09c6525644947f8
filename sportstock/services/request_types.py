"""Typed request variants.

Each request kind carries only the fields it needs, and :func:`build_request`
refuses to produce a variant whose required fields are missing. Routes turn
a :class:`RequestValidationError` into a blocking flash message, so nothing
is written for an invalid submission.
"""
from dataclasses import dataclass, field
from typing import Optional, Union

from sportstock.extensions import db
from sportstock.models.equipment import Equipment, EquipmentCategory


class RequestValidationError(ValueError):
    """User-facing validation failure for a request submission."""


@dataclass(frozen=True)
class ItemRequest:
    name: str
    category_id: int
    quantity: int = 1
    description: Optional[str] = None
    type: str = field(default='item', init=False)


@dataclass(frozen=True)
class RepairRequest:
    equipment_id: int
    name: str
    quantity: int = 1
    description: Optional[str] = None
    type: str = field(default='repair', init=False)


@dataclass(frozen=True)
class PurchaseRequest:
    name: str
    category_id: int
    best_price: float
    seller: str
    quantity: int = 1
    description: Optional[str] = None
    purchase_url: Optional[str] = None
    type: str = field(default='purchase', init=False)


@dataclass(frozen=True)
class CategoryRequest:
    name: str
    description: Optional[str] = None
    type: str = field(default='category', init=False)


RequestPayload = Union[ItemRequest, RepairRequest, PurchaseRequest, CategoryRequest]


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
    return value or None


def _quantity(value):
    try:
        quantity = int(value) if value is not None else 1
    except (TypeError, ValueError):
        raise RequestValidationError('Quantity must be a whole number.')
    if quantity < 1:
        raise RequestValidationError('Quantity must be at least 1.')
    return quantity


def _require_category(category_id):
    if not category_id:
        raise RequestValidationError('Please select a category.')
    if db.session.get(EquipmentCategory, int(category_id)) is None:
        raise RequestValidationError('The selected category no longer exists.')
    return int(category_id)


def build_request(request_type, name=None, description=None, quantity=None,
                  category_id=None, equipment_id=None, best_price=None,
                  seller=None, purchase_url=None) -> RequestPayload:
    """Return the variant for ``request_type`` or raise RequestValidationError."""
    name = _clean(name)
    description = _clean(description)

    if request_type == 'category':
        if not name:
            raise RequestValidationError('Please enter a category name.')
        return CategoryRequest(name=name, description=description)

    quantity = _quantity(quantity)

    if request_type == 'repair':
        if not equipment_id:
            raise RequestValidationError('Please select the equipment to repair or replace.')
        equipment = db.session.get(Equipment, int(equipment_id))
        if equipment is None:
            raise RequestValidationError('The selected equipment no longer exists.')
        if quantity > equipment.quantity:
            raise RequestValidationError(
                f'You cannot request more units than are in stock ({equipment.quantity}).'
            )
        return RepairRequest(
            equipment_id=equipment.id,
            name=equipment.name,
            quantity=quantity,
            description=description,
        )

    if request_type == 'item':
        if not name:
            raise RequestValidationError('Please enter an item name.')
        return ItemRequest(
            name=name,
            category_id=_require_category(category_id),
            quantity=quantity,
            description=description,
        )

    if request_type == 'purchase':
        if not name:
            raise RequestValidationError('Please enter an item name.')
        category_id = _require_category(category_id)
        if best_price is None or best_price == '':
            raise RequestValidationError('Please enter the best price found.')
        try:
            best_price = float(best_price)
        except (TypeError, ValueError):
            raise RequestValidationError('Price must be a number.')
        if best_price < 0:
            raise RequestValidationError('Price cannot be negative.')
        seller = _clean(seller)
        if not seller:
            raise RequestValidationError('Please enter the seller.')
        return PurchaseRequest(
            name=name,
            category_id=category_id,
            best_price=best_price,
            seller=seller,
            quantity=quantity,
            description=description,
            purchase_url=_clean(purchase_url),
        )

    raise RequestValidationError(f'Unknown request type: {request_type}')
