"""Admin approval workflow.

The status change and every side effect of an approval run inside one
transaction: if any step fails, the request stays pending and no stock,
equipment, category or price-history change is kept.
"""
from flask import current_app

from sportstock.extensions import db
from sportstock.models.equipment import Equipment, EquipmentCategory
from sportstock.models.request import Request, PriceHistory
from sportstock.services.event_log import log_event
from sportstock.services.view_cache import request_changed, ALL_VIEWS
from sportstock.utils import session_management, utcnow


class ApprovalError(Exception):
    """Base class for failures while resolving a request."""


class RequestNotFoundError(ApprovalError):
    pass


class InvalidTransitionError(ApprovalError):
    pass


class InsufficientStockError(ApprovalError):
    pass


TARGET_STATUSES = ('approved', 'rejected')


def _apply_repair(req):
    equipment = db.session.get(Equipment, req.equipment_id, populate_existing=True)
    if equipment is None:
        raise ApprovalError(f'Equipment {req.equipment_id} for request {req.id} no longer exists.')
    quantity = req.quantity or 0
    if quantity < 1:
        raise ApprovalError(f'Repair request {req.id} has no quantity.')

    updated = (Equipment.query
               .filter(Equipment.id == equipment.id,
                       Equipment.status == 'in_use',
                       Equipment.quantity > quantity - 1)
               .update({Equipment.quantity: Equipment.quantity - quantity},
                       synchronize_session=False))
    if not updated:
        raise InsufficientStockError(
            f'Not enough working "{equipment.name}" in stock ({equipment.quantity} available, '
            f'{quantity} requested).'
        )

    db.session.add(Equipment(
        name=equipment.name,
        description=req.description or f'Broken items from {equipment.name}',
        quantity=quantity,
        category_id=equipment.category_id,
        status='broken',
    ))


def _apply_item(req):
    db.session.add(Equipment(
        name=req.name,
        description=req.description,
        quantity=req.quantity or 0,
        category_id=req.category_id,
        status='new',
    ))


def _apply_category(req):
    db.session.add(EquipmentCategory(name=req.name))


def _apply_purchase(req, now):
    if not req.best_price:
        return
    db.session.add(PriceHistory(
        request_id=req.id,
        price=req.best_price,
        seller=req.seller or 'Unknown',
        recorded_at=now,
    ))


SIDE_EFFECTS = {
    'repair': _apply_repair,
    'item': _apply_item,
    'category': _apply_category,
}


def process_request(request_id, target_status, admin_id=None, now=None):
    """Move a pending request to ``target_status`` and apply its side effects."""
    if target_status not in TARGET_STATUSES:
        raise InvalidTransitionError(f'Unsupported target status: {target_status}')
    now = now or utcnow()

    try:
        with session_management():
            req = db.session.get(Request, request_id)
            if req is None:
                raise RequestNotFoundError(f'Request {request_id} not found.')

            changed = (Request.query
                       .filter(Request.id == request_id, Request.status == 'pending')
                       .update({Request.status: target_status, Request.updated_at: now},
                               synchronize_session=False))
            if not changed:
                raise InvalidTransitionError(
                    f'Request {request_id} is already {req.status} and cannot be {target_status}.'
                )
            db.session.refresh(req)

            if target_status == 'approved':
                if req.type == 'purchase':
                    _apply_purchase(req, now)
                else:
                    SIDE_EFFECTS[req.type](req)
    except ApprovalError as exc:
        current_app.logger.warning("Request %s not %s: %s", request_id, target_status, exc)
        log_event('Request resolution', 'FAILED',
                  {'request_id': request_id, 'target': target_status, 'reason': str(exc)},
                  user_id=admin_id)
        raise

    request_changed.send(current_app._get_current_object(), views=ALL_VIEWS)
    log_event('Request resolution', target_status.upper(),
              {'request_id': req.id, 'type': req.type, 'name': req.name,
               'quantity': req.quantity, 'requested_by': req.user_id},
              user_id=admin_id)
    return req


def approve_request(request_id, admin_id=None, now=None):
    return process_request(request_id, 'approved', admin_id=admin_id, now=now)


def reject_request(request_id, admin_id=None, now=None):
    return process_request(request_id, 'rejected', admin_id=admin_id, now=now)
