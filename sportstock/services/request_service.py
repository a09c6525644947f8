from dataclasses import asdict

from flask import current_app

from sportstock.extensions import db
from sportstock.models.request import Request
from sportstock.services.view_cache import request_changed
from sportstock.utils import session_management


def submit_request(user_id, payload):
    """Insert one pending request row for ``payload``; duplicates are allowed."""
    fields = asdict(payload)
    with session_management():
        new_request = Request(user_id=user_id, status='pending', **fields)
        db.session.add(new_request)
    current_app.logger.info(
        "User %s submitted %s request %s (%s)", user_id, payload.type, new_request.id, payload.name
    )
    request_changed.send(current_app._get_current_object(), views=('requests',))
    return new_request


def user_requests(user_id):
    return (Request.query
            .filter_by(user_id=user_id)
            .order_by(Request.created_at.desc(), Request.id.desc())
            .all())


def recent_requests(limit=None):
    query = Request.query.order_by(Request.created_at.desc(), Request.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def approved_purchases(limit=None):
    query = (Request.query
             .filter_by(type='purchase', status='approved')
             .order_by(Request.created_at.desc(), Request.id.desc()))
    if limit:
        query = query.limit(limit)
    return query.all()


def set_bought(request_id, bought):
    """Toggle the bought flag of an approved purchase."""
    purchase = Request.query.filter_by(id=request_id, type='purchase', status='approved').first()
    if purchase is None:
        return None
    with session_management():
        purchase.bought = bool(bought)
    request_changed.send(current_app._get_current_object(), views=('approved-purchases',))
    return purchase
