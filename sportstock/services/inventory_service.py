from flask import current_app
from sqlalchemy import func

from sportstock.extensions import db
from sportstock.models.equipment import Equipment, EquipmentCategory, EQUIPMENT_STATUSES
from sportstock.models.request import Request
from sportstock.models.user import Profile, User, ROLES
from sportstock.services.event_log import log_event
from sportstock.services.view_cache import request_changed
from sportstock.utils import session_management


def _changed(*views):
    request_changed.send(current_app._get_current_object(), views=views)


# --- Categories ---
def categories_with_counts(search=None):
    query = (db.session.query(EquipmentCategory, func.count(Equipment.id))
             .outerjoin(Equipment, Equipment.category_id == EquipmentCategory.id)
             .group_by(EquipmentCategory.id)
             .order_by(EquipmentCategory.name))
    if search:
        query = query.filter(EquipmentCategory.name.ilike(f'%{search.strip()}%'))
    return query.all()


def create_category(name):
    with session_management():
        category = EquipmentCategory(name=name.strip())
        db.session.add(category)
    _changed('categories')
    return category


def delete_category(category_id, admin_id=None):
    """Delete a category, first detaching the equipment and requests that point at it."""
    category = db.session.get(EquipmentCategory, category_id)
    if category is None:
        return None
    name = category.name
    with session_management():
        requests_updated = (Request.query
                            .filter(Request.category_id == category_id)
                            .update({Request.category_id: None}, synchronize_session=False))
        equipment_updated = (Equipment.query
                             .filter(Equipment.category_id == category_id)
                             .update({Equipment.category_id: None}, synchronize_session=False))
        db.session.delete(category)
    _changed('categories', 'equipment', 'requests')
    log_event('Category deleted', 'SUCCESS',
              {'category_id': category_id, 'name': name,
               'equipment_detached': equipment_updated, 'requests_detached': requests_updated},
              user_id=admin_id)
    return name


# --- Equipment ---
def equipment_in_category(category_id, search=None):
    query = Equipment.query.filter_by(category_id=category_id)
    if search:
        query = query.filter(Equipment.name.ilike(f'%{search.strip()}%'))
    return query.order_by(Equipment.name).all()


def all_equipment():
    return Equipment.query.order_by(Equipment.name).all()


def working_equipment():
    """Equipment that can be the subject of a repair request."""
    return Equipment.query.filter_by(status='in_use').order_by(Equipment.name).all()


def _check_item(quantity, status):
    if quantity is None or int(quantity) < 0:
        raise ValueError('Quantity cannot be negative.')
    if status not in EQUIPMENT_STATUSES:
        raise ValueError(f'Unknown status: {status}')


def add_equipment(name, quantity, status='new', category_id=None, description=None, owner=None):
    _check_item(quantity, status)
    with session_management():
        item = Equipment(
            name=name.strip(),
            quantity=int(quantity),
            status=status,
            category_id=category_id,
            description=description or None,
            owner=owner or None,
        )
        db.session.add(item)
    _changed('equipment', 'categories')
    return item


def update_equipment(item, **fields):
    _check_item(fields.get('quantity', item.quantity), fields.get('status', item.status))
    with session_management():
        for key, value in fields.items():
            setattr(item, key, value)
    _changed('equipment', 'categories')
    return item


def delete_equipment(equipment_id):
    item = db.session.get(Equipment, equipment_id)
    if item is None:
        return None
    name = item.name
    with session_management():
        Request.query.filter(Request.equipment_id == equipment_id).update(
            {Request.equipment_id: None}, synchronize_session=False)
        db.session.delete(item)
    _changed('equipment', 'categories', 'requests')
    return name


# --- Users ---
def list_profiles(search=None):
    query = (db.session.query(Profile, User)
             .join(User, User.id == Profile.id)
             .order_by(Profile.created_at.desc()))
    if search:
        query = query.filter(User.email.ilike(f'%{search.strip()}%'))
    return query.all()


def set_role(user_id, role, admin_id=None):
    if role not in ROLES:
        raise ValueError(f'Unknown role: {role}')
    profile = db.session.get(Profile, user_id)
    if profile is None:
        if db.session.get(User, user_id) is None:
            return None
        profile = Profile(id=user_id, role=role)
        db.session.add(profile)
    previous = profile.role
    with session_management():
        profile.role = role
    log_event('Role change', 'SUCCESS',
              {'user_id': user_id, 'from': previous, 'to': role}, user_id=admin_id)
    return profile
