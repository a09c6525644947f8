from functools import wraps

from flask import Blueprint, render_template, redirect, url_for, request, flash, jsonify, current_app, abort
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from sportstock.extensions import db
from sportstock.forms.forms import CategoryForm, EquipmentItemForm, RoleForm
from sportstock.models.equipment import Equipment, EquipmentCategory
from sportstock.routes.main import active_user_required, view_cache
from sportstock.services import dashboard as views
from sportstock.services import inventory_service as inventory
from sportstock.services.approval_service import process_request, ApprovalError
from sportstock.services.request_service import recent_requests, set_bought
from sportstock.services.session_service import get_session_context

admin = Blueprint('admin', __name__)


# --- Admin required decorator ---
def admin_required(f):
    @wraps(f)
    @active_user_required
    def decorated_function(*args, **kwargs):
        if not get_session_context().is_admin:
            return redirect(url_for('main.dashboard'))
        return f(*args, **kwargs)
    return decorated_function


@admin.route('/')
@admin_required
def index():
    return redirect(url_for('admin.requests_list'))


# --- Requests ---
@admin.route('/requests')
@admin_required
def requests_list():
    limit = current_app.config.get('ADMIN_RECENT_REQUESTS', 5)
    return render_template('admin/requests.html', requests=recent_requests(limit=limit))


@admin.route('/requests/<int:request_id>/<any(approve, reject):action>', methods=['POST'])
@admin_required
def resolve_request(request_id, action):
    target = 'approved' if action == 'approve' else 'rejected'
    try:
        req = process_request(request_id, target, admin_id=current_user.id)
    except ApprovalError as exc:
        flash(str(exc), 'danger')
    except SQLAlchemyError:
        current_app.logger.exception("Database error while resolving request %s", request_id)
        flash('The request could not be updated. Nothing was changed.', 'danger')
    else:
        flash(f'Request "{req.name}" {target}.', 'success')
    return redirect(url_for('admin.requests_list'))


# --- Categories and equipment ---
@admin.route('/equipment')
@admin_required
def equipment_list():
    search = request.args.get('q', '').strip()
    categories = inventory.categories_with_counts(search)
    uncategorized = Equipment.query.filter(Equipment.category_id.is_(None)).order_by(Equipment.name).all()
    return render_template('admin/equipment.html', categories=categories, uncategorized=uncategorized,
                           form=CategoryForm(), search=search, status_labels=views.STATUS_LABELS)


@admin.route('/categories', methods=['POST'])
@admin_required
def add_category():
    form = CategoryForm()
    if form.validate_on_submit():
        category = inventory.create_category(form.name.data)
        flash(f'Category "{category.name}" added.', 'success')
    else:
        flash('Please enter a category name.', 'danger')
    return redirect(url_for('admin.equipment_list'))


@admin.route('/categories/<int:category_id>/delete', methods=['POST'])
@admin_required
def delete_category(category_id):
    name = inventory.delete_category(category_id, admin_id=current_user.id)
    if name is None:
        abort(404)
    flash(f'Category "{name}" deleted. Its equipment is now uncategorized.', 'success')
    return redirect(url_for('admin.equipment_list'))


@admin.route('/categories/<int:category_id>', methods=['GET', 'POST'])
@admin_required
def category_detail(category_id):
    category = db.get_or_404(EquipmentCategory, category_id)
    form = EquipmentItemForm()
    if form.validate_on_submit():
        inventory.add_equipment(
            name=form.name.data,
            quantity=form.quantity.data,
            status=form.status.data,
            category_id=category.id,
            description=form.description.data,
            owner=form.owner.data,
        )
        flash('Equipment added.', 'success')
        return redirect(url_for('admin.category_detail', category_id=category.id))
    search = request.args.get('q', '').strip()
    items = inventory.equipment_in_category(category.id, search)
    return render_template('admin/category_detail.html', category=category, items=items, form=form,
                           search=search, status_labels=views.STATUS_LABELS)


@admin.route('/equipment/<int:equipment_id>/edit', methods=['POST'])
@admin_required
def edit_equipment(equipment_id):
    item = db.get_or_404(Equipment, equipment_id)
    form = EquipmentItemForm()
    if form.validate_on_submit():
        inventory.update_equipment(
            item,
            name=form.name.data.strip(),
            description=form.description.data or None,
            quantity=form.quantity.data,
            status=form.status.data,
            owner=form.owner.data or None,
        )
        flash('Equipment updated.', 'success')
    else:
        for field, errors in form.errors.items():
            for error in errors:
                flash(f"Error in field {field}: {error}", 'danger')
    if item.category_id:
        return redirect(url_for('admin.category_detail', category_id=item.category_id))
    return redirect(url_for('admin.equipment_list'))


@admin.route('/equipment/<int:equipment_id>/delete', methods=['POST'])
@admin_required
def delete_equipment(equipment_id):
    item = db.get_or_404(Equipment, equipment_id)
    category_id = item.category_id
    inventory.delete_equipment(equipment_id)
    flash('Equipment removed.', 'success')
    if category_id:
        return redirect(url_for('admin.category_detail', category_id=category_id))
    return redirect(url_for('admin.equipment_list'))


# --- Purchases ---
@admin.route('/purchases')
@admin_required
def purchases():
    rows = view_cache().get_or_compute('approved-purchases', 'all', views.load_purchase_rows)
    return render_template('admin/purchases.html', snapshot=views.purchases_snapshot(rows))


@admin.route('/purchases/<int:request_id>/bought', methods=['POST'])
@admin_required
def toggle_bought(request_id):
    bought = request.form.get('bought') in ('1', 'true', 'on', 'yes')
    purchase = set_bought(request_id, bought)
    if purchase is None:
        abort(404)
    if request.accept_mimetypes.best == 'application/json':
        return jsonify({'id': purchase.id, 'bought': purchase.bought})
    return redirect(url_for('admin.purchases'))


@admin.route('/purchases/<int:request_id>/history')
@admin_required
def price_history(request_id):
    series = view_cache().get_or_compute('price-history', request_id,
                                         lambda: views.load_price_history(request_id))
    return jsonify({'request_id': request_id, 'history': series})


# --- Users ---
@admin.route('/users')
@admin_required
def users_list():
    search = request.args.get('q', '').strip()
    return render_template('admin/users.html', profiles=inventory.list_profiles(search),
                           form=RoleForm(), search=search)


@admin.route('/users/<int:user_id>/role', methods=['POST'])
@admin_required
def change_role(user_id):
    form = RoleForm()
    if not form.validate_on_submit():
        flash('Please choose a valid role.', 'danger')
        return redirect(url_for('admin.users_list'))
    if user_id == current_user.id:
        flash('You cannot change your own role.', 'warning')
        return redirect(url_for('admin.users_list'))
    profile = inventory.set_role(user_id, form.role.data, admin_id=current_user.id)
    if profile is None:
        abort(404)
    flash(f'Role updated to {profile.role}.', 'success')
    return redirect(url_for('admin.users_list'))
