from functools import wraps

from flask import Blueprint, render_template, request, flash, redirect, url_for, jsonify, current_app
from flask_login import current_user

from sportstock.extensions import login_manager
from sportstock.forms.forms import RequestForm
from sportstock.services import dashboard as views
from sportstock.services.price_comparison import find_best_price
from sportstock.services.request_service import submit_request
from sportstock.services.request_types import build_request, RequestValidationError
from sportstock.services.session_service import BLOCKED_MESSAGE, get_session_context
from sportstock.services.sweeper import get_sweeper
from sportstock.utils import utcnow

main = Blueprint('main', __name__)


# --- Route guard: signed in and not blocked ---
def active_user_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        ctx = get_session_context()
        if ctx.is_blocked:
            flash(BLOCKED_MESSAGE, 'danger')
            return redirect(url_for('auth.login'))
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        return f(*args, **kwargs)
    return decorated_function


def view_cache():
    return current_app.extensions['view_cache']


def _request_row(req, sweeper, now=None):
    row = req.to_dict()
    row['minutes_left'] = sweeper.minutes_left(req, now=now)
    row['has_enough_stock'] = req.has_enough_stock
    return row


def _notification_row(notification, now=None):
    row = dict(notification)
    remaining = (notification['expires_at'] - (now or utcnow())).total_seconds()
    row['expires_at'] = notification['expires_at'].isoformat()
    row['expires_in_ms'] = max(int(remaining * 1000), 0)
    return row


# --- Routes ---
@main.route('/')
def landing():
    if current_user.is_authenticated:
        return redirect(url_for('main.dashboard'))
    return render_template('landing.html')


@main.route('/dashboard')
@active_user_required
def dashboard():
    cache = view_cache()
    recent_count = current_app.config.get('DASHBOARD_RECENT_PURCHASES', 3)
    equipment = cache.get_or_compute('equipment', 'all', views.load_equipment)
    purchases = cache.get_or_compute('approved-purchases', ('recent', recent_count),
                                     lambda: views.load_purchase_rows(limit=recent_count))
    snapshot = views.dashboard_snapshot(equipment, purchases)
    return render_template('dashboard.html', snapshot=snapshot, status_labels=views.STATUS_LABELS,
                           poll_interval=current_app.config.get('POLL_INTERVAL_SECONDS', 5))


@main.route('/equipment')
@active_user_required
def equipment():
    cache = view_cache()
    search = request.args.get('q', '').strip()
    categories = cache.get_or_compute('categories', 'all', views.load_categories)
    items = cache.get_or_compute('equipment', 'all', views.load_equipment)
    items = sorted(views.filter_by_text(items, search), key=lambda item: item['name'].lower())
    groups = views.group_by_category(items, categories)
    return render_template('equipment.html', groups=groups, search=search,
                           status_labels=views.STATUS_LABELS)


@main.route('/requests')
@active_user_required
def requests_page():
    sweeper = get_sweeper()
    now = utcnow()
    user_requests, notifications = sweeper.poll(current_user.id, now=now)
    form = RequestForm()
    return render_template('requests.html',
                           requests=[_request_row(r, sweeper, now) for r in user_requests],
                           notifications=[_notification_row(n, now) for n in notifications],
                           form=form,
                           poll_interval=current_app.config.get('POLL_INTERVAL_SECONDS', 5))


@main.route('/requests/new', methods=['POST'])
@active_user_required
def new_request():
    form = RequestForm()
    if not form.validate_on_submit():
        for field, errors in form.errors.items():
            for error in errors:
                flash(f"{getattr(form, field).label.text}: {error}", 'danger')
        return redirect(url_for('main.requests_page'))

    try:
        payload = build_request(
            form.type.data,
            name=form.name.data,
            description=form.description.data,
            quantity=form.quantity.data,
            category_id=form.category.data.id if form.category.data else None,
            equipment_id=form.equipment.data.id if form.equipment.data else None,
            best_price=form.best_price.data,
            seller=form.seller.data,
            purchase_url=form.purchase_url.data,
        )
    except RequestValidationError as exc:
        flash(str(exc), 'danger')
        return redirect(url_for('main.requests_page'))

    submit_request(current_user.id, payload)
    flash('Your request has been submitted.', 'success')
    return redirect(url_for('main.requests_page'))


@main.route('/requests/poll')
@active_user_required
def poll_requests():
    sweeper = get_sweeper()
    now = utcnow()
    user_requests, notifications = sweeper.poll(current_user.id, now=now)
    return jsonify({
        'requests': [_request_row(r, sweeper, now) for r in user_requests],
        'notifications': [_notification_row(n, now) for n in notifications],
        'poll_interval': current_app.config.get('POLL_INTERVAL_SECONDS', 5),
    })


@main.route('/requests/marketplaces')
@active_user_required
def marketplaces():
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify({'error': 'Enter an item name to search for.'}), 400
    return jsonify({'query': query, 'results': find_best_price(query)})
