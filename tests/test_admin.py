import datetime
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from config import TestingConfig
from sportstock import create_app
from sportstock.extensions import db
from sportstock.models import Equipment, EquipmentCategory, EventLog, PriceHistory, Profile, Request, User


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def make_user(email, role):
    user = User(email=email)
    user.set_password('secret123')
    db.session.add(user)
    db.session.flush()
    db.session.add(Profile(id=user.id, role=role))
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app):
    return make_user('admin@school.org', 'admin')


@pytest.fixture
def pupil(app):
    return make_user('pupil@school.org', 'user')


@pytest.fixture
def client(app, admin_user):
    client = app.test_client()
    client.post('/login', data={'email': 'admin@school.org', 'password': 'secret123'},
                follow_redirects=True)
    return client


@pytest.fixture
def balls(app):
    category = EquipmentCategory(name='Balls')
    db.session.add(category)
    db.session.commit()
    return category


def test_approve_from_admin_page(client, pupil, balls):
    req = Request(user_id=pupil.id, type='item', name='Cones', quantity=10, category_id=balls.id)
    db.session.add(req)
    db.session.commit()

    response = client.post(f'/admin/requests/{req.id}/approve', follow_redirects=True)

    assert b'Request &#34;Cones&#34; approved.' in response.data
    assert Equipment.query.filter_by(name='Cones').count() == 1


def test_reject_twice_reports_error(client, pupil):
    req = Request(user_id=pupil.id, type='category', name='Winter sports')
    db.session.add(req)
    db.session.commit()

    client.post(f'/admin/requests/{req.id}/reject')
    response = client.post(f'/admin/requests/{req.id}/approve', follow_redirects=True)

    assert b'already rejected' in response.data
    assert db.session.get(Request, req.id).status == 'rejected'
    assert EquipmentCategory.query.count() == 0


def test_repair_without_stock_shows_warning(client, pupil, balls):
    item = Equipment(name='Football ball', quantity=1, status='in_use', category_id=balls.id)
    db.session.add(item)
    db.session.commit()
    req = Request(user_id=pupil.id, type='repair', name='Football ball', quantity=3, equipment_id=item.id)
    db.session.add(req)
    db.session.commit()

    page = client.get('/admin/requests')
    assert b'Not enough items available' in page.data

    response = client.post(f'/admin/requests/{req.id}/approve', follow_redirects=True)
    assert b'Not enough working' in response.data
    assert db.session.get(Equipment, item.id).quantity == 1
    assert EventLog.query.filter_by(event_type='Request resolution', status='FAILED').count() == 1


def test_add_category(client):
    response = client.post('/admin/categories', data={'name': 'Athletics'}, follow_redirects=True)
    assert b'Category &#34;Athletics&#34; added.' in response.data
    assert EquipmentCategory.query.filter_by(name='Athletics').count() == 1


def test_delete_category_detaches_equipment_and_requests(client, pupil, balls):
    for name in ('Football ball', 'Volleyball', 'Basketball'):
        db.session.add(Equipment(name=name, quantity=2, status='in_use', category_id=balls.id))
    db.session.add(Request(user_id=pupil.id, type='item', name='Cones', quantity=5, category_id=balls.id))
    db.session.commit()
    category_id = balls.id

    response = client.post(f'/admin/categories/{category_id}/delete', follow_redirects=True)

    assert b'is now uncategorized' in response.data
    assert db.session.get(EquipmentCategory, category_id) is None
    assert Equipment.query.count() == 3
    assert Equipment.query.filter(Equipment.category_id.isnot(None)).count() == 0
    assert Request.query.one().category_id is None


def test_delete_missing_category(client):
    assert client.post('/admin/categories/42/delete').status_code == 404


def test_add_and_edit_equipment(client, balls):
    response = client.post(f'/admin/categories/{balls.id}', data={
        'name': 'Football ball', 'quantity': '6', 'status': 'in_use', 'owner': 'PE department',
    }, follow_redirects=True)
    assert b'Equipment added.' in response.data
    item = Equipment.query.one()
    assert item.category_id == balls.id

    client.post(f'/admin/equipment/{item.id}/edit', data={
        'name': 'Football ball', 'quantity': '0', 'status': 'broken',
    })
    item = db.session.get(Equipment, item.id)
    assert item.quantity == 0
    assert item.status == 'broken'


def test_edit_rejects_negative_quantity(client, balls):
    item = Equipment(name='Gym mat', quantity=3, status='new', category_id=balls.id)
    db.session.add(item)
    db.session.commit()

    response = client.post(f'/admin/equipment/{item.id}/edit', data={
        'name': 'Gym mat', 'quantity': '-1', 'status': 'new',
    }, follow_redirects=True)

    assert b'Error in field quantity' in response.data
    assert db.session.get(Equipment, item.id).quantity == 3


def test_delete_equipment_keeps_requests(client, pupil, balls):
    item = Equipment(name='Football ball', quantity=2, status='in_use', category_id=balls.id)
    db.session.add(item)
    db.session.commit()
    req = Request(user_id=pupil.id, type='repair', name='Football ball', quantity=1, equipment_id=item.id)
    db.session.add(req)
    db.session.commit()

    client.post(f'/admin/equipment/{item.id}/delete')

    assert Equipment.query.count() == 0
    assert db.session.get(Request, req.id).equipment_id is None


def test_purchases_page_and_bought_toggle(client, pupil):
    first = Request(user_id=pupil.id, type='purchase', name='Nets', quantity=2, best_price=1000,
                    seller='Ozon', status='approved')
    second = Request(user_id=pupil.id, type='purchase', name='Cones', quantity=1, best_price=500,
                     seller='Avito', status='approved')
    db.session.add_all([first, second])
    db.session.commit()

    page = client.get('/admin/purchases')
    assert b'2500.00' in page.data

    response = client.post(f'/admin/purchases/{first.id}/bought', data={'bought': '1'},
                           headers={'Accept': 'application/json'})
    assert response.get_json() == {'id': first.id, 'bought': True}
    assert db.session.get(Request, first.id).bought is True

    page = client.get('/admin/purchases')
    assert b'(1 of 2 bought)' in page.data


def test_bought_toggle_only_for_approved_purchases(client, pupil):
    pending = Request(user_id=pupil.id, type='purchase', name='Nets', quantity=1, best_price=100)
    db.session.add(pending)
    db.session.commit()
    assert client.post(f'/admin/purchases/{pending.id}/bought', data={'bought': '1'}).status_code == 404


def test_price_history_endpoint(client, pupil):
    req = Request(user_id=pupil.id, type='purchase', name='Nets', quantity=1, best_price=1400,
                  status='approved')
    db.session.add(req)
    db.session.commit()
    db.session.add_all([
        PriceHistory(request_id=req.id, price=1400, seller='Ozon',
                     recorded_at=datetime.datetime(2024, 2, 1)),
        PriceHistory(request_id=req.id, price=1500, seller='Avito',
                     recorded_at=datetime.datetime(2024, 1, 1)),
    ])
    db.session.commit()

    data = client.get(f'/admin/purchases/{req.id}/history').get_json()

    assert data['request_id'] == req.id
    assert [point['price'] for point in data['history']] == [1500, 1400]


def test_users_list_search(client, pupil):
    make_user('coach@school.org', 'user')
    page = client.get('/admin/users?q=coach')
    assert b'coach@school.org' in page.data
    assert b'pupil@school.org' not in page.data


def test_change_role(client, pupil):
    response = client.post(f'/admin/users/{pupil.id}/role', data={'role': 'blocked'},
                           follow_redirects=True)
    assert b'Role updated to blocked.' in response.data
    assert db.session.get(Profile, pupil.id).role == 'blocked'
    assert EventLog.query.filter_by(event_type='Role change').count() == 1


def test_admin_cannot_change_own_role(client, admin_user):
    response = client.post(f'/admin/users/{admin_user.id}/role', data={'role': 'user'},
                           follow_redirects=True)
    assert b'You cannot change your own role.' in response.data
    assert db.session.get(Profile, admin_user.id).role == 'admin'


def test_unknown_role_is_refused(client, pupil):
    response = client.post(f'/admin/users/{pupil.id}/role', data={'role': 'owner'},
                           follow_redirects=True)
    assert b'Please choose a valid role.' in response.data
    assert db.session.get(Profile, pupil.id).role == 'user'
