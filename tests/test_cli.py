import datetime
import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from config import TestingConfig
from sportstock import create_app
from sportstock.extensions import db
from sportstock.models import Equipment, EquipmentCategory, Profile, Request, User
from sportstock.utils import utcnow


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_seed_db(runner):
    result = runner.invoke(args=['seed-db'])
    assert 'Database seeded' in result.output
    assert EquipmentCategory.query.count() == 3
    assert Equipment.query.count() == 6

    result = runner.invoke(args=['seed-db'])
    assert 'nothing to do' in result.output
    assert EquipmentCategory.query.count() == 3


def test_set_role(runner):
    user = User(email='coach@school.org', password_hash='x')
    db.session.add(user)
    db.session.commit()
    user_id = user.id

    result = runner.invoke(args=['set-role', 'coach@school.org', 'admin'])

    assert result.exit_code == 0
    assert 'coach@school.org is now admin.' in result.output
    db.session.expire_all()
    assert db.session.get(Profile, user_id).role == 'admin'


def test_set_role_rejects_unknown_account_and_role(runner):
    result = runner.invoke(args=['set-role', 'ghost@school.org', 'admin'])
    assert result.exit_code != 0
    assert 'No account with email ghost@school.org.' in result.output

    result = runner.invoke(args=['set-role', 'ghost@school.org', 'owner'])
    assert result.exit_code != 0


def test_sweep_requests(runner):
    user = User(email='pupil@school.org', password_hash='x')
    db.session.add(user)
    db.session.commit()
    db.session.add_all([
        Request(user_id=user.id, type='category', name='Old', status='approved',
                updated_at=utcnow() - datetime.timedelta(minutes=10)),
        Request(user_id=user.id, type='category', name='Waiting', status='pending',
                updated_at=utcnow() - datetime.timedelta(minutes=10)),
    ])
    db.session.commit()

    result = runner.invoke(args=['sweep-requests'])

    assert 'Deleted 1 resolved request(s).' in result.output
    db.session.expire_all()
    assert [r.name for r in Request.query.all()] == ['Waiting']
