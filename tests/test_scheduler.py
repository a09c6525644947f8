import datetime
import os
import sys

import pytest
from apscheduler.triggers.interval import IntervalTrigger
from click.testing import CliRunner

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

import scheduler
from config import TestingConfig
from sportstock import create_app
from sportstock.extensions import db
from sportstock.models import Request, User
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
def old_requests(app):
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


class RecordingScheduler:
    def __init__(self):
        self.jobs = []
        self.started = False

    def add_job(self, func, **kwargs):
        self.jobs.append((func, kwargs))

    def start(self):
        self.started = True


def test_sweep_resolved_requests(app, old_requests):
    assert scheduler.sweep_resolved_requests(app) == 1
    db.session.expire_all()
    assert [r.name for r in Request.query.all()] == ['Waiting']


def test_build_scheduler_runs_every_poll_interval(app):
    sched = scheduler.build_scheduler(app)
    job = sched.get_job(scheduler.SWEEP_JOB_ID)

    assert job.func is scheduler.sweep_resolved_requests
    assert job.args == (app,)
    assert isinstance(job.trigger, IntervalTrigger)
    assert job.trigger.interval == datetime.timedelta(seconds=app.config['POLL_INTERVAL_SECONDS'])


def test_main_runs_one_sweep(app, old_requests, monkeypatch):
    monkeypatch.setattr(scheduler, 'create_app', lambda: app)
    fake = RecordingScheduler()
    monkeypatch.setattr(scheduler, 'BlockingScheduler', lambda **kwargs: fake)

    result = CliRunner().invoke(scheduler.main, [])

    assert result.exit_code == 0
    assert not fake.started
    db.session.expire_all()
    assert Request.query.count() == 1


def test_main_loop_starts_scheduler(app, monkeypatch):
    monkeypatch.setattr(scheduler, 'create_app', lambda: app)
    fake = RecordingScheduler()
    monkeypatch.setattr(scheduler, 'BlockingScheduler', lambda **kwargs: fake)

    result = CliRunner().invoke(scheduler.main, ['--loop'])

    assert result.exit_code == 0
    assert fake.started
    [(func, kwargs)] = fake.jobs
    assert func is scheduler.sweep_resolved_requests
    assert kwargs['id'] == scheduler.SWEEP_JOB_ID
