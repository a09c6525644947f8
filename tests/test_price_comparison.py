import os
import sys

import pytest
import requests

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from config import TestingConfig
from sportstock import create_app
from sportstock.services import price_comparison
from sportstock.services.price_comparison import find_best_price, get_user_location


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f'{self.status} error')

    def json(self):
        return self.payload


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app


def test_location_lookup(app, monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse({'region': 'Moscow', 'country_name': 'Russia'})

    monkeypatch.setattr(price_comparison.requests, 'get', fake_get)

    assert get_user_location('https://geo.example/json/') == ('Moscow', 'Russia')
    assert calls == [('https://geo.example/json/', 5)]


def test_location_lookup_failures(app, monkeypatch):
    def unreachable(url, timeout):
        raise requests.exceptions.ConnectionError('offline')

    monkeypatch.setattr(price_comparison.requests, 'get', unreachable)
    assert get_user_location('https://geo.example/json/') is None

    monkeypatch.setattr(price_comparison.requests, 'get',
                        lambda url, timeout: FakeResponse({}, status=503))
    assert get_user_location('https://geo.example/json/') is None


def test_location_lookup_disabled_without_url(app, monkeypatch):
    def should_not_run(url, timeout):
        raise AssertionError('no request expected')

    monkeypatch.setattr(price_comparison.requests, 'get', should_not_run)
    assert get_user_location() is None


def test_find_best_price_links():
    results = find_best_price('volleyball net', location=('Kazan', 'Russia'))

    assert [r['seller'] for r in results] == ['Яндекс.Маркет', 'Ozon', 'Wildberries', 'Avito']
    assert all('volleyball+net' in r['url'] for r in results)
    assert all(r['price'] == 0 and r['total_price'] == 0 for r in results)
    assert results[0]['location'] == 'Kazan, Russia'


def test_find_best_price_default_location(app):
    results = find_best_price('cones')
    assert {r['location'] for r in results} == {'Россия'}
