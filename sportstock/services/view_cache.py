"""Memoised read views.

Entries are dropped when a mutation in this process sends ``request_changed``,
and in any case after ``VIEW_CACHE_TTL_SECONDS``, so writes made by other
processes (the scheduler, CLI commands, other workers) are picked up within
one polling interval.
"""
import threading
import time

from blinker import Namespace

_signals = Namespace()

# Sent after a committed write with ``views=(<view names>)``.
request_changed = _signals.signal('request-changed')

ALL_VIEWS = ('requests', 'equipment', 'categories', 'approved-purchases', 'price-history')


class ViewCache:
    def __init__(self, app=None, clock=time.monotonic):
        self._data = {}
        self._lock = threading.Lock()
        self.clock = clock
        self.ttl = 5
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.ttl = app.config.get('VIEW_CACHE_TTL_SECONDS', app.config.get('POLL_INTERVAL_SECONDS', 5))
        app.extensions['view_cache'] = self
        request_changed.connect(self._on_change, sender=app, weak=False)

    def _on_change(self, sender, views=ALL_VIEWS, **extra):
        self.invalidate(*views)

    def _live(self, cache_key, now):
        entry = self._data.get(cache_key)
        if entry is None:
            return False
        if entry[0] <= now:
            del self._data[cache_key]
            return False
        return True

    def get_or_compute(self, view, key, compute):
        cache_key = (view, key)
        with self._lock:
            if self._live(cache_key, self.clock()):
                return self._data[cache_key][1]
        value = compute()
        with self._lock:
            self._data[cache_key] = (self.clock() + self.ttl, value)
        return value

    def invalidate(self, *views):
        with self._lock:
            for cache_key in list(self._data):
                if cache_key[0] in views:
                    del self._data[cache_key]

    def clear(self):
        with self._lock:
            self._data.clear()

    def __contains__(self, view):
        with self._lock:
            now = self.clock()
            return any(self._live(cache_key, now) for cache_key in list(self._data)
                       if cache_key[0] == view)
