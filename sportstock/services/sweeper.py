"""Resolved-request lifecycle: notify the requester once, then delete after the grace window."""
import datetime
import threading

from flask import current_app

from sportstock.models.request import Request, RESOLVED_STATUSES
from sportstock.services.view_cache import request_changed
from sportstock.utils import session_management, utcnow

MESSAGES = {
    'approved': 'Your request "{name}" has been approved!',
    'rejected': 'Your request "{name}" has been rejected.',
}


class RequestSweeper:
    def __init__(self, retention_minutes=5, notification_ttl_seconds=5):
        self.retention = datetime.timedelta(minutes=retention_minutes)
        self.notification_ttl = datetime.timedelta(seconds=notification_ttl_seconds)
        # (request_id, status) pairs already announced, kept per user.
        self._notified = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config):
        return cls(
            retention_minutes=config.get('REQUEST_RETENTION_MINUTES', 5),
            notification_ttl_seconds=config.get('NOTIFICATION_TTL_SECONDS', 5),
        )

    def cutoff(self, now=None):
        return (now or utcnow()) - self.retention

    def is_expired(self, req, now=None):
        return req.is_resolved and req.updated_at is not None and req.updated_at <= self.cutoff(now)

    def minutes_left(self, req, now=None):
        """Whole minutes before a resolved request is swept, None while pending."""
        if not req.is_resolved or req.updated_at is None:
            return None
        elapsed = int(((now or utcnow()) - req.updated_at).total_seconds() // 60)
        return max(int(self.retention.total_seconds() // 60) - elapsed, 0)

    def sweep(self, user_id=None, now=None):
        """Delete resolved requests older than the grace window; returns how many."""
        query = Request.query.filter(
            Request.status.in_(RESOLVED_STATUSES),
            Request.updated_at <= self.cutoff(now),
        )
        if user_id is not None:
            query = query.filter(Request.user_id == user_id)
        ids = [row.id for row in query.with_entities(Request.id).all()]
        if not ids:
            return 0
        with session_management():
            Request.query.filter(Request.id.in_(ids)).delete(synchronize_session=False)
        current_app.logger.info("Swept %d resolved request(s): %s", len(ids), ids)
        request_changed.send(current_app._get_current_object(), views=('requests', 'approved-purchases'))
        return len(ids)

    def collect_notifications(self, user_id, requests, now=None):
        """Raise one notification per newly seen (request, status) resolution.

        Each notification is returned exactly once; the caller shows it until
        ``expires_at``.
        """
        now = now or utcnow()
        fresh = []
        with self._lock:
            seen = self._notified.setdefault(user_id, set())
            for req in requests:
                if not req.is_resolved or req.updated_at is None:
                    continue
                if now - req.updated_at >= self.retention:
                    continue
                key = (req.id, req.status)
                if key in seen:
                    continue
                seen.add(key)
                fresh.append({
                    'id': f'{req.id}-{req.status}',
                    'request_id': req.id,
                    'status': req.status,
                    'message': MESSAGES[req.status].format(name=req.name),
                    'type': 'success' if req.status == 'approved' else 'error',
                    'expires_at': now + self.notification_ttl,
                })
        return fresh

    def forget(self, user_id):
        with self._lock:
            self._notified.pop(user_id, None)

    def poll(self, user_id, now=None):
        """One polling round for a user: sweep, reload, notify.

        Returns the user's remaining requests and the notifications raised in
        this round.
        """
        now = now or utcnow()
        self.sweep(user_id=user_id, now=now)
        requests = (Request.query
                    .filter_by(user_id=user_id)
                    .order_by(Request.created_at.desc(), Request.id.desc())
                    .all())
        return requests, self.collect_notifications(user_id, requests, now=now)


def get_sweeper(app=None):
    app = app or current_app
    return app.extensions['request_sweeper']


def sweep_all(now=None):
    return get_sweeper().sweep(now=now)
