"""Per-request session context: who is signed in and which role they hold."""
import logging
import time

from flask import current_app, g
from flask_login import current_user, logout_user, user_logged_in, user_logged_out
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sportstock.extensions import db
from sportstock.models.user import Profile
from sportstock.services.event_log import log_event

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = 'Your account has been blocked. Please contact an administrator.'


class RoleLookupError(Exception):
    """The profile role could not be read or created."""


class SessionContext:
    def __init__(self, user=None, is_admin=False, is_blocked=False, is_loading=False, error=None):
        self.user = user
        self.is_admin = is_admin
        self.is_blocked = is_blocked
        self.is_loading = is_loading
        self.error = error

    @property
    def is_authenticated(self):
        return self.user is not None

    def __repr__(self):
        return (f"SessionContext(user={getattr(self.user, 'id', None)}, admin={self.is_admin}, "
                f"blocked={self.is_blocked}, error={self.error!r})")


def lookup_role(user_id):
    """Return the user's role, creating a ``user`` profile when none exists."""
    try:
        profile = db.session.get(Profile, user_id)
        if profile is not None:
            return profile.role
        db.session.add(Profile(id=user_id, role='user'))
        try:
            db.session.commit()
        except IntegrityError:
            # Another request created it first.
            db.session.rollback()
            profile = db.session.get(Profile, user_id)
            return profile.role if profile else 'user'
        return 'user'
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise RoleLookupError(str(exc)) from exc


def resolve_role(user_id, retries=3, backoff=1.0, sleep=time.sleep, lookup=lookup_role):
    """Look up a role, retrying with linear backoff (backoff, 2*backoff, ...).

    Raises RoleLookupError once ``retries`` retries have also failed.
    """
    attempt = 0
    while True:
        try:
            return lookup(user_id)
        except RoleLookupError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning("Role lookup for user %s failed (%s). Retrying, attempt %d of %d",
                           user_id, exc, attempt, retries)
            sleep(backoff * attempt)


def build_session_context(user, retries=3, backoff=1.0, sleep=time.sleep, lookup=lookup_role):
    if user is None or not getattr(user, 'is_authenticated', False):
        return SessionContext()
    try:
        role = resolve_role(user.id, retries=retries, backoff=backoff, sleep=sleep, lookup=lookup)
    except RoleLookupError as exc:
        logger.error("Giving up on role lookup for user %s: %s", user.id, exc)
        return SessionContext(user=user, error=exc)
    return SessionContext(user=user, is_admin=role == 'admin', is_blocked=role == 'blocked')


class SessionManager:
    """Builds ``g.session_ctx`` for every request and follows sign-in/sign-out."""

    def __init__(self, app=None, sleep=time.sleep):
        self.sleep = sleep
        self.app = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions['session_manager'] = self
        app.before_request(self.load_context)
        app.context_processor(lambda: {'session_ctx': g.get('session_ctx', SessionContext())})
        user_logged_in.connect(self._on_login, sender=app, weak=False)
        user_logged_out.connect(self._on_logout, sender=app, weak=False)

    def shutdown(self):
        if self.app is None:
            return
        user_logged_in.disconnect(self._on_login, sender=self.app)
        user_logged_out.disconnect(self._on_logout, sender=self.app)

    def context_for(self, user):
        return build_session_context(
            user,
            retries=current_app.config.get('ROLE_LOOKUP_RETRIES', 3),
            backoff=current_app.config.get('ROLE_LOOKUP_BACKOFF_SECONDS', 1.0),
            sleep=self.sleep,
        )

    def load_context(self):
        user = current_user._get_current_object() if current_user.is_authenticated else None
        ctx = self.context_for(user)
        if ctx.is_blocked:
            log_event('Blocked sign-out', 'FORCED', {'user_id': user.id}, user_id=user.id)
            logout_user()
            ctx.user = None
        g.session_ctx = ctx

    def _on_login(self, sender, user, **extra):
        current_app.logger.info("User %s signed in", user.id)
        g.session_ctx = self.context_for(user)

    def _on_logout(self, sender, user, **extra):
        current_app.logger.info("User %s signed out", getattr(user, 'id', None))
        if not g.get('session_ctx') or not g.session_ctx.is_blocked:
            g.session_ctx = SessionContext()


def get_session_context():
    return g.get('session_ctx') or SessionContext()
