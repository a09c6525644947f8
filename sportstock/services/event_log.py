import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sportstock.extensions import db
from sportstock.models.user import EventLog


def log_event(event_type, status, details, user_id=None):
    """Central helper that writes an EventLog row and mirrors it to the app logger."""
    current_app.logger.info("%s [%s] %s", event_type, status, details)
    try:
        log_entry = EventLog(
            event_type=event_type,
            status=status,
            details=json.dumps(details, ensure_ascii=False, default=str),
            user_id=user_id,
        )
        db.session.add(log_entry)
        db.session.commit()
    except SQLAlchemyError:
        current_app.logger.exception("Failed to store event %s", event_type)
        db.session.rollback()
