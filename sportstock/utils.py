# sportstock/utils.py
import datetime
from contextlib import contextmanager

from sportstock.extensions import db


def utcnow():
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


@contextmanager
def session_management():
    """Commit on success, roll back and re-raise on any error."""
    try:
        yield
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
