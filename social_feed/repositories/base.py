import functools
import logging

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError

from social_feed.db import db
from social_feed.errors import FeedError, StoreError, StoreUnavailable


logger = logging.getLogger(__name__)


def store_operation(func):
    """Translate engine failures into StoreError / StoreUnavailable."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FeedError:
            raise
        except OperationalError as e:
            db.session.rollback()
            logger.warning("Store unreachable during %s: %s", func.__name__, e)
            raise StoreUnavailable() from e
        except (DBAPIError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("Store failure during %s: %s", func.__name__, e)
            raise StoreError(status_code=getattr(e, "status_code", None)) from e

    return wrapper


@store_operation
def commit():
    db.session.commit()


def rollback():
    db.session.rollback()
