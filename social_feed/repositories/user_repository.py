from social_feed.db import db
from social_feed.models.user_model import User
from social_feed.repositories.base import store_operation


@store_operation
def find_by_id(user_id):
    if not user_id:
        return None
    return db.session.get(User, user_id)


@store_operation
def lock_by_id(user_id):
    """Reload a user inside the current write transaction.

    The row is locked where the backend supports SELECT ... FOR UPDATE, and
    any copy already in the session is overwritten with the stored state, so
    a following ``post_ids`` change starts from the latest list.
    """
    if not user_id:
        return None
    return db.session.get(User, user_id, with_for_update=True, populate_existing=True)


@store_operation
def find_by_email(email: str):
    return User.query.filter_by(email=email).first()


@store_operation
def find_all():
    return User.query.order_by(User.created_at.asc()).all()


@store_operation
def create(email, password_hash, name):
    user = User(
        email=email,
        password_hash=password_hash,
        name=name,
        post_ids=[],
    )
    db.session.add(user)
    db.session.flush()
    return user


@store_operation
def save(user):
    db.session.add(user)
    db.session.flush()
    return user


def append_post_id(user, post_id):
    # JSON columns only detect reassignment, not in-place mutation.
    user.post_ids = [*(user.post_ids or []), post_id]
    return user


def remove_post_id(user, post_id):
    user.post_ids = [pid for pid in (user.post_ids or []) if pid != post_id]
    return user
