import logging

from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash, generate_password_hash

from social_feed.errors import NotFound, StoreError, Unauthenticated, ValidationFailed
from social_feed.repositories import base as store
from social_feed.repositories import user_repository
from social_feed.schemas.auth_schema import SignupSchema, StatusSchema
from social_feed.schemas.validation import load_or_fail


logger = logging.getLogger(__name__)


def signup(email, password, name):
    data = load_or_fail(
        SignupSchema(),
        {"email": email, "password": password, "name": name},
    )

    if user_repository.find_by_email(data["email"]):
        raise ValidationFailed(data=[{
            "field": "email",
            "message": "E-Mail address already exists!",
        }])

    try:
        user = user_repository.create(
            email=data["email"],
            password_hash=generate_password_hash(data["password"]),
            name=data["name"],
        )
        store.commit()
    except StoreError:
        store.rollback()
        raise

    logger.info("User %s signed up", user.id)
    return user.id


def login(email, password):
    if not isinstance(email, str) or not isinstance(password, str):
        raise Unauthenticated("A user with this email could not be found.")

    user = user_repository.find_by_email(email.strip().lower())
    if not user:
        raise Unauthenticated("A user with this email could not be found.")
    if not check_password_hash(user.password_hash, password):
        raise Unauthenticated("Wrong password!")

    return {
        "token": create_access_token(identity=user.id),
        "userId": user.id,
    }


def get_status(user_id):
    user = user_repository.find_by_id(user_id)
    if not user:
        raise NotFound("User not found.")
    return user.status


def update_status(user_id, status):
    data = load_or_fail(StatusSchema(), {"status": status})

    user = user_repository.find_by_id(user_id)
    if not user:
        raise NotFound("User not found.")

    try:
        user.status = data["status"]
        user_repository.save(user)
        store.commit()
    except StoreError:
        store.rollback()
        raise
    return user.status
