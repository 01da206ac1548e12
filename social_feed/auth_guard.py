from flask import jsonify, request
from flask_jwt_extended import decode_token, get_jwt_identity

from social_feed.errors import Unauthenticated


def _unauthenticated(message):
    return jsonify(Unauthenticated(message).to_dict()), Unauthenticated.status_code


def register_jwt_handlers(jwt):
    """Render every token failure as 401 {message} instead of the library defaults."""

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _unauthenticated(reason or "Not authenticated.")

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _unauthenticated(reason or "Invalid token.")

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _unauthenticated("Token has expired.")

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return _unauthenticated("Token has been revoked.")


def current_user_id():
    user_id = get_jwt_identity()
    if not user_id:
        raise Unauthenticated()
    return str(user_id)


def extract_socket_token(auth):
    if isinstance(auth, dict):
        token = auth.get("token") or auth.get("access_token")
        if token:
            return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()

    return request.args.get("token")


def identity_from_token(token):
    """Verify a raw access token and return its user id, or None."""
    if not token:
        return None
    try:
        claims = decode_token(token)
    except Exception:
        return None
    if claims.get("type") != "access":
        return None
    return claims.get("sub")
