from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from social_feed.auth_guard import current_user_id
from social_feed.errors import ValidationFailed
from social_feed.services import auth_service


auth_bp = Blueprint("auth", __name__)


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationFailed("Invalid JSON body")
    return data


@auth_bp.route("/signup", methods=["PUT"])
def signup():
    data = _json_body()
    user_id = auth_service.signup(
        data.get("email"),
        data.get("password"),
        data.get("name"),
    )
    return jsonify({"message": "User created!", "userId": user_id}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = _json_body()
    return jsonify(auth_service.login(data.get("email"), data.get("password"))), 200


@auth_bp.route("/status", methods=["GET"])
@jwt_required()
def get_status():
    return jsonify({"status": auth_service.get_status(current_user_id())}), 200


@auth_bp.route("/status", methods=["PATCH"])
@jwt_required()
def update_status():
    data = _json_body()
    auth_service.update_status(current_user_id(), data.get("status"))
    return jsonify({"message": "User updated."}), 200
