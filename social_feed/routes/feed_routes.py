from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from social_feed.auth_guard import current_user_id


feed_bp = Blueprint("feed", __name__)


def _feed_service():
    return current_app.extensions["feed_service"]


def _post_form():
    """Read title/content/image from multipart or JSON bodies."""
    content_type = (request.content_type or "").lower()
    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = request.form
        return form.get("title"), form.get("content"), request.files.get("image"), form.get("image")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    image_url = data.get("image") or data.get("imageUrl")
    return data.get("title"), data.get("content"), None, image_url


@feed_bp.route("/posts", methods=["GET"])
@jwt_required()
def list_posts():
    result = _feed_service().list_posts(request.args.get("page"))
    return jsonify({
        "message": "Fetched posts successfully.",
        "posts": result["posts"],
        "totalItems": result["totalItems"],
    }), 200


@feed_bp.route("/post", methods=["POST"])
@jwt_required()
def create_post():
    title, content, image, _ = _post_form()
    result = _feed_service().create_post(current_user_id(), title, content, image)
    return jsonify({
        "message": "Post created successfully!",
        "post": result["post"],
        "creator": result["creator"],
    }), 201


@feed_bp.route("/post/<post_id>", methods=["GET"])
@jwt_required()
def get_post(post_id):
    post = _feed_service().get_post(post_id)
    return jsonify({"message": "Post fetched.", "post": post}), 200


@feed_bp.route("/post/<post_id>", methods=["PUT"])
@jwt_required()
def update_post(post_id):
    title, content, image, image_url = _post_form()
    post = _feed_service().update_post(
        post_id,
        current_user_id(),
        title,
        content,
        image=image,
        image_url=image_url,
    )
    return jsonify({"message": "Post updated!", "post": post}), 200


@feed_bp.route("/post/<post_id>", methods=["DELETE"])
@jwt_required()
def delete_post(post_id):
    _feed_service().delete_post(post_id, current_user_id())
    return jsonify({"message": "Deleted post."}), 200


@feed_bp.route("/users/<user_id>/posts", methods=["GET"])
@jwt_required()
def list_user_posts(user_id):
    posts = _feed_service().list_user_posts(user_id)
    return jsonify({"message": "Fetched user posts successfully.", "posts": posts}), 200
