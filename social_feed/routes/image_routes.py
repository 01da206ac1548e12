from datetime import timezone

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    jsonify,
    request,
    send_from_directory,
    stream_with_context,
)
from minio.error import S3Error
from werkzeug.utils import secure_filename

from social_feed.services.image_store import is_missing_object


image_bp = Blueprint("images", __name__)


def _image_store():
    return current_app.extensions["image_store"]


def _cache_max_age() -> int:
    return max(int(current_app.config.get("MEDIA_CACHE_MAX_AGE_SECONDS", 0)), 0)


def _storage_error(error: Exception):
    if isinstance(error, S3Error) and is_missing_object(error):
        return jsonify({"message": "Image not found."}), 404
    return jsonify({"message": "Image storage unavailable."}), 503


def _object_validators(stat):
    """Return the (etag, last_modified) pair MinIO reports for an object."""
    etag = str(getattr(stat, "etag", None) or "").strip().strip('"') or None
    last_modified = getattr(stat, "last_modified", None)
    if last_modified is not None and last_modified.tzinfo is None:
        last_modified = last_modified.replace(tzinfo=timezone.utc)
    return etag, last_modified


def _object_response(stat, body=None, status=200):
    response = Response(
        body,
        status=status,
        mimetype=getattr(stat, "content_type", None) or "application/octet-stream",
        direct_passthrough=body is not None,
    )
    response.headers["Cache-Control"] = f"public, max-age={_cache_max_age()}, immutable"

    etag, last_modified = _object_validators(stat)
    if etag:
        response.set_etag(etag)
    if last_modified is not None:
        response.last_modified = last_modified
    size = getattr(stat, "size", None)
    if size is not None and status == 200:
        response.content_length = size
    return response


@image_bp.route("/<filename>", methods=["GET", "HEAD"])
def get_image(filename):
    if filename != secure_filename(filename):
        abort(404)

    store = _image_store()
    if store.has_local(filename):
        return send_from_directory(
            store.upload_folder,
            filename,
            max_age=_cache_max_age(),
            conditional=True,
        )

    if store.backend != "minio":
        return jsonify({"message": "Image not found."}), 404

    try:
        stat = store.stat_object(filename)
    except Exception as e:
        return _storage_error(e)

    etag, _ = _object_validators(stat)
    if etag and request.if_none_match.contains_weak(etag):
        return _object_response(stat, status=304)

    if request.method == "HEAD":
        return _object_response(stat)

    try:
        minio_response = store.get_object(filename)
    except Exception as e:
        return _storage_error(e)

    chunk_size = max(int(current_app.config.get("MEDIA_STREAM_CHUNK_SIZE", 256 * 1024)), 1024)

    def _stream():
        try:
            yield from minio_response.stream(chunk_size)
        finally:
            minio_response.close()
            minio_response.release_conn()

    return _object_response(stat, body=stream_with_context(_stream()))
