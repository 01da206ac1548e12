import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException


logger = logging.getLogger(__name__)


class FeedError(Exception):
    """Base for every failure that maps onto an HTTP status and a JSON body."""

    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message=None, data=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.data = data
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = {"message": self.message}
        if self.data is not None:
            body["data"] = self.data
        return body


class Unauthenticated(FeedError):
    status_code = 401
    default_message = "Not authenticated."


class ValidationFailed(FeedError):
    status_code = 422
    default_message = "Validation failed, entered data is incorrect."


class MissingImage(FeedError):
    status_code = 422
    default_message = "No image provided."


class NotFound(FeedError):
    status_code = 404
    default_message = "Could not find post."


class Forbidden(FeedError):
    status_code = 403
    default_message = "Not authorized!"


class StoreError(FeedError):
    status_code = 500
    default_message = "Storage operation failed."


class StoreUnavailable(StoreError):
    default_message = "Storage is unavailable."


class HubNotReady(RuntimeError):
    pass


def register_error_handlers(app):
    @app.errorhandler(FeedError)
    def handle_feed_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message, exc_info=error)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error while processing request")
        return jsonify({"message": FeedError.default_message}), 500
