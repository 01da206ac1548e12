import logging

from flask import current_app, request
from flask_socketio import emit

from social_feed.auth_guard import extract_socket_token, identity_from_token
from social_feed.extensions.extensions import socketio


logger = logging.getLogger(__name__)

_registered = False


def _hub():
    return current_app.extensions["broadcast_hub"]


def register_socket_events():
    """Attach connection handlers to the shared SocketIO instance once.

    Must run before ``socketio.init_app`` so the handlers are replayed onto
    every server the extension creates.
    """
    global _registered
    if _registered:
        return

    @socketio.on("connect")
    def handle_connect(auth=None):
        user_id = identity_from_token(extract_socket_token(auth))
        if not user_id:
            logger.info("Refused socket connection without a valid token")
            return False

        _hub().register(request.sid, user_id)
        emit("connected", {"userId": user_id})

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        _hub().unregister(request.sid)

    _registered = True
